"""Timestamp and randomness helpers shared by the analysis stages."""
from __future__ import annotations

import logging
import random
from datetime import datetime, timezone

import numpy as np

logger = logging.getLogger(__name__)


def set_global_seeds(seed: int = 93) -> None:
    """Seed deterministic modules for repeatable experiments."""

    random.seed(seed)
    np.random.seed(seed)
    logger.info("Global random seed set", extra={"seed": seed})


def utcnow_iso() -> str:
    """Return the current UTC timestamp in ISO-8601 format with a trailing 'Z'."""

    now = datetime.now(timezone.utc).replace(microsecond=0)
    return now.isoformat().replace("+00:00", "Z")
