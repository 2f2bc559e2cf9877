"""Shared infrastructure for the happy moments toolchain."""

from __future__ import annotations

from .config import PipelineConfig, get_config_paths

__all__ = [
    "PipelineConfig",
    "get_config_paths",
]
