"""Term and bigram counts feeding the frequency, word cloud and network views."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

logger = logging.getLogger(__name__)


def term_frequencies(texts: Iterable[str], top: int | None = None) -> list[tuple[str, int]]:
    """Count every whitespace token across *texts*, most frequent first."""

    counter: Counter[str] = Counter()
    for text in texts:
        counter.update(text.split())
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    logger.debug("Counted terms", extra={"distinct": len(ranked)})
    return ranked if top is None else ranked[:top]


def bigram_counts(texts: Iterable[str], top: int | None = None) -> list[tuple[str, str, int]]:
    """Count adjacent word pairs within each text; pairs never span documents."""

    counter: Counter[tuple[str, str]] = Counter()
    for text in texts:
        tokens = text.split()
        counter.update(zip(tokens, tokens[1:]))
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    logger.debug("Counted bigrams", extra={"distinct": len(ranked)})
    rows = [(left, right, count) for (left, right), count in ranked]
    return rows if top is None else rows[:top]


__all__ = ["bigram_counts", "term_frequencies"]
