"""Text normalization, stemming and stem completion."""

from __future__ import annotations

__all__ = [
    "completion",
    "normalize",
    "stemming",
    "stopwords",
]
