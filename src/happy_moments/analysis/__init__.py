"""Vectorization, clustering and topic modeling for processed moments."""

from __future__ import annotations

__all__ = [
    "dtm",
    "frequencies",
    "kmeans",
    "tfidf",
    "topics",
]
