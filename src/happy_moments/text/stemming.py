from __future__ import annotations

from functools import lru_cache
from typing import Callable

from nltk.stem import PorterStemmer
from nltk.stem.snowball import SnowballStemmer

Stemmer = Callable[[str], str]

_PORTER = PorterStemmer()

SUPPORTED_STEMMERS = ("porter", "snowball")


@lru_cache(maxsize=None)
def _porter(word: str) -> str:
    return _PORTER.stem(word)


def stem(word: str) -> str:
    """Reduce *word* to its Porter stem."""

    return _porter(word)


def get_stemmer(name: str = "porter") -> Stemmer:
    """Return a pure single-token stemming function by name."""

    if name == "porter":
        return stem
    if name == "snowball":
        snowball = SnowballStemmer("english")
        return lru_cache(maxsize=None)(snowball.stem)
    raise ValueError(f"Unsupported stemmer '{name}'. Choose from {list(SUPPORTED_STEMMERS)}")


__all__ = ["SUPPORTED_STEMMERS", "Stemmer", "get_stemmer", "stem"]
