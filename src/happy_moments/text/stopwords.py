"""Immutable stopword sets: a base English lexicon plus corpus filler words."""
from __future__ import annotations

import logging
from typing import Iterable

import nltk
from nltk.corpus import stopwords as nltk_stopwords
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

from ..common.config import CORPUS_STOPWORDS

logger = logging.getLogger(__name__)

SUPPORTED_LEXICONS = ("nltk", "sklearn", "none")


def _nltk_english() -> list[str]:
    try:
        return nltk_stopwords.words("english")
    except LookupError:
        logger.info("Downloading NLTK stopwords corpus")
        nltk.download("stopwords", quiet=True)
        return nltk_stopwords.words("english")


def base_lexicon(name: str = "nltk") -> frozenset[str]:
    """Return the named base stopword lexicon."""

    if name == "nltk":
        return frozenset(_nltk_english())
    if name == "sklearn":
        return frozenset(ENGLISH_STOP_WORDS)
    if name == "none":
        return frozenset()
    raise ValueError(f"Unsupported stopword lexicon '{name}'. Choose from {list(SUPPORTED_LEXICONS)}")


def build_stopwords(
    extra: Iterable[str] = CORPUS_STOPWORDS,
    *,
    lexicon: str = "nltk",
) -> frozenset[str]:
    """Combine the base lexicon with *extra* words into a frozen set.

    Extra words are lower-cased and stripped so they compare against
    normalized dictionary words.
    """

    words = set(base_lexicon(lexicon))
    addendum = {word.strip().lower() for word in extra if word and word.strip()}
    words.update(addendum)
    logger.debug(
        "Built stopword set",
        extra={"lexicon": lexicon, "addendum": len(addendum), "total": len(words)},
    )
    return frozenset(words)


__all__ = ["SUPPORTED_LEXICONS", "base_lexicon", "build_stopwords"]
