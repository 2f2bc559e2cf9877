"""Surface cleaning applied identically to the dictionary and stem streams."""
from __future__ import annotations

import math
import re
import string
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")
_ASCII_PUNCT = frozenset(string.punctuation)


def _is_dropped(char: str) -> bool:
    if char in _ASCII_PUNCT:
        return True
    category = unicodedata.category(char)
    return category.startswith("P") or category == "Nd"


def normalize(text: object) -> str:
    """Clean a raw narrative into lower-case words separated by single spaces.

    Backslashes become spaces, punctuation and digits are removed (not
    replaced), whitespace runs collapse and the ends are trimmed. Missing
    values (``None`` or a float NaN) normalize to the empty string.
    """

    if text is None:
        return ""
    if isinstance(text, float) and math.isnan(text):
        return ""
    if not isinstance(text, str):
        text = str(text)

    text = text.replace("\\", " ").lower()
    text = "".join(char for char in text if not _is_dropped(char))
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(text: str) -> list[str]:
    """Split normalized text into tokens, preserving order."""

    return text.split()


__all__ = ["normalize", "tokenize"]
