"""Stem completion: map every stem back to its most frequent dictionary word.

Stemming is many-to-one, so the analysis tables would otherwise show
truncated forms such as ``famili`` or ``celebr``. Completion runs in two
passes over the whole corpus:

1. pair each dictionary word with its stem by an explicit
   ``(doc_id, position)`` key and count, per stem, how often each dictionary
   word produced it; the most frequent word becomes the stem's
   representative;
2. rewrite every document with representatives, dropping tokens whose
   original dictionary word is a stopword.

Representatives are chosen corpus-wide, never per document.
"""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Iterable, Sequence

from tqdm import tqdm

from .normalize import normalize, tokenize
from .stemming import Stemmer, get_stemmer

logger = logging.getLogger(__name__)

OccurrenceKey = tuple[int, int]
KeyedStream = list[tuple[OccurrenceKey, str]]

TIE_BREAKS = ("lexicographic", "first_seen")


class AlignmentError(ValueError):
    """Raised when the dictionary and stem streams do not line up."""


@dataclass(frozen=True, slots=True)
class TokenOccurrence:
    """A single token at ``(doc_id, position)`` with its surface word and stem."""

    doc_id: int
    position: int
    word: str
    stem: str

    @property
    def key(self) -> OccurrenceKey:
        return (self.doc_id, self.position)


@dataclass(frozen=True, slots=True)
class CompletionResult:
    """Corpus-wide stem table plus the completed text of every document."""

    table: dict[str, str]
    texts: dict[int, str]
    input_tokens: dict[int, int]

    def text_for(self, doc_id: int) -> str:
        return self.texts[doc_id]


def dictionary_stream(documents: Iterable[tuple[int, str]]) -> KeyedStream:
    """Key every normalized token by ``(doc_id, position)``."""

    stream: KeyedStream = []
    for doc_id, text in documents:
        for position, word in enumerate(tokenize(text)):
            stream.append(((doc_id, position), word))
    return stream


def stem_stream(documents: Iterable[tuple[int, str]], stemmer: Stemmer) -> KeyedStream:
    """Key the stem of every normalized token by ``(doc_id, position)``."""

    stream: KeyedStream = []
    for doc_id, text in documents:
        for position, word in enumerate(tokenize(text)):
            stream.append(((doc_id, position), stemmer(word)))
    return stream


def align_streams(dictionary: KeyedStream, stems: KeyedStream) -> list[TokenOccurrence]:
    """Join the two keyed streams, refusing anything but an exact key match."""

    if len(dictionary) != len(stems):
        raise AlignmentError(
            f"Dictionary stream has {len(dictionary)} tokens but stem stream has {len(stems)}"
        )

    occurrences: list[TokenOccurrence] = []
    for (word_key, word), (stem_key, stem) in zip(dictionary, stems):
        if word_key != stem_key:
            raise AlignmentError(
                f"Token streams diverge at {word_key} (dictionary) vs {stem_key} (stem)"
            )
        occurrences.append(TokenOccurrence(doc_id=word_key[0], position=word_key[1], word=word, stem=stem))
    return occurrences


def _pick_representative(counts: Counter[str], tie_break: str) -> str:
    if tie_break == "lexicographic":
        return min(counts.items(), key=lambda item: (-item[1], item[0]))[0]
    # Counter keeps insertion order, and max() keeps the first maximum.
    return max(counts.items(), key=lambda item: item[1])[0]


def build_completion_table(
    occurrences: Sequence[TokenOccurrence],
    *,
    tie_break: str = "lexicographic",
    stopwords: frozenset[str] = frozenset(),
) -> dict[str, str]:
    """Pass 1: choose one representative dictionary word per stem.

    Candidates are the non-stopword dictionary words of a stem; a stem seen
    only through stopwords falls back to all of its words. Ties on count go
    to the alphabetically smallest word (``"lexicographic"``) or to the word
    met first in ``(doc_id, position)`` order (``"first_seen"``).

    Preferring non-stopword forms over a plain arg-max across all words is a
    deliberate choice: it keeps a second completion pass from changing text.
    """

    if tie_break not in TIE_BREAKS:
        raise ValueError(f"Unsupported tie break '{tie_break}'. Choose from {list(TIE_BREAKS)}")

    content_counts: dict[str, Counter[str]] = defaultdict(Counter)
    all_counts: dict[str, Counter[str]] = defaultdict(Counter)
    for occurrence in sorted(occurrences, key=lambda item: item.key):
        all_counts[occurrence.stem][occurrence.word] += 1
        if occurrence.word not in stopwords:
            content_counts[occurrence.stem][occurrence.word] += 1

    table: dict[str, str] = {}
    for stem_value, counts in all_counts.items():
        candidates = content_counts.get(stem_value) or counts
        if not candidates:
            raise AlignmentError(f"Stem '{stem_value}' has no recorded dictionary words")
        table[stem_value] = _pick_representative(candidates, tie_break)

    logger.debug(
        "Built stem completion table",
        extra={"stems": len(table), "tokens": len(occurrences), "tie_break": tie_break},
    )
    return table


def complete_documents(
    occurrences: Sequence[TokenOccurrence],
    table: dict[str, str],
    stopwords: frozenset[str],
    doc_ids: Sequence[int],
) -> dict[int, str]:
    """Pass 2: rewrite each document with representatives, minus stopwords.

    Every id in *doc_ids* gets a row; documents with no surviving token map
    to the empty string.
    """

    kept: dict[int, list[str]] = {doc_id: [] for doc_id in doc_ids}
    for occurrence in sorted(occurrences, key=lambda item: item.key):
        words = kept.get(occurrence.doc_id)
        if words is None:
            raise AlignmentError(f"Token at {occurrence.key} belongs to unknown document {occurrence.doc_id}")
        if occurrence.word in stopwords:
            continue
        words.append(table[occurrence.stem])

    return {doc_id: " ".join(words) for doc_id, words in kept.items()}


def complete_corpus(
    documents: Sequence[tuple[int, object]],
    stopwords: frozenset[str],
    *,
    stemmer: str | Stemmer = "porter",
    tie_break: str = "lexicographic",
    progress: bool = False,
) -> CompletionResult:
    """Normalize, stem and complete *documents* given as ``(doc_id, raw_text)``."""

    stem_fn = get_stemmer(stemmer) if isinstance(stemmer, str) else stemmer

    doc_ids = [doc_id for doc_id, _ in documents]
    if len(set(doc_ids)) != len(doc_ids):
        raise ValueError("Document ids must be unique")

    normalized = [
        (doc_id, normalize(text))
        for doc_id, text in tqdm(documents, desc="Normalizing", unit="doc", disable=not progress)
    ]
    occurrences = align_streams(dictionary_stream(normalized), stem_stream(normalized, stem_fn))
    table = build_completion_table(occurrences, tie_break=tie_break, stopwords=stopwords)
    texts = complete_documents(occurrences, table, stopwords, doc_ids)

    missing = set(doc_ids) - texts.keys()
    if missing:
        raise AlignmentError(f"Completion lost {len(missing)} document(s), e.g. {sorted(missing)[:5]}")

    input_tokens = {doc_id: len(tokenize(text)) for doc_id, text in normalized}
    empty = sum(1 for text in texts.values() if not text)
    logger.info(
        "Stem completion finished",
        extra={
            "documents": len(doc_ids),
            "tokens": len(occurrences),
            "stems": len(table),
            "empty_documents": empty,
        },
    )
    return CompletionResult(table=table, texts=texts, input_tokens=input_tokens)


__all__ = [
    "AlignmentError",
    "CompletionResult",
    "TIE_BREAKS",
    "TokenOccurrence",
    "align_streams",
    "build_completion_table",
    "complete_corpus",
    "complete_documents",
    "dictionary_stream",
    "stem_stream",
]
