"""Document-term matrix construction with document-frequency bounds."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from scipy import sparse
from sklearn.feature_extraction.text import CountVectorizer

logger = logging.getLogger(__name__)

DEFAULT_MIN_DOC_FRACTION = 0.01


class VocabularyError(ValueError):
    """Raised when document-frequency bounds leave no usable vocabulary."""


@dataclass(frozen=True)
class DocumentTermMatrix:
    """Raw term counts; one row per document, columns in lexicographic order."""

    doc_ids: list[int]
    terms: list[str]
    counts: sparse.csr_matrix

    @property
    def shape(self) -> tuple[int, int]:
        return self.counts.shape

    @property
    def row_totals(self) -> NDArray[np.int64]:
        return np.asarray(self.counts.sum(axis=1)).ravel()

    @property
    def empty_mask(self) -> NDArray[np.bool_]:
        """True for rows with no surviving term."""

        return self.row_totals == 0

    @property
    def empty_ids(self) -> list[int]:
        return [doc_id for doc_id, empty in zip(self.doc_ids, self.empty_mask) if empty]

    def nonempty(self) -> DocumentTermMatrix:
        """Return a matrix restricted to rows with at least one term."""

        keep = np.flatnonzero(~self.empty_mask)
        return DocumentTermMatrix(
            doc_ids=[self.doc_ids[index] for index in keep],
            terms=list(self.terms),
            counts=self.counts[keep],
        )

    def document_frequencies(self) -> NDArray[np.int64]:
        return np.asarray((self.counts > 0).sum(axis=0)).ravel()

    def row_for(self, doc_id: int) -> dict[str, int]:
        index = self.doc_ids.index(doc_id)
        row = self.counts[index]
        return {self.terms[col]: int(value) for col, value in zip(row.indices, row.data)}


def min_document_count(min_doc_fraction: float, num_documents: int) -> int:
    """Smallest document frequency a term needs to be kept (never below 1)."""

    return max(1, math.ceil(round(min_doc_fraction * num_documents, 9)))


def _validate_fraction(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0 or math.isnan(value):
        raise VocabularyError(f"{name} must lie in [0, 1]; got {value}")


def build_dtm(
    docs: Sequence[str],
    min_doc_fraction: float = DEFAULT_MIN_DOC_FRACTION,
    *,
    doc_ids: Sequence[int] | None = None,
    max_doc_fraction: float | None = None,
) -> DocumentTermMatrix:
    """Count whitespace-delimited terms per document.

    Both bounds are taken over the documents that have any text: terms must
    occur in at least ``ceil(min_doc_fraction * n)`` of them and, when
    *max_doc_fraction* is set, in at most ``floor(max_doc_fraction * n)``.
    Empty documents and documents with no surviving term remain as all-zero
    rows.
    """

    if doc_ids is None:
        doc_ids = list(range(1, len(docs) + 1))
    if len(doc_ids) != len(docs):
        raise ValueError(f"Got {len(doc_ids)} document ids for {len(docs)} documents")
    if not docs:
        raise VocabularyError("Cannot build a document-term matrix from an empty corpus")

    n_text = sum(1 for doc in docs if doc.split())
    _validate_fraction("min_doc_fraction", min_doc_fraction)
    min_count = min_document_count(min_doc_fraction, n_text)
    max_df: float | int = 1.0
    if max_doc_fraction is not None:
        _validate_fraction("max_doc_fraction", max_doc_fraction)
        max_df = math.floor(max_doc_fraction * n_text)
        if max_df < min_count:
            raise VocabularyError(
                f"max_doc_fraction={max_doc_fraction} admits at most {max_df} documents per term, "
                f"below the minimum of {min_count}"
            )

    vectorizer = CountVectorizer(
        token_pattern=r"\S+",
        lowercase=False,
        min_df=min_count,
        max_df=max_df,
        dtype=np.int64,
    )
    try:
        counts = vectorizer.fit_transform(docs)
    except ValueError as error:
        raise VocabularyError(
            f"No terms remain with min_doc_fraction={min_doc_fraction} "
            f"(at least {min_count} of {n_text} non-empty documents): {error}"
        ) from error

    terms = [str(term) for term in vectorizer.get_feature_names_out()]
    dtm = DocumentTermMatrix(doc_ids=list(doc_ids), terms=terms, counts=sparse.csr_matrix(counts))
    logger.info(
        "Built document-term matrix",
        extra={
            "documents": dtm.shape[0],
            "text_documents": n_text,
            "terms": dtm.shape[1],
            "min_doc_count": min_count,
            "empty_rows": int(dtm.empty_mask.sum()),
            "nnz": int(dtm.counts.nnz),
        },
    )
    return dtm


__all__ = [
    "DEFAULT_MIN_DOC_FRACTION",
    "DocumentTermMatrix",
    "VocabularyError",
    "build_dtm",
    "min_document_count",
]
