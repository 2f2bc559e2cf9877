"""TF-IDF weighting of a document-term matrix."""
from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray
from scipy import sparse
from sklearn.preprocessing import normalize as l2_normalize

from .dtm import DocumentTermMatrix

logger = logging.getLogger(__name__)


def inverse_document_frequency(dtm: DocumentTermMatrix, *, idf_floor: float = 0.0) -> NDArray[np.float64]:
    """Return ``log2(N / df)`` per term, raised to *idf_floor* when set.

    N counts the rows with at least one term; all-zero rows do not dilute
    the weights. A term present in every such row gets an IDF of exactly
    zero unless a positive floor is requested.
    """

    if idf_floor < 0:
        raise ValueError(f"idf_floor must be non-negative; got {idf_floor}")

    n_docs = int(np.count_nonzero(~dtm.empty_mask))
    df = dtm.document_frequencies().astype(np.float64)
    idf = np.zeros_like(df)
    present = df > 0
    idf[present] = np.log2(n_docs / df[present])
    if idf_floor > 0:
        idf = np.maximum(idf, idf_floor)
    return idf


def tfidf(
    dtm: DocumentTermMatrix,
    normalize_rows: bool = True,
    *,
    idf_floor: float = 0.0,
) -> sparse.csr_matrix:
    """Weight raw counts by IDF and optionally scale each row to unit L2 norm.

    Rows whose weights are all zero stay all-zero after normalization.
    """

    idf = inverse_document_frequency(dtm, idf_floor=idf_floor)
    weighted = sparse.csr_matrix(dtm.counts, dtype=np.float64) @ sparse.diags(idf)
    weighted = sparse.csr_matrix(weighted)
    weighted.eliminate_zeros()

    zeroed_terms = int(np.count_nonzero(idf == 0))
    if zeroed_terms:
        logger.debug("Terms with zero IDF", extra={"terms": zeroed_terms})

    if normalize_rows:
        weighted = l2_normalize(weighted, norm="l2", axis=1, copy=False)

    logger.info(
        "Computed TF-IDF weights",
        extra={
            "documents": weighted.shape[0],
            "terms": weighted.shape[1],
            "normalized": normalize_rows,
            "idf_floor": idf_floor,
        },
    )
    return sparse.csr_matrix(weighted)


__all__ = ["inverse_document_frequency", "tfidf"]
