"""Soft clustering with latent Dirichlet allocation over raw term counts."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from sklearn.decomposition import LatentDirichletAllocation

from .dtm import DocumentTermMatrix

logger = logging.getLogger(__name__)

DEFAULT_LDA_MAX_ITER = 20


@dataclass(frozen=True)
class TopicModel:
    """Fitted LDA model with its topic-term and document-topic matrices.

    ``beta[t, w]`` is the probability of term ``w`` under topic ``t``; each
    row is its own distribution over the vocabulary. ``doc_topic`` holds one
    mixture per fitted document, aligned with ``doc_ids``.
    """

    estimator: LatentDirichletAllocation
    terms: list[str]
    beta: NDArray[np.float64]
    doc_ids: list[int]
    doc_topic: NDArray[np.float64]
    excluded_ids: list[int]

    @property
    def k(self) -> int:
        return int(self.beta.shape[0])

    def mixture(self, dtm: DocumentTermMatrix) -> NDArray[np.float64]:
        """Recompute topic mixtures for *dtm*, which must share the vocabulary."""

        if list(dtm.terms) != self.terms:
            raise ValueError("Document-term matrix vocabulary does not match the fitted topic model")
        return np.asarray(self.estimator.transform(dtm.counts), dtype=np.float64)


def lda(
    dtm: DocumentTermMatrix,
    k: int,
    seed: int = 93,
    *,
    max_iter: int = DEFAULT_LDA_MAX_ITER,
) -> TopicModel:
    """Fit a *k*-topic LDA model on the non-empty rows of *dtm*.

    All-zero rows are left out of the fit and listed in ``excluded_ids``.
    """

    if k < 1:
        raise ValueError(f"Number of topics must be positive; got {k}")

    fitted = dtm.nonempty()
    excluded = dtm.empty_ids
    if fitted.shape[0] == 0:
        raise ValueError("Every document is empty; nothing to fit a topic model on")
    if excluded:
        logger.info("Excluding empty documents from topic model", extra={"excluded": len(excluded)})

    estimator = LatentDirichletAllocation(
        n_components=k,
        learning_method="batch",
        max_iter=max_iter,
        random_state=seed,
        evaluate_every=-1,
    )
    doc_topic = estimator.fit_transform(fitted.counts)
    components = np.asarray(estimator.components_, dtype=np.float64)
    beta = components / components.sum(axis=1, keepdims=True)

    model = TopicModel(
        estimator=estimator,
        terms=list(dtm.terms),
        beta=beta,
        doc_ids=list(fitted.doc_ids),
        doc_topic=np.asarray(doc_topic, dtype=np.float64),
        excluded_ids=excluded,
    )
    logger.info(
        "Fitted topic model",
        extra={
            "topics": k,
            "documents": fitted.shape[0],
            "terms": fitted.shape[1],
            "n_iter": int(estimator.n_iter_),
        },
    )
    logger.debug("Topic top terms", extra={"top_terms": top_terms(model, n=5)})
    return model


def beta_rows(model: TopicModel) -> list[tuple[int, str, float]]:
    """Tidy (topic, term, beta) rows with 1-based topic ids."""

    rows: list[tuple[int, str, float]] = []
    for topic_index in range(model.k):
        for term_index, term in enumerate(model.terms):
            rows.append((topic_index + 1, term, float(model.beta[topic_index, term_index])))
    return rows


def top_terms(model: TopicModel, n: int = 10) -> list[tuple[int, str, float]]:
    """Highest-probability *n* terms per topic, ties ordered by term."""

    rows: list[tuple[int, str, float]] = []
    for topic_index in range(model.k):
        weights = model.beta[topic_index]
        ranked = sorted(range(len(model.terms)), key=lambda index: (-weights[index], model.terms[index]))
        for index in ranked[:n]:
            rows.append((topic_index + 1, model.terms[index], float(weights[index])))
    return rows


__all__ = [
    "DEFAULT_LDA_MAX_ITER",
    "TopicModel",
    "beta_rows",
    "lda",
    "top_terms",
]
