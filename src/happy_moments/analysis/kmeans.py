"""Hard clustering of TF-IDF document vectors with k-means."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from scipy import sparse
from sklearn.cluster import KMeans

logger = logging.getLogger(__name__)

DEFAULT_N_INIT = 20
DEFAULT_MAX_ITER = 25


@dataclass(frozen=True)
class KMeansResult:
    """Best k-means run across restarts; cluster ids are 1-based."""

    assignment: list[int]
    centroids: NDArray[np.float64]
    inertia: float
    n_iter: int
    converged: bool

    @property
    def k(self) -> int:
        return int(self.centroids.shape[0])

    def sizes(self) -> dict[int, int]:
        sizes = {cluster_id: 0 for cluster_id in range(1, self.k + 1)}
        for cluster_id in self.assignment:
            sizes[cluster_id] += 1
        return sizes


def _relabel_by_first_appearance(labels: NDArray[np.int_], k: int) -> tuple[list[int], list[int]]:
    """Map raw labels to 1..k in order of first appearance down the rows.

    Returns the new assignment and, for each new id, the raw label it came
    from. Labels that never occur (empty clusters) take the last ids.
    """

    order: list[int] = []
    seen: set[int] = set()
    for label in labels:
        raw = int(label)
        if raw not in seen:
            seen.add(raw)
            order.append(raw)
    order.extend(raw for raw in range(k) if raw not in seen)
    mapping = {raw: new_id for new_id, raw in enumerate(order, start=1)}
    return [mapping[int(label)] for label in labels], order


def kmeans(
    vectors: sparse.spmatrix | NDArray[np.float64],
    k: int,
    n_init: int = DEFAULT_N_INIT,
    max_iter: int = DEFAULT_MAX_ITER,
    seed: int = 93,
    *,
    tol: float = 1e-4,
) -> KMeansResult:
    """Cluster the rows of *vectors* into *k* groups.

    Squared-Euclidean k-means with *n_init* random restarts, each capped at
    *max_iter* iterations; the lowest-inertia run wins. Running out of
    iterations is reported through ``converged`` rather than raised.
    """

    n_rows = vectors.shape[0]
    if not 1 <= k <= n_rows:
        raise ValueError(f"k must lie in [1, {n_rows}] for {n_rows} rows; got {k}")
    if n_init < 1 or max_iter < 1:
        raise ValueError(f"n_init and max_iter must be positive; got {n_init} and {max_iter}")

    model = KMeans(
        n_clusters=k,
        init="random",
        n_init=n_init,
        max_iter=max_iter,
        tol=tol,
        random_state=seed,
        algorithm="lloyd",
    )
    labels = model.fit_predict(vectors)

    assignment, order = _relabel_by_first_appearance(labels, k)
    centroids = np.asarray(model.cluster_centers_, dtype=np.float64)[order]
    n_iter = int(model.n_iter_)
    converged = n_iter < max_iter
    result = KMeansResult(
        assignment=assignment,
        centroids=centroids,
        inertia=float(model.inertia_),
        n_iter=n_iter,
        converged=converged,
    )

    if not converged:
        logger.warning(
            "k-means stopped at the iteration cap before converging",
            extra={"k": k, "max_iter": max_iter, "inertia": round(result.inertia, 4)},
        )
    logger.info(
        "k-means complete",
        extra={
            "k": k,
            "rows": n_rows,
            "n_init": n_init,
            "n_iter": n_iter,
            "inertia": round(result.inertia, 4),
            "converged": converged,
        },
    )
    logger.debug("Cluster sizes", extra={"sizes": result.sizes()})
    return result


def cluster_top_terms(
    vectors: sparse.spmatrix | NDArray[np.float64],
    assignment: Sequence[int],
    terms: Sequence[str],
    n: int = 10,
) -> list[tuple[int, int, str, float]]:
    """Top *n* terms per cluster by mean weight, as (cluster, rank, term, weight)."""

    matrix = sparse.csr_matrix(vectors)
    labels = np.asarray(assignment)
    rows: list[tuple[int, int, str, float]] = []
    for cluster_id in sorted(set(int(label) for label in labels)):
        members = np.flatnonzero(labels == cluster_id)
        mean_weights = np.asarray(matrix[members].mean(axis=0)).ravel()
        ranked = sorted(
            (index for index in np.flatnonzero(mean_weights > 0)),
            key=lambda index: (-mean_weights[index], terms[index]),
        )
        for rank, index in enumerate(ranked[:n], start=1):
            rows.append((cluster_id, rank, terms[index], round(float(mean_weights[index]), 6)))
    return rows


__all__ = [
    "DEFAULT_MAX_ITER",
    "DEFAULT_N_INIT",
    "KMeansResult",
    "cluster_top_terms",
    "kmeans",
]
