from __future__ import annotations

import logging

import numpy as np
import pytest

from happy_moments.analysis.dtm import build_dtm
from happy_moments.analysis.kmeans import cluster_top_terms, kmeans
from happy_moments.analysis.tfidf import tfidf


def _blobs(seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    centers = np.array([[0.0, 0.0], [5.0, 5.0], [0.0, 5.0]])
    return np.vstack([center + rng.normal(scale=0.3, size=(20, 2)) for center in centers])


def test_example_separates_third_document():
    dtm = build_dtm(["love dog", "dog love", "bought new car"], min_doc_fraction=0.0)
    result = kmeans(tfidf(dtm), k=2, seed=1)

    assert result.assignment == [1, 1, 2]
    assert result.inertia == pytest.approx(0.0, abs=1e-9)
    assert result.centroids.shape == (2, 5)


def test_fixed_seed_is_reproducible():
    data = _blobs()
    first = kmeans(data, k=3, n_init=5, max_iter=25, seed=7)
    second = kmeans(data, k=3, n_init=5, max_iter=25, seed=7)

    assert first.assignment == second.assignment
    assert np.allclose(first.centroids, second.centroids)
    assert first.inertia == second.inertia


def test_cluster_ids_follow_first_appearance():
    result = kmeans(_blobs(), k=3, seed=3)

    assert result.assignment[0] == 1
    assert result.assignment[20] == 2
    assert result.assignment[40] == 3
    assert set(result.assignment[:20]) == {1}
    assert result.sizes() == {1: 20, 2: 20, 3: 20}


def test_iteration_cap_is_reported_not_raised(caplog):
    with caplog.at_level(logging.WARNING):
        result = kmeans(_blobs(), k=3, n_init=2, max_iter=1, seed=5)

    assert result.converged is False
    assert len(result.assignment) == 60
    assert any("iteration cap" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize("k", [0, 61])
def test_invalid_k_rejected(k):
    with pytest.raises(ValueError):
        kmeans(_blobs(), k=k)


def test_cluster_top_terms_rank_by_mean_weight():
    dtm = build_dtm(["dog park dog", "dog walk", "car new", "car drive car"], min_doc_fraction=0.0)
    weights = tfidf(dtm)
    rows = cluster_top_terms(weights, [1, 1, 2, 2], dtm.terms, n=2)

    by_cluster = {}
    for cluster_id, rank, term, weight in rows:
        by_cluster.setdefault(cluster_id, []).append((rank, term))
        assert weight > 0
    assert by_cluster[1][0] == (1, "dog")
    assert by_cluster[2][0] == (1, "car")
    assert len(by_cluster[1]) == 2
