from __future__ import annotations

import numpy as np
import pytest

from happy_moments.analysis.dtm import DocumentTermMatrix, build_dtm
from happy_moments.analysis.topics import beta_rows, lda, top_terms

DOCS = [
    "dog park walk dog",
    "dog walk puppy",
    "puppy park dog",
    "",
    "birthday cake party",
    "party cake friends",
    "friends birthday dinner",
]


@pytest.fixture(scope="module")
def dtm():
    return build_dtm(DOCS, min_doc_fraction=0.0)


def test_beta_rows_are_distributions(dtm):
    model = lda(dtm, k=2, seed=11)

    assert model.beta.shape == (2, len(dtm.terms))
    assert np.allclose(model.beta.sum(axis=1), 1.0)
    assert (model.beta > 0).all()


def test_empty_rows_are_excluded_and_reported(dtm):
    model = lda(dtm, k=2, seed=11)

    assert model.excluded_ids == [4]
    assert 4 not in model.doc_ids
    assert model.doc_topic.shape == (6, 2)
    assert np.allclose(model.doc_topic.sum(axis=1), 1.0)


def test_fixed_seed_is_reproducible(dtm):
    first = lda(dtm, k=2, seed=5)
    second = lda(dtm, k=2, seed=5)

    assert np.allclose(first.beta, second.beta)
    assert np.allclose(first.doc_topic, second.doc_topic)


def test_mixture_can_be_recomputed(dtm):
    model = lda(dtm, k=2, seed=11)
    mixtures = model.mixture(dtm.nonempty())

    assert mixtures.shape == (6, 2)
    assert np.allclose(mixtures.sum(axis=1), 1.0)


def test_mixture_rejects_foreign_vocabulary(dtm):
    model = lda(dtm, k=2, seed=11)
    other = build_dtm(["cat nap"], min_doc_fraction=0.0)

    with pytest.raises(ValueError):
        model.mixture(other)


def test_tidy_and_top_term_tables(dtm):
    model = lda(dtm, k=2, seed=11)

    rows = beta_rows(model)
    assert len(rows) == 2 * len(dtm.terms)
    assert {topic for topic, _, _ in rows} == {1, 2}

    top = top_terms(model, n=3)
    assert len(top) == 6
    first_topic = [beta for topic, _, beta in top if topic == 1]
    assert first_topic == sorted(first_topic, reverse=True)


def test_invalid_topic_count_rejected(dtm):
    with pytest.raises(ValueError):
        lda(dtm, k=0)


def test_all_empty_matrix_rejected():
    empty = build_dtm(["dog", ""], min_doc_fraction=0.0)
    with pytest.raises(ValueError):
        lda(DocumentTermMatrix(doc_ids=[2], terms=empty.terms, counts=empty.counts[[1]]), k=1)
