import pytest

from happy_moments.text.stemming import get_stemmer, stem


def test_porter_stem_is_deterministic_and_many_to_one():
    assert stem("loves") == stem("love") == "love"
    assert stem("connected") == stem("connecting") == "connect"
    assert stem("dog") == "dog"


def test_get_stemmer_returns_named_algorithms():
    assert get_stemmer("porter") is stem
    snowball = get_stemmer("snowball")
    assert snowball("running") == "run"


def test_get_stemmer_rejects_unknown():
    with pytest.raises(ValueError):
        get_stemmer("lancaster-plus")
