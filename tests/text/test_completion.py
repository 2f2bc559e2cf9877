from __future__ import annotations

import pytest

from happy_moments.text.completion import (
    AlignmentError,
    TokenOccurrence,
    align_streams,
    build_completion_table,
    complete_corpus,
    complete_documents,
    dictionary_stream,
    stem_stream,
)
from happy_moments.text.normalize import normalize
from happy_moments.text.stemming import stem

STOPWORDS = frozenset({"i", "my", "me", "a"})


def _complete(texts, stopwords=STOPWORDS, **kwargs):
    documents = list(enumerate(texts, start=1))
    return complete_corpus(documents, stopwords, **kwargs)


def test_three_document_example():
    result = _complete(["I love my dog", "My dog loves me", "I bought a new car"])

    assert result.texts == {1: "love dog", 2: "dog love", 3: "bought new car"}
    assert result.table["love"] == "love"


def test_representative_is_most_frequent_dictionary_word():
    result = _complete(["loving it", "loving you", "loved them"], stopwords=frozenset())

    assert stem("loving") == stem("loved")
    assert result.table[stem("loved")] == "loving"
    assert result.texts[3] == "loving them"


@pytest.mark.parametrize(
    ("tie_break", "expected"),
    [("lexicographic", "connected"), ("first_seen", "connecting")],
)
def test_tie_break_is_explicit(tie_break, expected):
    result = _complete(["connecting people", "connected people"], stopwords=frozenset(), tie_break=tie_break)

    assert result.table["connect"] == expected
    assert result.texts == {1: f"{expected} people", 2: f"{expected} people"}


def test_unknown_tie_break_rejected():
    with pytest.raises(ValueError):
        build_completion_table([], tie_break="random")


def test_table_is_corpus_wide_not_per_document():
    result = _complete(["connecting", "connected connected"], stopwords=frozenset())

    assert result.texts[1] == "connected"


def test_stopword_forms_never_become_representatives_when_content_forms_exist():
    result = _complete(["move move", "moved house"], stopwords=frozenset({"move"}))

    assert result.table["move"] == "moved"
    assert result.texts == {1: "", 2: "moved house"}


def test_every_stem_has_one_representative():
    texts = ["Having fun with friends", "We had a friendly dinner", "friend visits"]
    result = _complete(texts, stopwords=frozenset({"having", "we", "a", "with"}))

    corpus_stems = {stem(word) for text in texts for word in normalize(text).split()}
    assert set(result.table) == corpus_stems
    assert result.table[stem("having")] == "having"
    assert all(stem(word) == key for key, word in result.table.items())


def test_stopwords_filter_on_dictionary_form():
    result = _complete(["i finally finished"], stopwords=frozenset({"i", "finally"}))

    assert result.texts[1] == "finished"


def test_output_tokens_never_exceed_input_tokens():
    texts = ["I love my dog", "My dog loves me", "I bought a new car", "", None, "a my me i"]
    result = _complete(texts)

    for doc_id, count in result.input_tokens.items():
        assert len(result.texts[doc_id].split()) <= count


def test_completion_is_idempotent():
    texts = [
        "We went hiking and the hikes were lovely",
        "I loved the hike with my family",
        "Our families celebrated my birthday",
        "Celebrating birthdays with loved ones",
    ]
    stopwords = frozenset({"we", "and", "the", "were", "i", "with", "my", "our"})
    first = _complete(texts, stopwords=stopwords)
    second = complete_corpus(sorted(first.texts.items()), stopwords)

    assert second.texts == first.texts


def test_empty_documents_keep_their_row():
    result = _complete(["I my me", None, "dog"])

    assert result.texts == {1: "", 2: "", 3: "dog"}


def test_streams_are_keyed_by_document_and_position():
    documents = [(7, "dogs run"), (9, "cats")]

    assert dictionary_stream(documents) == [((7, 0), "dogs"), ((7, 1), "run"), ((9, 0), "cats")]
    assert stem_stream(documents, stem) == [((7, 0), "dog"), ((7, 1), "run"), ((9, 0), "cat")]


def test_align_streams_rejects_length_mismatch():
    with pytest.raises(AlignmentError):
        align_streams([((1, 0), "dogs")], [((1, 0), "dog"), ((1, 1), "run")])


def test_align_streams_rejects_key_mismatch():
    with pytest.raises(AlignmentError, match=r"\(1, 1\)"):
        align_streams(
            [((1, 0), "dogs"), ((1, 1), "run")],
            [((1, 0), "dog"), ((2, 0), "run")],
        )


def test_complete_documents_rejects_unknown_document():
    occurrences = [TokenOccurrence(doc_id=5, position=0, word="dog", stem="dog")]

    with pytest.raises(AlignmentError):
        complete_documents(occurrences, {"dog": "dog"}, frozenset(), doc_ids=[1])


def test_duplicate_document_ids_rejected():
    with pytest.raises(ValueError):
        complete_corpus([(1, "a"), (1, "b")], frozenset())
