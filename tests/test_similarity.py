import pytest

from marketlookup.similarity import calculate_similarity


def test_empty_sequences_score_zero():
    assert calculate_similarity([], ["valve"]) == 0.0
    assert calculate_similarity(["valve"], []) == 0.0
    assert calculate_similarity([], []) == 0.0


def test_self_similarity_is_one_hundred():
    tokens = ["1", "2", "standard", "valve"]
    assert calculate_similarity(tokens, tokens) == 100.0
    assert calculate_similarity(["valve", "valve"], ["valve"]) == 100.0


def test_similarity_is_symmetric():
    a = ["a", "b", "c"]
    b = ["b", "c", "d"]
    assert calculate_similarity(a, b) == calculate_similarity(b, a) == 50.0

    c = ["x", "y", "z", "w", "b"]
    assert calculate_similarity(a, c) == calculate_similarity(c, a)


def test_duplicates_count_once():
    assert calculate_similarity(["a", "a", "b"], ["a"]) == 50.0


def test_disjoint_and_partial_overlap():
    assert calculate_similarity(["widget"], ["valve"]) == 0.0
    assert calculate_similarity(["a", "b"], ["b", "c"]) == pytest.approx(100.0 / 3)


def test_order_does_not_matter():
    assert calculate_similarity(("valve", "standard"), ("standard", "valve")) == 100.0
