"""Tests for the deterministic hashing primitives."""

from tracegraph._hashing import HASH_MASK, data_hash, hash_combine, hash_many, string_hash


def test_string_hash_is_stable() -> None:
    assert string_hash("xla::add") == string_hash("xla::add")


def test_string_hash_distinguishes_strings() -> None:
    assert string_hash("xla::add") != string_hash("xla::sub")


def test_string_hash_fits_64_bits() -> None:
    for text in ["", "a", "xla::parameter", "a much longer string " * 20]:
        assert 0 <= string_hash(text) <= HASH_MASK


def test_data_hash_includes_type() -> None:
    assert data_hash(1) != data_hash(1.0)
    assert data_hash(1) != data_hash("1")
    assert data_hash((1, 2)) != data_hash([1, 2])


def test_data_hash_of_equal_values() -> None:
    assert data_hash([1.0, 2.0]) == data_hash([1.0, 2.0])


class TestHashCombine:
    def test_order_matters(self) -> None:
        a, b = string_hash("a"), string_hash("b")
        assert hash_combine(a, b) != hash_combine(b, a)

    def test_result_is_masked(self) -> None:
        assert 0 <= hash_combine(HASH_MASK, HASH_MASK) <= HASH_MASK

    def test_hash_many_single_value(self) -> None:
        assert hash_many(42) == 42

    def test_hash_many_is_left_fold(self) -> None:
        a, b, c = string_hash("a"), string_hash("b"), string_hash("c")
        assert hash_many(a, b, c) == hash_combine(hash_combine(a, b), c)
