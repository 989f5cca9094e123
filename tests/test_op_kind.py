"""Tests for interned operation kinds."""

import copy
import pickle
from concurrent.futures import ThreadPoolExecutor

from tracegraph import OpKind
from tracegraph._hashing import string_hash


def test_get_returns_interned_instance() -> None:
    assert OpKind.get("xla::add") is OpKind.get("xla::add")


def test_unqualified_names_default_to_xla() -> None:
    op = OpKind.get("multiply")
    assert op is OpKind.get("xla::multiply")
    assert op.namespace == "xla"
    assert op.unqualified_name == "multiply"


def test_other_namespaces() -> None:
    op = OpKind.get("aten::mul")
    assert op.namespace == "aten"
    assert op.unqualified_name == "mul"
    assert op is not OpKind.get("mul")


def test_string_forms() -> None:
    op = OpKind.get("xla::tanh")
    assert str(op) == "xla::tanh"
    assert repr(op) == "OpKind('xla::tanh')"


def test_hash_is_deterministic() -> None:
    assert OpKind.get("xla::add").hash() == string_hash("xla::add")
    assert hash(OpKind.get("xla::add")) == OpKind.get("xla::add").hash()


def test_ordering_follows_interning_order() -> None:
    first = OpKind.get("test::ordering_first")
    second = OpKind.get("test::ordering_second")
    assert first < second
    assert second > first
    assert sorted([second, first]) == [first, second]


def test_copy_and_pickle_keep_identity() -> None:
    op = OpKind.get("xla::subtract")
    assert copy.copy(op) is op
    assert copy.deepcopy(op) is op
    assert pickle.loads(pickle.dumps(op)) is op  # noqa: S301


def test_concurrent_interning() -> None:
    with ThreadPoolExecutor(max_workers=8) as pool:
        ops = list(pool.map(lambda _: OpKind.get("test::concurrent"), range(64)))
    assert all(op is ops[0] for op in ops)
