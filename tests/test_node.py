"""Tests for IR nodes: shapes, hashes, operands and metadata."""

import logging
import threading
import time

import pytest

from tracegraph import (
    DEFAULT_HASH_SEED,
    Constant,
    ElementType,
    Generic,
    LoweringContext,
    Node,
    OpKind,
    Output,
    Parameter,
    ScopePusher,
    Shape,
    Value,
    make_node,
    node_cast,
    trace_config,
)
from tracegraph._ir import as_value, get_shape_cache
from tracegraph.ops import CONSTANT_OP, PARAMETER_OP

F32 = Shape.scalar(ElementType.F32)
F32_4 = Shape.array(ElementType.F32, (4,))
S32 = Shape.scalar(ElementType.S32)
NEG = OpKind.get("neg")


def lower_as(opcode: str):
    def lower_fn(node, loctx):
        return node.return_op(loctx.builder.op(opcode, loctx.get_operand_ops(node), node.shape()), loctx)

    return lower_fn


def unary(name: str, operand) -> Generic:
    return Generic(
        OpKind.get(name),
        [operand],
        shape_fn=operand.shape,
        hash_seed=DEFAULT_HASH_SEED,
        lower_fn=lower_as(name),
    )


def binary(name: str, lhs, rhs) -> Generic:
    return Generic(
        OpKind.get(name),
        [lhs, rhs],
        shape_fn=lhs.shape,
        hash_seed=DEFAULT_HASH_SEED,
        lower_fn=lower_as(name),
    )


class TestConstruction:
    def test_requires_exactly_one_of_shape_and_shape_fn(self) -> None:
        with pytest.raises(ValueError, match="Exactly one"):
            Node(NEG, [])
        with pytest.raises(ValueError, match="Exactly one"):
            Node(NEG, [], F32, shape_fn=lambda: F32)

    def test_requires_an_output(self) -> None:
        with pytest.raises(ValueError, match="at least one output"):
            Node(NEG, [], F32, num_outputs=0)

    def test_tuple_shape_requires_several_outputs(self) -> None:
        with pytest.raises(ValueError, match="does not match"):
            Node(NEG, [], Shape.make_tuple([F32, F32]))

    def test_several_outputs_require_tuple_shape(self) -> None:
        with pytest.raises(ValueError, match="does not match"):
            Node(NEG, [], F32, num_outputs=2)

    def test_tuple_length_must_match_outputs(self) -> None:
        with pytest.raises(ValueError, match="has 3"):
            Node(NEG, [], Shape.make_tuple([F32, F32, F32]), num_outputs=2)

    def test_operands_accept_nodes_values_and_outputs(self) -> None:
        x = Parameter("x", F32_4)
        pair = Node(OpKind.get("test::pair"), [], Shape.make_tuple([F32_4, S32]), num_outputs=2)
        node = Node(OpKind.get("test::mix"), [x, Value(pair, 1), Output(pair, 0)], shape=F32)

        assert node.operand_nodes() == (x, pair, pair)
        assert [operand.index for operand in node.operands()] == [0, 1, 0]
        assert node.operand(1) == Output(pair, 1)
        assert node.operand_values()[1] == Value(pair, 1)

    def test_operand_index_out_of_range(self) -> None:
        node = unary("neg", Parameter("x", F32_4))
        with pytest.raises(IndexError):
            node.operand(1)

    def test_as_value_rejects_other_types(self) -> None:
        with pytest.raises(TypeError, match="Expected a Value, Output or Node"):
            as_value(3)  # type: ignore[arg-type]


class TestShape:
    def test_shape_fn_runs_once(self) -> None:
        calls: list[int] = []

        def shape_fn() -> Shape:
            calls.append(1)
            return F32_4

        node = Node(NEG, [Parameter("x", F32_4)], shape_fn=shape_fn)
        assert not node.is_shape_resolved
        assert calls == []

        assert node.shape() == F32_4
        assert node.shape() == F32_4
        assert node.is_shape_resolved
        assert calls == [1]

    def test_shape_fn_runs_once_across_threads(self) -> None:
        calls: list[int] = []

        def slow_shape_fn() -> Shape:
            calls.append(1)
            time.sleep(0.05)
            return F32_4

        node = Node(NEG, [Parameter("x", F32_4)], shape_fn=slow_shape_fn)
        barrier = threading.Barrier(8)
        results: list[Shape] = []

        def worker() -> None:
            barrier.wait()
            results.append(node.shape())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert calls == [1]
        assert results == [F32_4] * 8

    def test_structurally_identical_nodes_share_cached_shape(self) -> None:
        first_calls: list[int] = []
        second_calls: list[int] = []

        first = Node(NEG, [Parameter("x", F32_4)], shape_fn=lambda: first_calls.append(1) or F32_4)
        second = Node(NEG, [Parameter("x", F32_4)], shape_fn=lambda: second_calls.append(1) or F32_4)

        assert first.shape() == F32_4
        assert second.shape() == F32_4
        assert first_calls == [1]
        assert second_calls == []
        assert len(get_shape_cache()) == 1

    def test_inferred_shape_is_checked(self) -> None:
        node = Node(NEG, [], shape_fn=lambda: Shape.make_tuple([F32, F32]))
        with pytest.raises(ValueError, match="does not match"):
            node.shape()

    def test_output_shapes_of_multi_output_node(self) -> None:
        node = Node(OpKind.get("test::pair"), [], Shape.make_tuple([F32_4, S32]), num_outputs=2)
        assert node.shape() == Shape.make_tuple([F32_4, S32])
        assert node.shape(0) == F32_4
        assert node.shape(1) == S32
        with pytest.raises(IndexError):
            node.shape(2)
        with pytest.raises(IndexError):
            node.shape(-1)

    def test_output_shape_of_single_output_node(self) -> None:
        node = Parameter("x", F32_4)
        assert node.shape(0) == F32_4
        with pytest.raises(IndexError):
            node.shape(1)


class TestHash:
    def test_identical_graphs_hash_equal(self) -> None:
        def build() -> Node:
            x = Parameter("x", F32_4)
            y = Parameter("y", F32_4)
            return unary("exp", binary("add", x, y))

        first, second = build(), build()
        assert first is not second
        assert first.hash() == second.hash()
        assert first.node_hash() == second.node_hash()

    def test_operand_order_matters(self) -> None:
        x = Parameter("x", F32_4)
        y = Parameter("y", F32_4)
        assert binary("subtract", x, y).hash() != binary("subtract", y, x).hash()

    def test_operation_matters(self) -> None:
        x = Parameter("x", F32_4)
        assert unary("exp", x).hash() != unary("log", x).hash()

    def test_shape_matters(self) -> None:
        assert Node(NEG, [], F32).hash() != Node(NEG, [], S32).hash()

    def test_seed_matters(self) -> None:
        assert Node(NEG, [], F32, hash_seed=1).hash() != Node(NEG, [], F32, hash_seed=2).hash()
        assert Node(NEG, [], F32, hash_seed=7).hash_seed() == 7

    def test_output_index_of_operand_matters(self) -> None:
        pair = Node(OpKind.get("test::pair"), [], Shape.make_tuple([F32, F32]), num_outputs=2)
        first = Node(NEG, [Value(pair, 0)], F32)
        second = Node(NEG, [Value(pair, 1)], F32)
        assert first.hash() != second.hash()

    def test_node_hash_ignores_operands(self) -> None:
        a = unary("neg", Parameter("a", F32_4))
        b = unary("neg", Parameter("b", F32_4))
        assert a.node_hash() == b.node_hash()
        assert a.hash() != b.hash()

    def test_deep_lazy_chain(self) -> None:
        node: Node = Parameter("x", F32_4)
        for _ in range(5000):
            node = unary("neg", node)

        assert node.shape() == F32_4
        assert node.hash() == node.clone(node.operand_values()).hash()

    def test_hash_forces_shape(self) -> None:
        node = unary("neg", Parameter("x", F32_4))
        assert not node.is_shape_resolved
        node.hash()
        assert node.is_shape_resolved


class TestClone:
    def test_clone_with_same_operands_hashes_equal(self) -> None:
        x = Parameter("x", F32_4)
        node = unary("neg", x)
        clone = node.clone([x])

        assert clone is not node
        assert type(clone) is Generic
        assert clone.hash() == node.hash()
        assert clone.lower_fn is node.lower_fn

    def test_clone_with_other_operands(self) -> None:
        node = unary("neg", Parameter("x", F32_4))
        y = Parameter("y", F32_4)
        clone = node.clone([y])

        assert clone.operand_nodes() == (y,)
        assert clone.node_hash() == node.node_hash()
        assert clone.hash() != node.hash()
        assert node.operand(0).node is not y

    def test_clone_keeps_metadata_and_shape(self) -> None:
        x = Parameter("x", F32_4)
        calls: list[int] = []
        with ScopePusher("block"):
            node = Node(NEG, [x], shape_fn=lambda: calls.append(1) or F32_4)
        clone = node.clone([Parameter("z", F32_4)])

        assert clone.metadata() == node.metadata()
        assert clone.shape() == F32_4
        assert calls == [1]

    def test_clone_keeps_subclass_data(self) -> None:
        constant = Constant(2.5, F32)
        clone = constant.clone([])
        assert isinstance(clone, Constant)
        assert clone.value == 2.5
        assert clone.hash() == constant.hash()


class TestMetadata:
    def test_records_scope(self) -> None:
        with ScopePusher("encoder"), ScopePusher("layer0"):
            inner = Parameter("x", F32_4)
        outer = Parameter("x", F32_4)

        assert inner.metadata().scope == "encoder/layer0"
        assert outer.metadata().scope == ""

    def test_scope_does_not_change_hash(self) -> None:
        with ScopePusher("scoped"):
            inner = Parameter("x", F32_4)
        assert inner.hash() == Parameter("x", F32_4).hash()

    def test_no_frames_by_default(self) -> None:
        assert Parameter("x", F32_4).metadata().frame_info == ()

    def test_captures_frames_when_enabled(self) -> None:
        with trace_config(capture_frames=True, max_frames=2):
            node = Parameter("x", F32_4)

        frames = node.metadata().frame_info
        assert 1 <= len(frames) <= 2
        assert frames[0].function == "test_captures_frames_when_enabled"
        assert frames[0].file.endswith("test_node.py")

    def test_logs_creation_when_enabled(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="tracegraph"), trace_config(log_graph_changes=True):
            Parameter("x", F32_4)

        assert "Created IR node xla::parameter with 0 operand(s)" in caplog.text


class TestLowering:
    def test_base_node_cannot_be_lowered(self) -> None:
        node = Node(OpKind.get("test::opaque"), [], F32)
        with pytest.raises(NotImplementedError, match="Lowering not implemented for node: test::opaque"):
            node.lower(LoweringContext())

    def test_return_op_requires_single_output(self) -> None:
        loctx = LoweringContext()
        node = Node(OpKind.get("test::pair"), [], Shape.make_tuple([F32, F32]), num_outputs=2)
        op = loctx.builder.constant(0, F32)
        with pytest.raises(ValueError, match="2 outputs"):
            node.return_op(op, loctx)

    def test_return_ops_requires_one_op_per_output(self) -> None:
        loctx = LoweringContext()
        node = Node(OpKind.get("test::pair"), [], Shape.make_tuple([F32, F32]), num_outputs=2)
        op = loctx.builder.constant(0, F32)
        with pytest.raises(ValueError, match="1 operations"):
            node.return_ops([op], loctx)


class TestNodeCast:
    def test_cast_matching_op(self) -> None:
        node: Node = Constant(1.0, F32)
        assert node_cast(node, Constant, CONSTANT_OP) is node

    def test_cast_other_op(self) -> None:
        node: Node = Constant(1.0, F32)
        assert node_cast(node, Parameter, PARAMETER_OP) is None

    def test_cast_inconsistent_class(self) -> None:
        impostor = Node(CONSTANT_OP, [], F32)
        with pytest.raises(TypeError, match="not a Constant"):
            node_cast(impostor, Constant, CONSTANT_OP)

    def test_make_node(self) -> None:
        node = make_node(Parameter, "x", F32_4)
        assert isinstance(node, Parameter)
        assert node.name == "x"


class TestString:
    def test_str(self) -> None:
        x = Parameter("x", F32_4)
        assert str(unary("neg", x)) == "xla::neg, shape=f32[4]"

    def test_str_with_outputs_and_scope(self) -> None:
        with ScopePusher("block"):
            node = Node(OpKind.get("test::pair"), [], Shape.make_tuple([F32, S32]), num_outputs=2)
        assert str(node) == "test::pair, shape=(f32[], s32[]), num_outputs=2, scope=block"

    def test_repr(self) -> None:
        assert repr(Parameter("x", F32_4)).startswith("<Parameter xla::parameter at 0x")
