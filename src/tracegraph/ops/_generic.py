"""Nodes whose lowering is supplied as a function."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tracegraph._ir import DEFAULT_HASH_SEED, Node

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from tracegraph._hashing import HashT
    from tracegraph._ir import OpKind
    from tracegraph._ir._node import OperandLike, ShapeFn
    from tracegraph._lowering import BackendOp, LoweringContext
    from tracegraph._shape import Shape

type LowerFn = Callable[[Generic, LoweringContext], list[BackendOp]]


class Generic(Node):
    """A node lowered by a user supplied ``lower_fn(node, loctx)``.

    This is the quickest way for a tracer to add operations without defining a
    node class per operation. ``hash_seed`` should tell apart generic nodes
    that share an operation but lower differently (for instance, different
    attributes). With a ``shape_fn`` the seed is required: inferred shapes are
    shared through the shape cache, so the seed must cover every attribute the
    shape function reads.

    Example:
        >>> add = Generic(
        ...     OpKind.get("add"),
        ...     [x, y],
        ...     shape_fn=lambda: x.shape(),
        ...     hash_seed=DEFAULT_HASH_SEED,
        ...     lower_fn=lambda node, loctx: node.return_op(
        ...         loctx.builder.op("add", loctx.get_operand_ops(node), node.shape()), loctx
        ...     ),
        ... )

    """

    __slots__ = ("lower_fn",)

    def __init__(
        self,
        op: OpKind,
        operands: Iterable[OperandLike] = (),
        shape: Shape | None = None,
        *,
        lower_fn: LowerFn,
        shape_fn: ShapeFn | None = None,
        num_outputs: int = 1,
        hash_seed: HashT | None = None,
    ) -> None:
        if hash_seed is None:
            if shape_fn is not None:
                msg = f"Generic node {op} with a shape_fn needs an explicit hash_seed"
                raise ValueError(msg)
            hash_seed = DEFAULT_HASH_SEED
        super().__init__(op, operands, shape, shape_fn=shape_fn, num_outputs=num_outputs, hash_seed=hash_seed)
        self.lower_fn = lower_fn

    def lower(self, loctx: LoweringContext) -> list[BackendOp]:
        return self.lower_fn(self, loctx)
