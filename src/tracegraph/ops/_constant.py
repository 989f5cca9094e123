"""Literal constants."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tracegraph._hashing import data_hash
from tracegraph._ir import Node, OpKind

if TYPE_CHECKING:
    from tracegraph._lowering import BackendOp, LoweringContext
    from tracegraph._shape import Shape

CONSTANT_OP = OpKind.get("xla::constant")


class Constant(Node):
    """A literal value. Scalars are plain numbers, arrays nested lists/tuples."""

    __slots__ = ("value",)

    def __init__(self, value: object, shape: Shape) -> None:
        if shape.is_tuple:
            msg = "Constants cannot have tuple shapes"
            raise ValueError(msg)
        super().__init__(CONSTANT_OP, (), shape, hash_seed=data_hash(value))
        self.value = value

    def lower(self, loctx: LoweringContext) -> list[BackendOp]:
        return self.return_op(loctx.builder.constant(self.value, self.shape()), loctx)

    def __str__(self) -> str:
        return f"{super().__str__()}, value={self.value!r}"
