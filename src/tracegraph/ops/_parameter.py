"""Computation inputs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tracegraph._hashing import string_hash
from tracegraph._ir import Node, OpKind

if TYPE_CHECKING:
    from tracegraph._lowering import BackendOp, LoweringContext
    from tracegraph._shape import Shape

PARAMETER_OP = OpKind.get("xla::parameter")


class Parameter(Node):
    """A named input of the traced computation.

    Parameters with the same name and shape are the same input: they hash
    equal and lower to the same computation parameter.
    """

    __slots__ = ("name",)

    def __init__(self, name: str, shape: Shape) -> None:
        if shape.is_tuple:
            msg = "Parameters cannot have tuple shapes"
            raise ValueError(msg)
        super().__init__(PARAMETER_OP, (), shape, hash_seed=string_hash(name))
        self.name = name

    def lower(self, loctx: LoweringContext) -> list[BackendOp]:
        return self.return_op(loctx.get_parameter(self), loctx)

    def __str__(self) -> str:
        return f"{super().__str__()}, name={self.name}"
