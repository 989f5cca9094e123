"""Backend builders that lowered nodes emit operations into."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from tracegraph._shape import Shape

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

_builder_ids = itertools.count()


@dataclass(frozen=True, slots=True)
class BackendOp:
    """Handle on an operation emitted into a builder.

    Attributes:
        builder_id: Identifies the builder owning the operation.
        id: Position of the operation within its builder.
        name: Printable name, unique within the builder.
        shape: Shape of the operation's result.

    """

    builder_id: int
    id: int
    name: str
    shape: Shape

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Instruction:
    """One emitted operation with its inputs."""

    result: BackendOp
    opcode: str
    operands: tuple[BackendOp, ...] = ()
    attributes: tuple[tuple[str, str], ...] = ()
    payload: str = ""

    def to_text(self) -> str:
        args = ", ".join(str(operand) for operand in self.operands) or self.payload
        attrs = "".join(f", {key}={value}" for key, value in self.attributes)
        return f"{self.result} = {self.result.shape} {self.opcode}({args}){attrs}"


@dataclass(frozen=True, slots=True)
class Computation:
    """The result of building: instructions in emission order and a root."""

    name: str
    instructions: tuple[Instruction, ...]
    root: BackendOp
    parameters: tuple[BackendOp, ...] = field(default_factory=tuple)

    def to_text(self) -> str:
        """Render the computation as HLO-like text."""
        lines = [f"HloModule {self.name}", "", f"ENTRY {self.name} {{"]
        for instruction in self.instructions:
            prefix = "ROOT " if instruction.result == self.root else ""
            lines.append(f"  {prefix}{instruction.to_text()}")
        lines.append("}")
        return "\n".join(lines)


class Builder(Protocol):
    """What a lowering context needs from a backend.

    Each method emits one operation and returns its handle; ``build`` closes the
    computation over a root operation.
    """

    name: str

    def parameter(self, number: int, shape: Shape, name: str) -> BackendOp: ...

    def constant(self, value: object, shape: Shape) -> BackendOp: ...

    def op(
        self,
        opcode: str,
        operands: Sequence[BackendOp],
        shape: Shape,
        attributes: Mapping[str, object] | None = None,
    ) -> BackendOp: ...

    def get_tuple_element(self, operand: BackendOp, index: int) -> BackendOp: ...

    def tuple(self, operands: Sequence[BackendOp]) -> BackendOp: ...

    def build(self, root: BackendOp) -> Computation: ...


class HloTextBuilder:
    """Reference builder recording instructions for an HLO-like text dump."""

    def __init__(self, name: str = "computation") -> None:
        self.name = name
        self._id = next(_builder_ids)
        self._instructions: list[Instruction] = []
        self._parameters: dict[int, BackendOp] = {}

    @property
    def instructions(self) -> tuple[Instruction, ...]:
        return tuple(self._instructions)

    def _emit(
        self,
        opcode: str,
        shape: Shape,
        operands: Sequence[BackendOp] = (),
        attributes: Mapping[str, object] | None = None,
        label: str | None = None,
        payload: str = "",
    ) -> BackendOp:
        for operand in operands:
            if operand.builder_id != self._id:
                msg = f"Operand {operand} was emitted by another builder"
                raise ValueError(msg)
        op_id = len(self._instructions)
        result = BackendOp(builder_id=self._id, id=op_id, name=f"%{label or opcode}.{op_id}", shape=shape)
        self._instructions.append(
            Instruction(
                result=result,
                opcode=opcode,
                operands=tuple(operands),
                attributes=tuple((key, _format_attribute(value)) for key, value in (attributes or {}).items()),
                payload=payload,
            ),
        )
        return result

    def parameter(self, number: int, shape: Shape, name: str) -> BackendOp:
        if number in self._parameters:
            msg = f"Parameter number {number} is already defined"
            raise ValueError(msg)
        op = self._emit("parameter", shape, label=name, payload=str(number))
        self._parameters[number] = op
        return op

    def constant(self, value: object, shape: Shape) -> BackendOp:
        return self._emit("constant", shape, payload=_format_attribute(value))

    def op(
        self,
        opcode: str,
        operands: Sequence[BackendOp],
        shape: Shape,
        attributes: Mapping[str, object] | None = None,
    ) -> BackendOp:
        return self._emit(opcode, shape, operands, attributes)

    def get_tuple_element(self, operand: BackendOp, index: int) -> BackendOp:
        return self._emit("get-tuple-element", operand.shape.tuple_shape(index), [operand], {"index": index})

    def tuple(self, operands: Sequence[BackendOp]) -> BackendOp:
        return self._emit("tuple", Shape.make_tuple([operand.shape for operand in operands]), operands)

    def build(self, root: BackendOp) -> Computation:
        if root.builder_id != self._id:
            msg = f"Root {root} was emitted by another builder"
            raise ValueError(msg)
        return Computation(
            name=self.name,
            instructions=tuple(self._instructions),
            root=root,
            parameters=tuple(self._parameters[number] for number in sorted(self._parameters)),
        )


def _format_attribute(value: object) -> str:
    if isinstance(value, (list, tuple)):
        return "{" + ",".join(_format_attribute(item) for item in value) + "}"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
