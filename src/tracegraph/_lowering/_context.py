"""Lowering of IR graphs into backend computations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from tracegraph._graph import CycleError, compute_post_order
from tracegraph._ir import Output, as_value

from ._builder import HloTextBuilder

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracegraph._ir import Node
    from tracegraph._ir._node import OperandLike
    from tracegraph._shape import Shape

    from ._builder import BackendOp, Builder, Computation

logger = logging.getLogger(__name__)


class LoweringError(RuntimeError):
    """Lowering could not complete. The lowering context must be discarded."""


class ParameterNode(Protocol):
    """A leaf node that lowers to a computation parameter."""

    @property
    def name(self) -> str: ...

    def shape(self, output_index: int | None = None) -> Shape: ...


class LoweringContext:
    """Lowers IR graphs into a backend builder, one node at a time.

    The context maps every lowered (node, output index) to the backend
    operation produced for it, so each node is lowered once and its users pick
    up the recorded operations as their operands.

    A failed lowering leaves the context unusable: the whole trace must be
    lowered again in a fresh context.

    Example:
        >>> loctx = LoweringContext("add")
        >>> computation = loctx.build([z])
        >>> print(computation.to_text())

    """

    def __init__(self, name: str = "computation", builder: Builder | None = None) -> None:
        self.name = name
        self._builder: Builder = builder if builder is not None else HloTextBuilder(name)
        self._output_ops: dict[Output, BackendOp] = {}
        # Strong references keep the weakly referenced Output keys valid.
        self._emitted: list[Node] = []
        self._emitted_set: set[Node] = set()
        self._parameters: dict[str, BackendOp] = {}
        self._failed = False

    @property
    def builder(self) -> Builder:
        return self._builder

    @property
    def emitted_nodes(self) -> tuple[Node, ...]:
        """Lowered nodes, in lowering order."""
        return tuple(self._emitted)

    @property
    def parameters(self) -> tuple[BackendOp, ...]:
        """Parameters in order of first use."""
        return tuple(self._parameters.values())

    def _check_usable(self) -> None:
        if self._failed:
            msg = f"Lowering context '{self.name}' is unusable after a failed lowering"
            raise LoweringError(msg)

    def assign_output_op(self, output: Output, op: BackendOp) -> None:
        """Record the backend operation computing an output."""
        self._output_ops[output] = op

    def get_output_op(self, output: Output) -> BackendOp:
        """Get the backend operation of an output, lowering its node if needed.

        Raises:
            LoweringError: If the node was lowered but did not register the output.

        """
        op = self._output_ops.get(output)
        if op is None:
            if output.node not in self._emitted_set:
                self.lower([output.node])
            op = self._output_ops.get(output)
            if op is None:
                msg = f"No backend operation registered for output {output.index} of {output.node}"
                raise LoweringError(msg)
        return op

    def get_operand_ops(self, node: Node) -> list[BackendOp]:
        """Backend operations of all operands of a node, in operand order."""
        return [self.get_output_op(operand) for operand in node.operands()]

    def get_parameter(self, node: ParameterNode) -> BackendOp:
        """Get the computation parameter for a parameter node.

        Parameters are numbered in order of first use. Nodes with the same
        name share a parameter.
        """
        op = self._parameters.get(node.name)
        if op is None:
            number = len(self._parameters)
            logger.debug("Allocating parameter %d for '%s'", number, node.name)
            op = self._builder.parameter(number, node.shape(), node.name)
            self._parameters[node.name] = op
        elif op.shape != node.shape():
            msg = f"Parameter '{node.name}' used with shapes {op.shape} and {node.shape()}"
            raise LoweringError(msg)
        return op

    def lower_node(self, node: Node) -> list[BackendOp]:
        """Lower a single node whose operands can be resolved.

        Returns the recorded operations if the node was already lowered.
        """
        self._check_usable()
        if node in self._emitted_set:
            return [self._output_ops[Output(node, index)] for index in range(node.num_outputs())]

        logger.debug("Lowering %s", node.op)
        try:
            ops = node.lower(self)
            if len(ops) != node.num_outputs():
                msg = f"Lowering of {node} produced {len(ops)} operation(s) for {node.num_outputs()} output(s)"
                raise LoweringError(msg)
            for index, op in enumerate(ops):
                self._output_ops.setdefault(Output(node, index), op)
        except Exception as e:
            self._failed = True
            e.add_note(f"while lowering node: {node.op} (scope={node.metadata().scope!r})")
            raise

        self._emitted.append(node)
        self._emitted_set.add(node)
        return ops

    def lower(self, roots: Sequence[OperandLike]) -> list[BackendOp]:
        """Lower every node reachable from roots, operands first.

        Args:
            roots: Graph outputs, as nodes (first output) or values.

        Returns:
            The backend operation of each root, in order.

        Raises:
            CycleError: If the graph contains a cycle.

        """
        self._check_usable()
        values = [as_value(root) for root in roots]
        try:
            order = compute_post_order(value.node for value in values)
        except CycleError:
            self._failed = True
            raise
        logger.debug("Lowering %d node(s) into '%s'", len(order), self.name)
        for node in order:
            if node not in self._emitted_set:
                self.lower_node(node)
        return [self.get_output_op(value.to_output()) for value in values]

    def build(self, roots: Sequence[OperandLike]) -> Computation:
        """Lower roots and build the computation.

        A single root becomes the computation root; several roots are returned
        as a tuple.
        """
        ops = self.lower(roots)
        if not ops:
            msg = "Cannot build a computation without roots"
            raise LoweringError(msg)
        root = ops[0] if len(ops) == 1 else self._builder.tuple(ops)
        return self._builder.build(root)
