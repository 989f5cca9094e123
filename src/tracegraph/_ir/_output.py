"""Handles on node result slots.

A node may produce several results. ``Value`` and ``Output`` both name one of
them as a (node, index) pair; they differ only in ownership:

- ``Value`` holds a strong reference and is what operands are made of. A node
  keeps its operands alive through the values it was built from.
- ``Output`` holds a weak reference. It is used for bookkeeping that must not
  keep nodes alive (operand lookups, lowering maps), so the graph never forms
  reference cycles.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING

from tracegraph._hashing import HashT, hash_combine

if TYPE_CHECKING:
    from tracegraph._shape import Shape

    from ._node import Node


class Output:
    """A non-owning reference to one output of a node."""

    __slots__ = ("_hash", "_ref", "index")

    def __init__(self, node: Node, index: int = 0) -> None:
        self._ref: weakref.ref[Node] = weakref.ref(node)
        self.index = index
        self._hash = hash((self._ref, index))

    @property
    def node(self) -> Node:
        """The node providing the output.

        Raises:
            ReferenceError: If the node has already been garbage collected.

        """
        node = self._ref()
        if node is None:
            msg = f"Output #{self.index} refers to a node that no longer exists"
            raise ReferenceError(msg)
        return node

    @property
    def is_alive(self) -> bool:
        return self._ref() is not None

    def shape(self) -> Shape:
        """Shape of this output (the tuple element for multi-output nodes)."""
        return self.node.shape(self.index)

    def node_shape(self) -> Shape:
        """Full shape of the producing node."""
        return self.node.shape()

    def hash(self) -> HashT:
        return hash_combine(self.node.hash(), self.index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Output):
            return NotImplemented
        return self.index == other.index and self._ref() is other._ref() and self._ref() is not None

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        node = self._ref()
        target = node.op if node is not None else "<dead>"
        return f"Output({target}, index={self.index})"

    def __str__(self) -> str:
        return f"{self.node}, index={self.index}"


class Value:
    """An owning reference to one output of a node, used as an operand edge."""

    __slots__ = ("index", "node")

    def __init__(self, node: Node, index: int = 0) -> None:
        self.node = node
        self.index = index

    def shape(self) -> Shape:
        """Shape of this value (the tuple element for multi-output nodes)."""
        return self.node.shape(self.index)

    def node_shape(self) -> Shape:
        """Full shape of the producing node."""
        return self.node.shape()

    def hash(self) -> HashT:
        return hash_combine(self.node.hash(), self.index)

    def to_output(self) -> Output:
        """Drop ownership, keeping the (node, index) identity."""
        return Output(self.node, self.index)

    def __bool__(self) -> bool:
        return self.node is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.node is other.node and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self.node), self.index))

    def __repr__(self) -> str:
        return f"Value({self.node.op}, index={self.index})"
