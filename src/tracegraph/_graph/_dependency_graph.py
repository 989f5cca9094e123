"""Read-only view of an IR graph with edges in both directions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ._algorithms import compute_post_order, topological_sort

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from tracegraph._ir import Node


@dataclass(frozen=True, slots=True)
class DependencyGraph:
    """The nodes reachable from a set of roots, with user edges.

    Nodes only know their operands. This view adds the reverse direction
    ("which nodes use this one") without storing it on the nodes, so the
    graph itself stays free of reference cycles.

    Attributes:
        _order: Reachable nodes in post order (operands first).
        _outputs: The roots the graph was built from, without duplicates.
        _operands: Mapping from node to its distinct operand nodes.
        _users: Mapping from node to the distinct nodes using it.

    """

    _order: tuple[Node, ...] = ()
    _outputs: tuple[Node, ...] = ()
    _operands: dict[Node, tuple[Node, ...]] = field(default_factory=dict)
    _users: dict[Node, tuple[Node, ...]] = field(default_factory=dict)

    @classmethod
    def from_roots(cls, roots: Iterable[Node]) -> DependencyGraph:
        """Build the graph of everything reachable from roots.

        Raises:
            CycleError: If the node graph contains a cycle.

        """
        outputs = tuple(dict.fromkeys(roots))
        order = compute_post_order(outputs)
        operands: dict[Node, tuple[Node, ...]] = {}
        users: dict[Node, list[Node]] = {node: [] for node in order}
        for node in order:
            distinct = tuple(dict.fromkeys(node.operand_nodes()))
            operands[node] = distinct
            for operand in distinct:
                users[operand].append(node)
        return cls(
            _order=tuple(order),
            _outputs=outputs,
            _operands=operands,
            _users={node: tuple(node_users) for node, node_users in users.items()},
        )

    @property
    def nodes(self) -> tuple[Node, ...]:
        """All nodes, operands before users."""
        return self._order

    @property
    def outputs(self) -> tuple[Node, ...]:
        return self._outputs

    def operands_of(self, node: Node) -> tuple[Node, ...]:
        return self._operands.get(node, ())

    def users_of(self, node: Node) -> tuple[Node, ...]:
        return self._users.get(node, ())

    def sources(self) -> tuple[Node, ...]:
        """Nodes without operands (parameters, constants)."""
        return tuple(node for node in self._order if not self._operands[node])

    def sinks(self) -> tuple[Node, ...]:
        """Nodes nothing else in the graph uses."""
        return tuple(node for node in self._order if not self._users[node])

    def ancestors(self, node: Node) -> frozenset[Node]:
        """All nodes the given node transitively depends on."""
        visited: set[Node] = set()
        stack = list(self.operands_of(node))
        while stack:
            current = stack.pop()
            if current not in visited:
                visited.add(current)
                stack.extend(self.operands_of(current))
        return frozenset(visited)

    def descendants(self, node: Node) -> frozenset[Node]:
        """All nodes that transitively depend on the given node."""
        visited: set[Node] = set()
        stack = list(self.users_of(node))
        while stack:
            current = stack.pop()
            if current not in visited:
                visited.add(current)
                stack.extend(self.users_of(current))
        return frozenset(visited)

    def topological_order(self) -> list[Node]:
        """Nodes ordered breadth-first from the sources."""
        return topological_sort(self._users)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, node: object) -> bool:
        return node in self._users

    def __iter__(self) -> Iterator[Node]:
        return iter(self._order)
