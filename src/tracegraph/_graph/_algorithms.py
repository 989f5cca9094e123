"""Graph algorithms over IR nodes."""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Collection, Hashable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tracegraph._ir import Node


class CycleError(ValueError):
    """The graph contains a cycle."""


def topological_sort[T: Hashable](successors: Mapping[T, Collection[T]]) -> list[T]:
    """Sort a graph topologically (dependencies before dependents).

    Given a graph represented as a mapping from nodes to their successors
    (nodes that depend on them), return nodes in an order where each node
    appears before all nodes that depend on it.

    Args:
        successors: Mapping from node to collection of nodes that depend on it.
            An edge (a -> b) means "b depends on a".

    Returns:
        List of nodes in topological order. Ties keep the mapping's order.

    Raises:
        CycleError: If the graph contains a cycle.

    Example:
        >>> topological_sort({"a": ["b"], "b": ["c"], "c": []})
        ['a', 'b', 'c']

    """
    indegree: dict[T, int] = defaultdict(int)
    for node, deps in successors.items():
        indegree[node] = indegree.get(node, 0)
        for dep in deps:
            indegree[dep] += 1

    queue = deque([node for node, deg in indegree.items() if deg == 0])
    order: list[T] = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for successor in successors.get(node, []):
            indegree[successor] -= 1
            if indegree[successor] == 0:
                queue.append(successor)

    if len(order) != len(indegree):
        msg = "Cycle detected in graph"
        raise CycleError(msg)

    return order


def compute_post_order(roots: Iterable[Node]) -> list[Node]:
    """List every node reachable from roots, operands before their users.

    Each node appears exactly once. Operands are visited in operand order and
    roots in the given order, so the result is deterministic.

    Raises:
        CycleError: If a node is reachable from one of its own operands.

    """
    order: list[Node] = []
    done: set[Node] = set()
    visiting: set[Node] = set()

    for root in roots:
        if root in done:
            continue
        visiting.add(root)
        stack: list[tuple[Node, Iterator[Node]]] = [(root, iter(root.operand_nodes()))]
        while stack:
            node, pending = stack[-1]
            for operand in pending:
                if operand in done:
                    continue
                if operand in visiting:
                    msg = f"Cycle detected in graph at node {operand.op}"
                    raise CycleError(msg)
                visiting.add(operand)
                stack.append((operand, iter(operand.operand_nodes())))
                break
            else:
                stack.pop()
                visiting.discard(node)
                done.add(node)
                order.append(node)

    return order


def nodes_count(roots: Iterable[Node]) -> int:
    """Number of distinct nodes reachable from roots."""
    return len(compute_post_order(roots))
