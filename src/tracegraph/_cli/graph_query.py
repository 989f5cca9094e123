"""Graph query functions for CLI commands.

This module provides pure functions for summarizing IR graphs.
These are the functional core - no I/O, no Rich rendering.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tracegraph._graph import DependencyGraph
from tracegraph._ir import as_value

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracegraph._ir import Node
    from tracegraph._ir._node import OperandLike


@dataclass(frozen=True, slots=True)
class RootInfo:
    """A graph output with its structural hash."""

    label: str
    hash: int


@dataclass(frozen=True, slots=True)
class GraphStats:
    """Summary of a graph for the stats command."""

    node_count: int
    source_count: int
    unique_hash_count: int
    op_counts: list[tuple[str, int]]
    roots: list[RootInfo]
    scopes: list[str]


@dataclass(slots=True)
class TreeNode:
    """A node in an operand tree for rendering."""

    label: str
    children: list[TreeNode] = field(default_factory=list)
    repeated: bool = False
    truncated: bool = False


def compute_stats(roots: Sequence[OperandLike]) -> GraphStats:
    """Summarize the graph reachable from roots."""
    values = [as_value(root) for root in roots]
    graph = DependencyGraph.from_roots(value.node for value in values)
    op_counts = Counter(str(node.op) for node in graph)
    scopes = sorted({node.metadata().scope for node in graph if node.metadata().scope})
    return GraphStats(
        node_count=len(graph),
        source_count=len(graph.sources()),
        unique_hash_count=len({node.hash() for node in graph}),
        op_counts=sorted(op_counts.items(), key=lambda item: (-item[1], item[0])),
        roots=[
            RootInfo(label=f"{value.node.op}#{value.index}", hash=value.hash())
            for value in values
        ],
        scopes=scopes,
    )


def build_operand_tree(root: Node, *, max_depth: int | None = None) -> TreeNode:
    """Build a tree of operands below root.

    Nodes reached a second time are marked as repeated and not expanded again.
    Nodes at ``max_depth`` that still have operands are marked as truncated.
    """
    expanded: set[Node] = set()
    tree = TreeNode(label=str(root))
    # Children are pushed in reverse so nodes are visited in depth-first pre-order.
    stack: list[tuple[Node, TreeNode, int]] = [(root, tree, 0)]
    while stack:
        node, tree_node, depth = stack.pop()
        if node in expanded:
            tree_node.repeated = True
            continue
        expanded.add(node)
        operands = node.operand_nodes()
        if max_depth is not None and depth >= max_depth:
            tree_node.truncated = bool(operands)
            continue
        tree_node.children = [TreeNode(label=str(operand)) for operand in operands]
        stack.extend(
            (operand, child, depth + 1)
            for operand, child in reversed(list(zip(operands, tree_node.children, strict=True)))
        )
    return tree
