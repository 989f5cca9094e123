"""Graph module providing traversals and rewrites of IR graphs.

This module contains:
- compute_post_order: Operands-first traversal with cycle detection
- DependencyGraph: A read-only view with user (reverse) edges
- deduplicate: Structural common-subexpression elimination
"""

from ._algorithms import CycleError, compute_post_order, nodes_count, topological_sort
from ._dependency_graph import DependencyGraph
from ._rewrite import deduplicate

__all__ = [
    "CycleError",
    "DependencyGraph",
    "compute_post_order",
    "deduplicate",
    "nodes_count",
    "topological_sort",
]
