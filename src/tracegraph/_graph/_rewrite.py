"""Graph rewrites driven by structural hashes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tracegraph._ir import Value

from ._algorithms import compute_post_order

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracegraph._hashing import HashT
    from tracegraph._ir import Node

logger = logging.getLogger(__name__)


def deduplicate(roots: Sequence[Node]) -> list[Node]:
    """Merge structurally identical subgraphs.

    Nodes with the same ``hash()`` compute the same thing, so all of them are
    replaced by the first one met in post order. Users whose operands changed
    are rebuilt with ``Node.clone``; untouched nodes are reused as they are.

    Args:
        roots: The graph outputs.

    Returns:
        The rewritten roots, in the same order.

    """
    canonical: dict[HashT, Node] = {}
    replacement: dict[Node, Node] = {}

    for node in compute_post_order(roots):
        values = node.operand_values()
        new_values = [Value(replacement[value.node], value.index) for value in values]
        changed = any(new.node is not old.node for new, old in zip(new_values, values, strict=True))
        rewritten = node.clone(new_values) if changed else node

        existing = canonical.setdefault(rewritten.hash(), rewritten)
        if existing is not rewritten:
            logger.debug("Merging duplicate %s into existing node", node.op)
        replacement[node] = existing

    return [replacement[root] for root in roots]
