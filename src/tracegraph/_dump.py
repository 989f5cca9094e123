"""Text and Graphviz renderings of IR graphs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ._graph import compute_post_order
from ._ir import as_value

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._ir import Node
    from ._ir._node import OperandLike


def _node_ids(order: list[Node]) -> dict[Node, int]:
    return {node: index for index, node in enumerate(order)}


def _operand_ref(ids: dict[Node, int], node: Node, index: int) -> str:
    ref = f"%{ids[node]}"
    return ref if node.num_outputs() == 1 else f"{ref}.{index}"


def to_text(roots: Sequence[OperandLike]) -> str:
    """Render the graph as one line per node, operands first.

    Example:
        >>> print(to_text([z]))
        IR {
          %0 = xla::parameter(), shape=f32[4], name=x
          %1 = xla::neg(%0), shape=f32[4]
          ROOT %1
        }

    """
    values = [as_value(root) for root in roots]
    order = compute_post_order(value.node for value in values)
    ids = _node_ids(order)

    lines = ["IR {"]
    for node in order:
        operands = ", ".join(_operand_ref(ids, out.node, out.index) for out in node.operands())
        # The node's own string starts with the operation name.
        _, _, details = str(node).partition(", ")
        lines.append(f"  %{ids[node]} = {node.op}({operands}), {details}")
    lines.append("  ROOT " + ", ".join(_operand_ref(ids, value.node, value.index) for value in values))
    lines.append("}")
    return "\n".join(lines)


def _escape_dot(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def to_dot(roots: Sequence[OperandLike]) -> str:
    """Render the graph in Graphviz DOT format, edges pointing from operands to users."""
    values = [as_value(root) for root in roots]
    order = compute_post_order(value.node for value in values)
    ids = _node_ids(order)
    root_nodes = {value.node for value in values}

    lines = ["digraph G {"]
    for node in order:
        label_lines = [str(node.op), f"shape={node.shape()}"]
        scope = node.metadata().scope
        if scope:
            label_lines.append(f"scope={scope}")
        # DOT line breaks are a literal backslash followed by "n".
        label = "\\n".join(_escape_dot(line) for line in label_lines)
        style = ", style=filled, fillcolor=lightblue" if node in root_nodes else ""
        lines.append(f'  node{ids[node]} [label="{label}"{style}]')
    for node in order:
        for position, operand in enumerate(node.operands()):
            attrs = [f'label="i={position}"']
            if operand.node.num_outputs() > 1:
                attrs.append(f'taillabel="{operand.index}"')
            lines.append(f"  node{ids[operand.node]} -> node{ids[node]} [{', '.join(attrs)}]")
    lines.append("}")
    return "\n".join(lines)
