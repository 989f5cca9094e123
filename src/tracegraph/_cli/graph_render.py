"""Rich rendering utilities for graph commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

if TYPE_CHECKING:
    from rich.console import Console

    from .graph_query import GraphStats, TreeNode


def render_stats(stats: GraphStats, console: Console) -> None:
    """Render graph statistics as Rich tables.

    Args:
        stats: GraphStats to render.
        console: Rich Console to output to.

    """
    console.print(f"[cyan]Nodes:[/cyan]         {stats.node_count}")
    console.print(f"[cyan]Sources:[/cyan]       {stats.source_count}")
    console.print(f"[cyan]Unique hashes:[/cyan] {stats.unique_hash_count}")
    if stats.unique_hash_count < stats.node_count:
        duplicates = stats.node_count - stats.unique_hash_count
        console.print(f"[yellow]{duplicates} node(s) duplicate an existing subgraph[/yellow]")
    console.print()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Operation", style="bold")
    table.add_column("Count", justify="right")
    for op_name, count in stats.op_counts:
        table.add_row(escape(op_name), str(count))
    console.print(table)

    roots = Table(show_header=True, header_style="bold cyan")
    roots.add_column("Root")
    roots.add_column("Hash", style="dim")
    for root in stats.roots:
        roots.add_row(escape(root.label), f"{root.hash:016x}")
    console.print(roots)

    if stats.scopes:
        console.print("[cyan]Scopes:[/cyan]")
        for scope in stats.scopes:
            console.print(f"  {escape(scope)}")


def render_tree(tree_node: TreeNode, console: Console) -> None:
    """Render an operand tree using Rich Tree.

    Args:
        tree_node: TreeNode root to render.
        console: Rich Console to output to.

    """
    label = f"[bold]{escape(tree_node.label)}[/bold]"
    if tree_node.truncated:
        label += " [dim](operands not shown)[/dim]"
    rich_tree = Tree(label)
    _add_tree_children(rich_tree, tree_node.children)
    console.print(rich_tree)


def _add_tree_children(parent: Tree, children: list[TreeNode]) -> None:
    stack = [(parent, child) for child in reversed(children)]
    while stack:
        rich_parent, child = stack.pop()
        label = escape(child.label)
        if child.repeated:
            label += " [dim](see above)[/dim]"
        elif child.truncated:
            label += " [dim](operands not shown)[/dim]"
        child_tree = rich_parent.add(label)
        stack.extend((child_tree, grandchild) for grandchild in reversed(child.children))
