import logging
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from tracegraph._config import ConfigError, get_config_from_pyproject, load_config
from tracegraph._context import set_trace_config
from tracegraph._dump import to_dot, to_text
from tracegraph._graph import CycleError, deduplicate
from tracegraph._ir import Node, Value, as_value, reset_shape_cache
from tracegraph._lowering import LoweringContext

from .discover import load_roots_from_module_path, load_roots_from_script
from .graph_query import build_operand_tree, compute_stats
from .graph_render import render_stats, render_tree

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

PathArgument = Annotated[
    str,
    typer.Argument(help="Path to Python script or module path (e.g., examples.mlp:roots)"),
]
RootsOption = Annotated[
    str | None,
    typer.Option("--roots", help="Name of the variable holding the graph roots (for script paths only)"),
]
DedupOption = Annotated[
    bool,
    typer.Option("--dedup", help="Merge structurally identical subgraphs first"),
]


class OutputFormat(StrEnum):
    TEXT = "text"
    DOT = "dot"
    TREE = "tree"


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
    config: Path | None = typer.Option(
        default=None,
        help="pyproject.toml to read [tool.tracegraph] from (default: search from the current directory)",
    ),
) -> None:
    """Inspect and lower IR graphs."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )

    try:
        trace_config = load_config(config) if config is not None else get_config_from_pyproject()
    except (ConfigError, OSError) as e:
        err_console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    logger.debug("Tracing options: %s", trace_config)
    set_trace_config(trace_config)
    reset_shape_cache(trace_config.shape_cache_size)


def _load_roots(path: str, roots_var: str | None, *, dedup: bool = False) -> list[Node | Value]:
    try:
        if ":" in path:
            err_console.print(f"[cyan]Loading graph from module:[/cyan] {escape(path)}")
            roots = load_roots_from_module_path(path)
        else:
            err_console.print(f"[cyan]Loading graph from script:[/cyan] {escape(path)}")
            roots = load_roots_from_script(Path(path), roots_var)
    except (ValueError, TypeError) as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    if not dedup:
        return roots

    values = [as_value(root) for root in roots]
    new_nodes = deduplicate([value.node for value in values])
    return [Value(node, value.index) for node, value in zip(new_nodes, values, strict=True)]


@app.command()
def show(
    path: PathArgument,
    *,
    roots_var: RootsOption = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.TEXT,
    dedup: DedupOption = False,
    max_depth: Annotated[
        int,
        typer.Option("--max-depth", min=0, help="Operand levels to expand in the tree format"),
    ] = 16,
) -> None:
    """Print the graph reachable from the roots."""
    roots = _load_roots(path, roots_var, dedup=dedup)

    try:
        match output_format:
            case OutputFormat.TEXT:
                out_console.print(to_text(roots), markup=False, highlight=False, soft_wrap=True)
            case OutputFormat.DOT:
                out_console.print(to_dot(roots), markup=False, highlight=False, soft_wrap=True)
            case OutputFormat.TREE:
                for root in roots:
                    render_tree(build_operand_tree(as_value(root).node, max_depth=max_depth), out_console)
    except CycleError as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def lower(
    path: PathArgument,
    *,
    roots_var: RootsOption = None,
    name: Annotated[
        str,
        typer.Option("--name", help="Name of the built computation"),
    ] = "computation",
    dedup: DedupOption = False,
) -> None:
    """Lower the graph with the reference HLO text builder and print it."""
    roots = _load_roots(path, roots_var, dedup=dedup)

    loctx = LoweringContext(name)
    try:
        computation = loctx.build(roots)
    except Exception as e:
        details = "\n".join([str(e), *getattr(e, "__notes__", [])])
        err_console.print(
            Panel(escape(details), title=f"[bold]{type(e).__name__}[/bold]", border_style="red"),
        )
        raise typer.Exit(code=1) from e

    err_console.print(
        f"[green]✓ Lowered {len(loctx.emitted_nodes)} node(s) into "
        f"{len(computation.instructions)} instruction(s)[/green]",
    )
    out_console.print(computation.to_text(), markup=False, highlight=False, soft_wrap=True)


@app.command()
def stats(
    path: PathArgument,
    *,
    roots_var: RootsOption = None,
) -> None:
    """Summarize the graph: node counts, operations and root hashes."""
    roots = _load_roots(path, roots_var)
    try:
        graph_stats = compute_stats(roots)
    except CycleError as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    render_stats(graph_stats, out_console)


def main() -> None:
    app()
