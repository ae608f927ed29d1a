"""Rich output formatting helpers for the PackLock CLI.

Provides consistent terminal output for pass results, dependency graphs
and version selection.

State Color Mapping:
    done = green, retrying = yellow, failed = red
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from packlock.controller import PassOutcome, PassState
from packlock.core.dependency import DependencyGraph, ImpliedNode, InstalledNode

_STATE_STYLES: dict[PassState, str] = {
    PassState.NOT_FOUND: "dim",
    PassState.IDLE: "dim",
    PassState.FINALIZER_FAILED: "yellow",
    PassState.NOTHING_IMPLIED: "bold green",
    PassState.RESOLUTION_FAILED: "red",
    PassState.MATERIALIZED: "bold green",
    PassState.ALREADY_EXISTS: "green",
    PassState.CREATE_FAILED: "yellow",
}

console = Console()


def state_style(state: PassState) -> str:
    """Return the Rich style string for a pass state."""
    return _STATE_STYLES.get(state, "white")


def print_outcomes(outcomes: list[PassOutcome]) -> None:
    """Print one row per reconciliation pass.

    Args:
        outcomes: Pass outcomes in the order they ran.
    """
    table = Table(title="Reconciliation Passes", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Lock", style="bold")
    table.add_column("State", justify="center")
    table.add_column("Package")
    table.add_column("Retry In", justify="right")

    for i, outcome in enumerate(outcomes, start=1):
        if outcome.error is not None:
            state = Text("Error", style="bold red")
            package = Text(str(outcome.error), style="red")
        else:
            result = outcome.result
            state = Text(result.state.value, style=state_style(result.state))
            package = Text(result.package.source if result.package else "-")
        retry = f"{outcome.delay:.0f}s" if outcome.delay is not None else "-"
        table.add_row(str(i), outcome.name, state, package, retry)

    console.print(table)


def print_graph(graph: DependencyGraph, order: list[str]) -> None:
    """Print the nodes of a dependency graph and its install order.

    Args:
        graph: A graph built from a lock.
        order: Topological order from ``graph.sort()``.
    """
    table = Table(title="Dependency Graph", show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Version / Constraints")
    table.add_column("Depends On", style="dim")
    table.add_column("Transitive", justify="right")

    for node in graph.nodes:
        ident = node.identifier()
        deps = ", ".join(n.identifier() for n in graph.neighbors(ident)) or "-"
        transitive = str(len(graph.trace(ident)))
        if isinstance(node, InstalledNode):
            table.add_row(ident, Text("installed", style="green"), node.entry.version, deps, transitive)
        elif isinstance(node, ImpliedNode):
            table.add_row(ident, Text("missing", style="yellow"), node.constraints, deps, transitive)

    console.print(table)
    console.print(f"[bold]Install order:[/bold] {' -> '.join(order) or '-'}")
    missing = len(graph.implied)
    if missing:
        console.print(f"[yellow]{missing} missing dependencies[/yellow]")
    else:
        console.print("[green]All dependencies installed.[/green]")


def print_cycle(cycle: list[str]) -> None:
    """Print a dependency cycle."""
    console.print(
        Panel(
            "[bold red]" + " -> ".join(cycle) + "[/bold red]",
            title="Circular Dependency",
        )
    )
