"""``packlock graph <lock-file>`` — Show the dependency graph of a lock.

Exit Codes:
    0 — Graph printed (it may still have missing dependencies).
    1 — The graph has a circular dependency or cannot be built.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from packlock.cli.output import print_cycle, print_graph
from packlock.core.dependency import DependencyGraph, to_nodes
from packlock.core.lock import FileLockStore
from packlock.exceptions import CycleError, GraphConstructionError, LockStoreError


@click.command("graph")
@click.argument("lock_file", type=click.Path(exists=True, dir_okay=False))
def graph_command(lock_file: str) -> None:
    """Print installed and missing packages of LOCK_FILE in install order."""
    path = Path(lock_file)
    if path.suffix != ".json":
        raise click.BadParameter("lock file must end in .json", param_hint="LOCK_FILE")
    try:
        lock = FileLockStore(path.parent).read(path.stem)
    except LockStoreError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    graph = DependencyGraph()
    try:
        graph.init(to_nodes(lock.packages))
        order = graph.sort()
    except CycleError as exc:
        print_cycle(exc.cycle)
        sys.exit(1)
    except GraphConstructionError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    print_graph(graph, order)
