"""PackLock CLI — Incremental dependency resolution for package locks.

Entry point for the ``packlock`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    reconcile — Create the next missing dependency of a lock.
    graph     — Show a lock's dependency graph and install order.
    versions  — Select the highest tag satisfying a constraint.

Usage::

    packlock reconcile lock.json --packages-dir ./packages
    packlock reconcile lock.json -p ./packages --watch
    packlock graph lock.json
    packlock versions ">=1.0.0, <2.0.0" 1.0.0 1.5.2 2.0.0
"""

from __future__ import annotations

import logging

import click

from packlock import __version__
from packlock.cli.graph_cmd import graph_command
from packlock.cli.reconcile_cmd import reconcile_command
from packlock.cli.versions_cmd import versions_command


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every pass in detail.")
def cli(verbose: bool) -> None:
    """PackLock: Resolve package dependencies one step at a time.

    Reads a lock of installed packages, finds dependencies that are
    declared but not installed, and requests the installation of the
    highest published version that satisfies their constraints.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register all subcommands
cli.add_command(reconcile_command)
cli.add_command(graph_command)
cli.add_command(versions_command)
