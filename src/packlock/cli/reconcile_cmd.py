"""``packlock reconcile <lock-file>`` — Resolve missing dependencies of a lock.

Runs reconciliation passes against a lock stored as JSON. Each pass
creates at most one package manifest in the packages directory, for the
first dependency the lock declares but does not contain.

Exit Codes:
    0 — Every pass completed (including clean failures that wait for
        a lock or registry change).
    1 — A pass failed (circular dependency, malformed lock, timeout).
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

import click

from packlock.cli.output import print_outcomes
from packlock.config import ResolverSettings
from packlock.controller import Controller, Reconciler
from packlock.core.lock import FileLockStore
from packlock.core.package import DirectoryPackageCreator
from packlock.registry import StaticFetcher, TagFetcher
from packlock.registry.oci import OCIRegistryFetcher


def _load_fetcher(tags_file: str | None, settings: ResolverSettings) -> TagFetcher:
    """Build the tag fetcher: a static mapping if given, else the OCI registry."""
    if tags_file is None:
        return OCIRegistryFetcher(timeout=settings.http_timeout)
    try:
        data = json.loads(Path(tags_file).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--tags") from exc
    if not isinstance(data, dict):
        raise click.BadParameter("expected an object of reference -> tags", param_hint="--tags")
    return StaticFetcher(data)


@click.command("reconcile")
@click.argument("lock_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--packages-dir", "-p",
    type=click.Path(file_okay=False),
    required=True,
    help="Directory receiving created package manifests.",
)
@click.option(
    "--tags",
    "tags_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file mapping package references to published tags "
    "(default: query the OCI registry).",
)
@click.option(
    "--watch", is_flag=True, default=False,
    help="Keep reconciling until interrupted.",
)
@click.option(
    "--max-passes", type=click.IntRange(min=1), default=None,
    help="Stop after this many passes (default: 1, unlimited with --watch).",
)
@click.option(
    "--timeout", type=click.FloatRange(min=0, min_open=True), default=None,
    help="Time limit for one pass in seconds.",
)
def reconcile_command(
    lock_file: str,
    packages_dir: str,
    tags_file: str | None,
    watch: bool,
    max_passes: int | None,
    timeout: float | None,
) -> None:
    """Reconcile the lock in LOCK_FILE, creating missing dependencies.

    Examples:

        packlock reconcile lock.json -p ./packages

        packlock reconcile lock.json -p ./packages --tags tags.json
    """
    try:
        settings = ResolverSettings.from_env()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    if timeout is not None:
        settings = replace(settings, reconcile_timeout=timeout)
    if not watch and max_passes is None:
        max_passes = 1

    path = Path(lock_file)
    if path.suffix != ".json":
        raise click.BadParameter("lock file must end in .json", param_hint="LOCK_FILE")
    store = FileLockStore(path.parent)
    reconciler = Reconciler(
        store,
        DirectoryPackageCreator(Path(packages_dir)),
        fetcher=_load_fetcher(tags_file, settings),
        settings=settings,
    )
    controller = Controller(reconciler)

    try:
        outcomes = asyncio.run(controller.run([path.stem], max_passes=max_passes))
    except KeyboardInterrupt:
        click.echo("Interrupted.", err=True)
        sys.exit(130)

    passes = outcomes[path.stem]
    print_outcomes(passes)
    sys.exit(0 if passes and passes[-1].ok else 1)
