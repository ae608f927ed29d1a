"""``packlock versions <constraint> <tag>...`` — Select a version for a constraint.

Exit Codes:
    0 — A tag satisfies the constraint; it is printed.
    1 — No tag satisfies the constraint.
    2 — The constraint is invalid.
"""

from __future__ import annotations

import sys

import click

from packlock.core.dependency import select_version
from packlock.exceptions import InvalidConstraintError, NoValidVersionError


@click.command("versions")
@click.argument("constraint")
@click.argument("tags", nargs=-1)
def versions_command(constraint: str, tags: tuple[str, ...]) -> None:
    """Print the highest of TAGS satisfying CONSTRAINT.

    Examples:

        packlock versions ">=1.0.0, <2.0.0" 0.9.0 1.0.0 1.5.2 2.0.0 latest
    """
    try:
        click.echo(select_version(constraint, tags))
    except InvalidConstraintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    except NoValidVersionError:
        click.echo(f"No tag satisfies {constraint!r}.", err=True)
        sys.exit(1)
