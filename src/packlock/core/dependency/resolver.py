"""Version resolution for a single missing dependency.

Chooses the version of a dependency to install: the highest published tag
that satisfies the dependency's constraint. Tags that are not semantic
versions (``latest``, ``main``, build hashes) are ignored.

The selected version is returned in its original spelling so that a tag
published as ``v1.2.0`` is installed as ``v1.2.0``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from packlock.core.dependency.constraints import Constraints, Version
from packlock.core.dependency.graph import ImpliedNode
from packlock.core.package.reference import ImageReference
from packlock.exceptions import InvalidVersionError, NoValidVersionError
from packlock.registry.base import NopFetcher, TagFetcher

logger = logging.getLogger(__name__)


def parse_versions(tags: Iterable[str]) -> list[Version]:
    """Parse *tags* as versions, skipping any that are not semantic versions.

    Returns:
        The parsed versions sorted ascending. Versions of equal precedence
        keep their input order.
    """
    versions: list[Version] = []
    for tag in tags:
        try:
            versions.append(Version.parse(tag))
        except InvalidVersionError:
            continue
    versions.sort()
    return versions


def select_version(
    constraints: str | Constraints, tags: Iterable[str], identifier: str = ""
) -> str:
    """Select the highest tag satisfying *constraints*.

    Args:
        constraints: Constraint string or parsed ``Constraints``.
        tags: Raw tags published for the package.
        identifier: Package identifier, used in the error message.

    Returns:
        The selected tag, exactly as published.

    Raises:
        InvalidConstraintError: If *constraints* cannot be parsed.
        NoValidVersionError: If no tag satisfies *constraints*.
    """
    if not isinstance(constraints, Constraints):
        constraints = Constraints.parse(constraints)

    selected = ""
    for version in parse_versions(tags):
        if constraints.check(version):
            selected = version.original

    if not selected:
        raise NoValidVersionError(identifier, constraints.raw)
    return selected


class VersionResolver:
    """Resolves the version to install for an implied dependency.

    Args:
        fetcher: Source of the tags published for a package.
    """

    def __init__(self, fetcher: TagFetcher | None = None) -> None:
        self._fetcher = fetcher if fetcher is not None else NopFetcher()

    async def resolve(self, node: ImpliedNode, ref: ImageReference) -> str:
        """Return the tag to install for *node*.

        The constraint is parsed before the registry is contacted, so an
        invalid constraint never costs a network round-trip.

        Raises:
            InvalidConstraintError: If the constraint cannot be parsed.
            TagFetchError: If the registry cannot be queried.
            NoValidVersionError: If no published tag satisfies the constraint.
        """
        constraints = Constraints.parse(node.constraints)
        tags = await self._fetcher.tags(ref)
        version = select_version(constraints, tags, node.identifier())
        logger.debug(
            "Selected %s for %s (constraints %s, %d tags)",
            version,
            node.identifier(),
            constraints.raw,
            len(tags),
        )
        return version
