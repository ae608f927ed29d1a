"""Dependency materialization — turning a resolved dependency into a request.

Given an implied dependency, its parsed image reference and the version
chosen for it, the materializer builds the matching installation request
and submits it exactly once. The request name is derived from the
repository alone, so every pass that resolves the same dependency submits
a request with the same identity.
"""

from __future__ import annotations

import logging

from packlock.core.dependency.graph import ImpliedNode
from packlock.core.package.creator import PackageCreator
from packlock.core.package.models import PackageDescriptor, new_package
from packlock.core.package.reference import ImageReference, to_dns_label
from packlock.exceptions import AlreadyExistsError

logger = logging.getLogger(__name__)

# Source of a created package: "<reference>:<version>".
PACKAGE_TAG_FMT = "{reference}:{version}"


class DependencyMaterializer:
    """Creates installation requests for resolved dependencies.

    Args:
        creator: Sink receiving the installation requests.
    """

    def __init__(self, creator: PackageCreator) -> None:
        self._creator = creator

    @staticmethod
    def build(node: ImpliedNode, ref: ImageReference, version: str) -> PackageDescriptor:
        """Construct the installation request for *node* at *version*.

        Args:
            node: The dependency being installed.
            ref: Parsed image reference of the dependency.
            version: The selected tag, exactly as the registry published it.

        Raises:
            InvalidPackageTypeError: If the dependency kind is unknown.
        """
        return new_package(
            node.type,
            name=to_dns_label(ref.repository),
            source=PACKAGE_TAG_FMT.format(reference=ref.original, version=version),
        )

    async def materialize(
        self, node: ImpliedNode, ref: ImageReference, version: str
    ) -> tuple[PackageDescriptor, bool]:
        """Build and submit the installation request for *node*.

        Returns:
            The request and whether it was created (False when an identical
            request already existed).

        Raises:
            InvalidPackageTypeError: If the dependency kind is unknown.
            PackageCreateError: If the request cannot be submitted.
        """
        package = self.build(node, ref, version)
        try:
            await self._creator.create(package)
        except AlreadyExistsError:
            logger.debug(
                "%s %s already exists, not creating it again",
                package.kind.value,
                package.name,
            )
            return package, False
        logger.debug("Created %s %s from %s", package.kind.value, package.name, package.source)
        return package, True
