"""Package creators — where installation requests are submitted.

Requests are identified by kind and name. Submitting a request whose
identity already exists raises ``AlreadyExistsError`` instead of creating
a second copy; this is what makes repeated reconciliation passes safe.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import yaml

from packlock.core.package.models import PackageDescriptor
from packlock.exceptions import AlreadyExistsError, PackageCreateError

logger = logging.getLogger(__name__)


class PackageCreator(ABC):
    """Abstract base class for installation request sinks."""

    @abstractmethod
    async def create(self, package: PackageDescriptor) -> None:
        """Submit *package* for installation.

        Raises:
            AlreadyExistsError: If a request with the same kind and name exists.
            PackageCreateError: If the request cannot be submitted.
        """


class InMemoryPackageCreator(PackageCreator):
    """Records installation requests in memory.

    Attributes:
        created: Every accepted request, in submission order.
        attempts: Number of ``create`` calls, accepted or not.
    """

    def __init__(self) -> None:
        self.created: list[PackageDescriptor] = []
        self.attempts = 0
        self._seen: set[tuple[str, str]] = set()

    async def create(self, package: PackageDescriptor) -> None:
        self.attempts += 1
        key = (package.kind.value, package.name)
        if key in self._seen:
            raise AlreadyExistsError(
                f"{package.kind.value} {package.name!r} already exists"
            )
        self._seen.add(key)
        self.created.append(package)


class DirectoryPackageCreator(PackageCreator):
    """Writes each request as a YAML manifest into a directory.

    Files are named ``<kind>-<name>.yaml`` and opened in exclusive-create
    mode, so two passes racing on the same request produce one file and
    one ``AlreadyExistsError``.

    Args:
        root: Directory receiving the manifests.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def path_for(self, package: PackageDescriptor) -> Path:
        return self._root / f"{package.kind.value.lower()}-{package.name}.yaml"

    async def create(self, package: PackageDescriptor) -> None:
        path = self.path_for(package)
        text = yaml.safe_dump(package.to_manifest(), sort_keys=False)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PackageCreateError(f"cannot create {self._root}: {exc}") from exc
        try:
            fh = path.open("x", encoding="utf-8")
        except FileExistsError:
            raise AlreadyExistsError(
                f"{package.kind.value} {package.name!r} already exists"
            ) from None
        except OSError as exc:
            raise PackageCreateError(
                f"cannot write {package.kind.value} {package.name!r}: {exc}"
            ) from exc
        try:
            with fh:
                fh.write(text)
        except OSError as exc:
            # A partial manifest would read as an existing request on retry.
            path.unlink(missing_ok=True)
            raise PackageCreateError(
                f"cannot write {package.kind.value} {package.name!r}: {exc}"
            ) from exc
        logger.debug("Wrote package manifest %s", path)
