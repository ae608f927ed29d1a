"""Package kinds and installation request descriptors.

A dependency names the *kind* of package it needs. Each kind maps to one
concrete descriptor class through an explicit table; a kind outside the
table is rejected rather than defaulted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from packlock.exceptions import InvalidPackageTypeError

API_VERSION: str = "pkg.crossplane.io/v1"


class PackageType(str, Enum):
    """Kinds of installable package."""

    CONFIGURATION = "Configuration"
    PROVIDER = "Provider"

    @classmethod
    def parse(cls, value: str) -> PackageType:
        """Map a dependency kind string to a ``PackageType``.

        Raises:
            InvalidPackageTypeError: If *value* names no known kind.
        """
        for member in cls:
            if member.value == value:
                return member
        raise InvalidPackageTypeError(
            f"cannot create invalid package dependency type: {value!r}"
        )


@dataclass(frozen=True)
class PackageDescriptor:
    """A request to install one package.

    Attributes:
        name: Resource name of the package; installation requests are
            unique per kind and name.
        source: Image reference including the tag to install.
    """

    kind: ClassVar[PackageType]

    name: str
    source: str

    def to_manifest(self) -> dict[str, Any]:
        """Render the request as a package manifest."""
        return {
            "apiVersion": API_VERSION,
            "kind": self.kind.value,
            "metadata": {"name": self.name},
            "spec": {"package": self.source},
        }


@dataclass(frozen=True)
class ConfigurationPackage(PackageDescriptor):
    kind: ClassVar[PackageType] = PackageType.CONFIGURATION


@dataclass(frozen=True)
class ProviderPackage(PackageDescriptor):
    kind: ClassVar[PackageType] = PackageType.PROVIDER


_PACKAGE_KINDS: dict[PackageType, type[PackageDescriptor]] = {
    PackageType.CONFIGURATION: ConfigurationPackage,
    PackageType.PROVIDER: ProviderPackage,
}


def new_package(kind: str | PackageType, name: str, source: str) -> PackageDescriptor:
    """Construct the descriptor class registered for *kind*.

    Raises:
        InvalidPackageTypeError: If *kind* is not a known package kind.
    """
    if not isinstance(kind, PackageType):
        kind = PackageType.parse(kind)
    return _PACKAGE_KINDS[kind](name=name, source=source)
