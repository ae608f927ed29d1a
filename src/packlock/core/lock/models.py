"""Lock data models — Lock, LockEntry and Dependency.

Defines the persisted record of installed packages. These are pure data
holders (dataclasses) with dict serialization and no business logic,
making them safe to import without circular-dependency concerns.

The lock is written by the installers of each package, never by the
resolver: the resolver only reads it and manages its finalizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Dependency: A declared requirement on another package
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dependency:
    """A dependency declared by an installed package.

    Attributes:
        package: Image reference of the required package, without a tag
            (e.g. ``"crossplane/provider-aws"``). This is the dependency's
            identifier and is matched against the ``source`` of entries.
        type: Kind of the required package as recorded in the lock
            (``"Configuration"`` or ``"Provider"``). Kept as the raw string
            so that an invalid kind surfaces when it is acted on.
        constraints: Semantic version constraint string
            (e.g. ``">=v1.0.0, <2.0.0"``).
    """

    package: str
    type: str
    constraints: str

    def identifier(self) -> str:
        """Return the identifier of the required package."""
        return self.package

    def to_dict(self) -> dict[str, str]:
        return {
            "package": self.package,
            "type": self.type,
            "constraints": self.constraints,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Dependency:
        return cls(
            package=data.get("package", ""),
            type=data.get("type", ""),
            constraints=data.get("constraints", ""),
        )


# ---------------------------------------------------------------------------
# LockEntry: One installed package
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LockEntry:
    """One installed package recorded in the lock.

    Attributes:
        name: Name of the installed package resource.
        type: Kind of the installed package.
        source: Image reference the package was installed from, without a
            tag. Unique within a lock.
        version: The installed version tag.
        dependencies: Dependencies declared by this package, in the order
            its metadata lists them.
    """

    name: str
    type: str
    source: str
    version: str
    dependencies: tuple[Dependency, ...] = ()

    def identifier(self) -> str:
        """Return the identifier other packages use to depend on this one."""
        return self.source

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "source": self.source,
            "version": self.version,
            "dependencies": [d.to_dict() for d in self.dependencies],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockEntry:
        return cls(
            name=data.get("name", ""),
            type=data.get("type", ""),
            source=data.get("source", ""),
            version=data.get("version", ""),
            dependencies=tuple(
                Dependency.from_dict(d) for d in data.get("dependencies", [])
            ),
        )


# ---------------------------------------------------------------------------
# Lock: The persisted record
# ---------------------------------------------------------------------------


@dataclass
class Lock:
    """The persisted record of every installed package.

    Attributes:
        name: Name of the lock record.
        packages: Installed packages, in the order they registered.
        finalizers: Finalizers currently attached to the record.
    """

    name: str
    packages: list[LockEntry] = field(default_factory=list)
    finalizers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the lock to a dict suitable for JSON."""
        return {
            "name": self.name,
            "finalizers": list(self.finalizers),
            "packages": [p.to_dict() for p in self.packages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Lock:
        """Deserialize a lock from a dict (parsed JSON).

        Fields not present in the dict use default values.
        """
        return cls(
            name=data.get("name", ""),
            packages=[LockEntry.from_dict(p) for p in data.get("packages", [])],
            finalizers=list(data.get("finalizers", [])),
        )
