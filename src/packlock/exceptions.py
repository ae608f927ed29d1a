"""PackLock exception hierarchy.

All public exceptions inherit from PackLockError, giving callers a single
base class to catch when they want to handle any PackLock-specific failure
without swallowing unrelated errors.
"""

from __future__ import annotations


class PackLockError(Exception):
    """Base exception for all PackLock errors."""


# ---------------------------------------------------------------------------
# Lock store
# ---------------------------------------------------------------------------


class LockStoreError(PackLockError):
    """Raised when the lock store cannot be read or updated."""


class LockNotFoundError(LockStoreError):
    """Raised when the requested lock record does not exist.

    A missing lock is not a failure of the resolver: it means the lock was
    deleted and there is nothing left to reconcile.
    """


class FinalizerError(LockStoreError):
    """Raised when a finalizer cannot be added to or removed from a lock."""


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class ResolutionError(PackLockError):
    """Raised when dependency resolution fails.

    Covers malformed dependency graphs, circular dependencies, invalid
    version constraints, and constraints that no published version meets.
    """


class GraphConstructionError(ResolutionError):
    """Raised when the dependency graph cannot be built from the lock."""


class CycleError(ResolutionError):
    """Raised when the dependency graph contains a cycle.

    Attributes:
        cycle: Identifiers forming the cycle, first and last equal
            (e.g. ``["a", "b", "a"]``).
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(
            f"node {cycle[0]!r} has a circular dependency: {' -> '.join(cycle)}"
        )


class InvalidConstraintError(ResolutionError, ValueError):
    """Raised when a version constraint string cannot be parsed."""


class InvalidVersionError(ResolutionError, ValueError):
    """Raised when a string is not a semantic version."""


class InvalidReferenceError(ResolutionError, ValueError):
    """Raised when a dependency's package image reference is malformed."""


class InvalidPackageTypeError(ResolutionError, ValueError):
    """Raised for a dependency kind that is neither Configuration nor Provider."""


class TagFetchError(ResolutionError):
    """Raised when published tags cannot be fetched from a registry."""


class NoValidVersionError(ResolutionError):
    """Raised when no published version satisfies a dependency's constraints.

    Attributes:
        identifier: The dependency's package identifier.
        constraints: The constraint string that could not be met.
    """

    def __init__(self, identifier: str, constraints: str) -> None:
        self.identifier = identifier
        self.constraints = constraints
        super().__init__(
            f"dependency ({identifier}) does not have version in constraints "
            f"({constraints})"
        )


# ---------------------------------------------------------------------------
# Package creation
# ---------------------------------------------------------------------------


class PackageCreateError(PackLockError):
    """Raised when a package installation request cannot be created."""


class AlreadyExistsError(PackageCreateError):
    """Raised when an installation request with the same name already exists."""


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


class ReconcileTimeoutError(PackLockError):
    """Raised when a reconciliation pass exceeds its time limit."""
