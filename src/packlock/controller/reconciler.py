"""Lock reconciler — resolves one missing dependency per pass.

Each pass reads the lock afresh, builds the dependency graph, refuses to
continue while the graph has a cycle, and creates an installation request
for the *first* dependency that is declared but not installed. Installing
that package eventually adds it to the lock, which triggers the next pass;
repeated passes walk the dependency frontier until nothing is missing.

Passes are safe to repeat and to overlap: nothing is remembered between
passes, the lock is never written except for its finalizer, and requests
are created under a name derived from the dependency, so a duplicate
request fails as "already exists" instead of installing twice.

Pass states::

    NOT_FOUND           lock deleted, nothing to do
    IDLE                no packages; finalizer released
    FINALIZER_FAILED    finalizer update failed; retried after a short wait
    NOTHING_IMPLIED     every dependency is installed
    RESOLUTION_FAILED   the next dependency could not be resolved
    MATERIALIZED        an installation request was created
    ALREADY_EXISTS      the request had been created by an earlier pass
    CREATE_FAILED       the request could not be submitted; retried

Graph construction errors and cycles are raised to the caller, which
retries them with backoff.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from packlock.config import ResolverSettings
from packlock.core.dependency.graph import DependencyGraph, to_nodes
from packlock.core.dependency.resolver import VersionResolver
from packlock.core.lock.finalizer import Finalizer, LockFinalizer
from packlock.core.lock.store import LockStore
from packlock.core.package.creator import PackageCreator
from packlock.core.package.materializer import DependencyMaterializer
from packlock.core.package.models import PackageDescriptor
from packlock.core.package.reference import parse_reference
from packlock.exceptions import (
    CycleError,
    FinalizerError,
    GraphConstructionError,
    InvalidConstraintError,
    InvalidPackageTypeError,
    InvalidReferenceError,
    LockNotFoundError,
    LockStoreError,
    NoValidVersionError,
    PackageCreateError,
    ReconcileTimeoutError,
    TagFetchError,
)
from packlock.registry.base import NopFetcher, TagFetcher

logger = logging.getLogger(__name__)

ERR_GET_LOCK = "cannot get package lock"
ERR_BUILD_GRAPH = "cannot build dependency graph"
ERR_SORT_GRAPH = "cannot sort dependency graph"


class PassState(str, Enum):
    """Outcome of one reconciliation pass."""

    NOT_FOUND = "NotFound"
    IDLE = "Idle"
    FINALIZER_FAILED = "FinalizerFailed"
    NOTHING_IMPLIED = "NothingImplied"
    RESOLUTION_FAILED = "ResolutionFailed"
    MATERIALIZED = "Materialized"
    ALREADY_EXISTS = "AlreadyExists"
    CREATE_FAILED = "CreateFailed"


@dataclass(frozen=True)
class Result:
    """What a pass asks of its scheduler.

    Attributes:
        state: Which branch the pass ended in.
        requeue_after: Seconds to wait before the next pass, or None to
            wait for the lock to change.
        package: The installation request the pass submitted, if any.
    """

    state: PassState
    requeue_after: float | None = None
    package: PackageDescriptor | None = None

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None


class Reconciler:
    """Reconciles lock records one dependency at a time.

    Every collaborator is injected and independently replaceable.

    Args:
        store: Source of lock records.
        creator: Sink for installation requests.
        fetcher: Source of published tags. Defaults to a fetcher that
            knows no tags.
        finalizer: Finalizer strategy. Defaults to ``LockFinalizer`` on
            *store* with the configured finalizer name.
        new_graph: Factory for an empty dependency graph.
        settings: Timeouts and requeue delays.
        log: Logger for pass narration.
    """

    def __init__(
        self,
        store: LockStore,
        creator: PackageCreator,
        *,
        fetcher: TagFetcher | None = None,
        finalizer: Finalizer | None = None,
        new_graph: Callable[[], DependencyGraph] = DependencyGraph,
        settings: ResolverSettings | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.settings = settings or ResolverSettings()
        self._store = store
        self._finalizer = finalizer or LockFinalizer(store, self.settings.finalizer)
        self._new_graph = new_graph
        self._resolver = VersionResolver(fetcher or NopFetcher())
        self._materializer = DependencyMaterializer(creator)
        self._log = log or logger

    async def reconcile(self, name: str) -> Result:
        """Run one pass for the lock called *name*.

        Raises:
            ReconcileTimeoutError: If the pass exceeds the configured timeout.
            LockStoreError: If the lock cannot be read.
            GraphConstructionError: If the dependency graph cannot be built.
            CycleError: If the dependency graph has a cycle.
        """
        try:
            return await asyncio.wait_for(
                self._reconcile(name), timeout=self.settings.reconcile_timeout
            )
        except asyncio.TimeoutError:
            raise ReconcileTimeoutError(
                f"reconciling lock {name!r} exceeded {self.settings.reconcile_timeout}s"
            ) from None

    async def _reconcile(self, name: str) -> Result:
        log = self._log
        log.debug("Reconciling lock %s", name)

        try:
            lock = await self._store.get(name)
        except LockNotFoundError as exc:
            # A deleted lock needs no requeue.
            log.debug("%s: %s", ERR_GET_LOCK, exc)
            return Result(PassState.NOT_FOUND)
        except LockStoreError as exc:
            log.debug("%s: %s", ERR_GET_LOCK, exc)
            raise LockStoreError(f"{ERR_GET_LOCK}: {exc}") from exc

        # Without packages the finalizer is released so the lock can be
        # deleted; a package being added triggers the next pass.
        if not lock.packages:
            try:
                await self._finalizer.remove_finalizer(lock)
            except FinalizerError as exc:
                log.debug("Cannot remove finalizer from lock %s: %s", name, exc)
                return Result(PassState.FINALIZER_FAILED, self.settings.short_wait)
            return Result(PassState.IDLE)

        try:
            await self._finalizer.add_finalizer(lock)
        except FinalizerError as exc:
            log.debug("Cannot add finalizer to lock %s: %s", name, exc)
            return Result(PassState.FINALIZER_FAILED, self.settings.short_wait)

        graph = self._new_graph()
        try:
            implied = graph.init(to_nodes(lock.packages))
        except GraphConstructionError as exc:
            raise GraphConstructionError(f"{ERR_BUILD_GRAPH}: {exc}") from exc

        # Refuse to install anything while the graph has a cycle.
        try:
            graph.sort()
        except CycleError as exc:
            log.debug("%s: %s", ERR_SORT_GRAPH, exc)
            raise

        if not implied:
            log.debug("Lock %s has no missing dependencies", name)
            return Result(PassState.NOTHING_IMPLIED)

        # Only the first missing dependency is handled; its installation
        # re-triggers reconciliation for the rest.
        dep = implied[0]
        log.debug(
            "Lock %s: resolving %s (%s, constraints %s), %d missing",
            name,
            dep.identifier(),
            dep.type,
            dep.constraints,
            len(implied),
        )

        try:
            ref = parse_reference(dep.package, self.settings.default_registry)
            version = await self._resolver.resolve(dep, ref)
        except InvalidConstraintError as exc:
            log.debug("Version constraint on dependency %s is invalid: %s", dep.identifier(), exc)
            return Result(PassState.RESOLUTION_FAILED)
        except InvalidReferenceError as exc:
            log.debug("Dependency package %s is not valid: %s", dep.identifier(), exc)
            return Result(PassState.RESOLUTION_FAILED)
        except TagFetchError as exc:
            # Private registries cannot be listed anonymously.
            log.debug("Cannot fetch tags for dependency %s: %s", dep.identifier(), exc)
            return Result(PassState.RESOLUTION_FAILED, self.settings.short_wait)
        except NoValidVersionError as exc:
            log.debug("Cannot find a valid version for package constraints: %s", exc)
            return Result(PassState.RESOLUTION_FAILED)

        try:
            package, created = await self._materializer.materialize(dep, ref, version)
        except InvalidPackageTypeError as exc:
            log.debug("%s", exc)
            return Result(PassState.RESOLUTION_FAILED)
        except PackageCreateError as exc:
            log.debug("Cannot create dependency package %s: %s", dep.identifier(), exc)
            return Result(PassState.CREATE_FAILED, self.settings.short_wait)

        if not created:
            return Result(PassState.ALREADY_EXISTS, package=package)
        return Result(PassState.MATERIALIZED, package=package)
