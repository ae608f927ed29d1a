"""Finalizer strategies for lock records.

A finalizer is held on the lock while it lists installed packages and
released once the list is empty, so the lock can be torn down after every
package has been uninstalled.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from packlock.config import FINALIZER
from packlock.core.lock.models import Lock
from packlock.core.lock.store import LockStore
from packlock.exceptions import FinalizerError, LockStoreError


class Finalizer(ABC):
    """Adds and removes the resolver's finalizer on a lock."""

    @abstractmethod
    async def add_finalizer(self, lock: Lock) -> None:
        """Attach the finalizer. Raises ``FinalizerError`` on failure."""

    @abstractmethod
    async def remove_finalizer(self, lock: Lock) -> None:
        """Detach the finalizer. Raises ``FinalizerError`` on failure."""


class LockFinalizer(Finalizer):
    """Finalizer persisted through a ``LockStore``.

    Args:
        store: Store holding the lock records.
        finalizer: Name of the finalizer to manage.
    """

    def __init__(self, store: LockStore, finalizer: str = FINALIZER) -> None:
        self._store = store
        self.finalizer = finalizer

    async def add_finalizer(self, lock: Lock) -> None:
        if self.finalizer in lock.finalizers:
            return
        try:
            await self._store.add_finalizer(lock.name, self.finalizer)
        except LockStoreError as exc:
            raise FinalizerError(f"cannot add lock finalizer: {exc}") from exc
        lock.finalizers.append(self.finalizer)

    async def remove_finalizer(self, lock: Lock) -> None:
        if self.finalizer not in lock.finalizers:
            return
        try:
            await self._store.remove_finalizer(lock.name, self.finalizer)
        except LockStoreError as exc:
            raise FinalizerError(f"cannot remove lock finalizer: {exc}") from exc
        lock.finalizers.remove(self.finalizer)


class NopFinalizer(Finalizer):
    """Finalizer that never touches the lock."""

    async def add_finalizer(self, lock: Lock) -> None:
        return None

    async def remove_finalizer(self, lock: Lock) -> None:
        return None
