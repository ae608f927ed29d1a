"""Lock stores — where lock records are read from and finalizers written to.

``LockStore`` is the contract the reconciler consumes. Two concrete stores
ship with the package:

- ``InMemoryLockStore`` for tests and embedding.
- ``FileLockStore`` which keeps one ``<name>.json`` file per lock in a
  directory, written atomically so a concurrent reader never sees a
  partial record.

Every store hands out copies: mutating a returned ``Lock`` never changes
the stored record.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from packlock.core.lock.models import Lock
from packlock.exceptions import LockNotFoundError, LockStoreError

logger = logging.getLogger(__name__)


class LockStore(ABC):
    """Abstract base class for lock record storage.

    ``add_finalizer`` and ``remove_finalizer`` are idempotent: calling them
    when the lock is already in the target state succeeds without a write.
    """

    @abstractmethod
    async def get(self, name: str) -> Lock:
        """Return the lock called *name*.

        Raises:
            LockNotFoundError: If no such lock exists.
            LockStoreError: If the lock cannot be read.
        """

    @abstractmethod
    async def add_finalizer(self, name: str, finalizer: str) -> None:
        """Attach *finalizer* to the lock called *name*."""

    @abstractmethod
    async def remove_finalizer(self, name: str, finalizer: str) -> None:
        """Detach *finalizer* from the lock called *name*.

        Removing a finalizer from a lock that no longer exists succeeds.
        """


class InMemoryLockStore(LockStore):
    """Dictionary-backed lock store."""

    def __init__(self, locks: list[Lock] | None = None) -> None:
        self._locks: dict[str, Lock] = {}
        for lock in locks or []:
            self.put(lock)

    def put(self, lock: Lock) -> None:
        """Insert or replace a lock record."""
        self._locks[lock.name] = copy.deepcopy(lock)

    def delete(self, name: str) -> None:
        """Remove a lock record if present."""
        self._locks.pop(name, None)

    async def get(self, name: str) -> Lock:
        lock = self._locks.get(name)
        if lock is None:
            raise LockNotFoundError(f"lock {name!r} not found")
        return copy.deepcopy(lock)

    async def add_finalizer(self, name: str, finalizer: str) -> None:
        lock = self._locks.get(name)
        if lock is None:
            raise LockNotFoundError(f"lock {name!r} not found")
        if finalizer not in lock.finalizers:
            lock.finalizers.append(finalizer)

    async def remove_finalizer(self, name: str, finalizer: str) -> None:
        lock = self._locks.get(name)
        if lock is not None and finalizer in lock.finalizers:
            lock.finalizers.remove(finalizer)


class FileLockStore(LockStore):
    """Lock store keeping one JSON file per lock under a directory.

    Args:
        root: Directory holding ``<name>.json`` lock files.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, name: str) -> Path:
        """Return the file path of the lock called *name*."""
        return self._root / f"{name}.json"

    def names(self) -> list[str]:
        """Return the sorted names of all locks in the directory."""
        if not self._root.is_dir():
            return []
        return sorted(p.stem for p in self._root.glob("*.json"))

    def write(self, lock: Lock) -> None:
        """Write *lock* atomically, replacing any previous record."""
        text = json.dumps(lock.to_dict(), indent=2, sort_keys=True)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._root, prefix=".lock-", suffix=".tmp")
        except OSError as exc:
            raise LockStoreError(f"cannot write lock {lock.name!r}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp, self.path_for(lock.name))
        except OSError as exc:
            Path(tmp).unlink(missing_ok=True)
            raise LockStoreError(f"cannot write lock {lock.name!r}: {exc}") from exc

    def read(self, name: str) -> Lock:
        path = self.path_for(name)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise LockNotFoundError(f"lock {name!r} not found") from None
        except OSError as exc:
            raise LockStoreError(f"cannot read lock {name!r}: {exc}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LockStoreError(f"lock {name!r} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("packages", []), list):
            raise LockStoreError(f"lock {name!r} is not a lock record")
        try:
            lock = Lock.from_dict(data)
        except (AttributeError, TypeError) as exc:
            raise LockStoreError(f"lock {name!r} is malformed: {exc}") from exc
        # The file name is authoritative for the lock's identity.
        lock.name = name
        return lock

    async def get(self, name: str) -> Lock:
        return self.read(name)

    async def add_finalizer(self, name: str, finalizer: str) -> None:
        lock = self.read(name)
        if finalizer in lock.finalizers:
            return
        lock.finalizers.append(finalizer)
        self.write(lock)
        logger.debug("Added finalizer %s to lock %s", finalizer, name)

    async def remove_finalizer(self, name: str, finalizer: str) -> None:
        try:
            lock = self.read(name)
        except LockNotFoundError:
            return
        if finalizer not in lock.finalizers:
            return
        lock.finalizers.remove(finalizer)
        self.write(lock)
        logger.debug("Removed finalizer %s from lock %s", finalizer, name)
