"""Package Lock --- the persisted record of installed packages.

The package is split into focused submodules:

- ``models``: Data classes (``Lock``, ``LockEntry``, ``Dependency``) with
  dict serialization.
- ``store``: The ``LockStore`` contract with in-memory and file-backed
  implementations.
- ``finalizer``: Strategies that hold the lock while it lists packages.

All public names are re-exported here.
"""

from packlock.core.lock.models import Dependency, Lock, LockEntry
from packlock.core.lock.store import FileLockStore, InMemoryLockStore, LockStore
from packlock.core.lock.finalizer import Finalizer, LockFinalizer, NopFinalizer

__all__ = [
    "Dependency",
    "FileLockStore",
    "Finalizer",
    "InMemoryLockStore",
    "Lock",
    "LockEntry",
    "LockFinalizer",
    "LockStore",
    "NopFinalizer",
]
