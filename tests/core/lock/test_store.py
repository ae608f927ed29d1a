"""Tests for lock stores and finalizer strategies.

Uses ``asyncio.run`` to drive the async store API, and pytest's
``tmp_path`` for the file-backed store.
"""

from __future__ import annotations

import asyncio
import json
import tempfile
from pathlib import Path

import pytest

from packlock.core.lock import (
    Dependency,
    FileLockStore,
    InMemoryLockStore,
    Lock,
    LockEntry,
    LockFinalizer,
    LockStore,
    NopFinalizer,
)
from packlock.exceptions import FinalizerError, LockNotFoundError, LockStoreError

FINALIZER = "lock.pkg.crossplane.io"


def _lock(name: str = "lock", finalizers: list[str] | None = None) -> Lock:
    entry = LockEntry(
        name="platform",
        type="Configuration",
        source="acme/platform",
        version="v1.0.0",
        dependencies=(Dependency("acme/provider", "Provider", ">=1.0.0"),),
    )
    return Lock(name=name, packages=[entry], finalizers=list(finalizers or []))


class _BrokenStore(InMemoryLockStore):
    """Store whose finalizer updates always fail."""

    async def add_finalizer(self, name: str, finalizer: str) -> None:
        raise LockStoreError("conflict")

    async def remove_finalizer(self, name: str, finalizer: str) -> None:
        raise LockStoreError("conflict")


# ===================================================================
# InMemoryLockStore
# ===================================================================


class TestInMemoryLockStore:
    """Tests for ``InMemoryLockStore``."""

    def test_get_returns_copy(self) -> None:
        """Callers receive a copy that cannot alter the stored lock."""
        store = InMemoryLockStore([_lock()])
        lock = asyncio.run(store.get("lock"))
        lock.packages.clear()
        assert len(asyncio.run(store.get("lock")).packages) == 1

    def test_get_missing(self) -> None:
        """An unknown lock raises LockNotFoundError."""
        with pytest.raises(LockNotFoundError):
            asyncio.run(InMemoryLockStore().get("lock"))

    def test_not_found_is_store_error(self) -> None:
        """Not-found errors are a kind of store error."""
        assert issubclass(LockNotFoundError, LockStoreError)

    def test_finalizer_idempotent(self) -> None:
        """Adding or removing a finalizer twice has the effect of once."""
        store = InMemoryLockStore([_lock()])
        asyncio.run(store.add_finalizer("lock", FINALIZER))
        asyncio.run(store.add_finalizer("lock", FINALIZER))
        assert asyncio.run(store.get("lock")).finalizers == [FINALIZER]
        asyncio.run(store.remove_finalizer("lock", FINALIZER))
        asyncio.run(store.remove_finalizer("lock", FINALIZER))
        assert asyncio.run(store.get("lock")).finalizers == []

    def test_add_finalizer_missing_lock(self) -> None:
        """A finalizer cannot be added to a lock that does not exist."""
        with pytest.raises(LockNotFoundError):
            asyncio.run(InMemoryLockStore().add_finalizer("lock", FINALIZER))

    def test_remove_finalizer_missing_lock(self) -> None:
        """Removing a finalizer from a missing lock is a no-op."""
        asyncio.run(InMemoryLockStore().remove_finalizer("lock", FINALIZER))

    def test_delete(self) -> None:
        """A deleted lock is no longer found."""
        store = InMemoryLockStore([_lock()])
        store.delete("lock")
        with pytest.raises(LockNotFoundError):
            asyncio.run(store.get("lock"))


# ===================================================================
# FileLockStore
# ===================================================================


class TestFileLockStore:
    """Tests for ``FileLockStore``."""

    def test_write_then_get(self, tmp_path: Path) -> None:
        """A written lock reads back equal."""
        store = FileLockStore(tmp_path)
        store.write(_lock())
        lock = asyncio.run(store.get("lock"))
        assert lock == _lock()

    def test_file_name_is_lock_name(self, tmp_path: Path) -> None:
        """The file name overrides the name recorded inside the file."""
        data = _lock(name="other").to_dict()
        (tmp_path / "prod.json").write_text(json.dumps(data), encoding="utf-8")
        lock = asyncio.run(FileLockStore(tmp_path).get("prod"))
        assert lock.name == "prod"

    def test_get_missing(self, tmp_path: Path) -> None:
        """A missing file raises LockNotFoundError."""
        with pytest.raises(LockNotFoundError):
            asyncio.run(FileLockStore(tmp_path).get("lock"))

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Unparseable content is a store error, not a missing lock."""
        (tmp_path / "lock.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(LockStoreError) as exc_info:
            asyncio.run(FileLockStore(tmp_path).get("lock"))
        assert not isinstance(exc_info.value, LockNotFoundError)

    @pytest.mark.parametrize(
        "text",
        [
            "[]",
            '"lock"',
            '{"packages": {"name": "platform"}}',
            '{"packages": ["acme/platform"]}',
            '{"packages": [{"source": "acme/a", "dependencies": ["acme/b"]}]}',
        ],
    )
    def test_json_that_is_not_a_lock(self, tmp_path: Path, text: str) -> None:
        """Well-formed JSON of the wrong shape is a store error, not a crash."""
        (tmp_path / "lock.json").write_text(text, encoding="utf-8")
        with pytest.raises(LockStoreError) as exc_info:
            asyncio.run(FileLockStore(tmp_path).get("lock"))
        assert not isinstance(exc_info.value, LockNotFoundError)

    def test_write_failure_before_replace(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Failing to create the temporary file is reported as a store error."""
        store = FileLockStore(tmp_path)
        store.write(_lock())

        def no_space(*args: object, **kwargs: object) -> tuple[int, str]:
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(tempfile, "mkstemp", no_space)
        with pytest.raises(LockStoreError):
            asyncio.run(store.add_finalizer("lock", FINALIZER))
        assert FINALIZER not in store.read("lock").finalizers

    def test_unwritable_root(self, tmp_path: Path) -> None:
        """A root that is a regular file cannot hold locks."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(LockStoreError):
            FileLockStore(blocker / "locks").write(_lock())

    def test_names(self, tmp_path: Path) -> None:
        """Lock names are the sorted file stems."""
        store = FileLockStore(tmp_path)
        store.write(_lock("b"))
        store.write(_lock("a"))
        assert store.names() == ["a", "b"]
        assert FileLockStore(tmp_path / "absent").names() == []

    def test_write_leaves_no_temp_files(self, tmp_path: Path) -> None:
        """Atomic writes clean up their temporary files."""
        store = FileLockStore(tmp_path)
        store.write(_lock())
        store.write(_lock())
        assert [p.name for p in tmp_path.iterdir()] == ["lock.json"]

    def test_finalizer_persisted(self, tmp_path: Path) -> None:
        """Finalizer updates are written to the lock file."""
        store = FileLockStore(tmp_path)
        store.write(_lock())
        asyncio.run(store.add_finalizer("lock", FINALIZER))
        data = json.loads(store.path_for("lock").read_text(encoding="utf-8"))
        assert data["finalizers"] == [FINALIZER]
        asyncio.run(store.remove_finalizer("lock", FINALIZER))
        assert asyncio.run(store.get("lock")).finalizers == []

    def test_remove_finalizer_missing_lock(self, tmp_path: Path) -> None:
        """Removing a finalizer from a missing file is a no-op."""
        asyncio.run(FileLockStore(tmp_path).remove_finalizer("lock", FINALIZER))


# ===================================================================
# Finalizers
# ===================================================================


class TestLockFinalizer:
    """Tests for ``LockFinalizer``."""

    def test_add_updates_store_and_lock(self) -> None:
        """The finalizer is added to both the stored and the passed lock."""
        store = InMemoryLockStore([_lock()])
        lock = asyncio.run(store.get("lock"))
        asyncio.run(LockFinalizer(store).add_finalizer(lock))
        assert lock.finalizers == [FINALIZER]
        assert asyncio.run(store.get("lock")).finalizers == [FINALIZER]

    def test_remove_updates_store_and_lock(self) -> None:
        """The finalizer is removed from both the stored and the passed lock."""
        store = InMemoryLockStore([_lock(finalizers=[FINALIZER])])
        lock = asyncio.run(store.get("lock"))
        asyncio.run(LockFinalizer(store).remove_finalizer(lock))
        assert lock.finalizers == []
        assert asyncio.run(store.get("lock")).finalizers == []

    def test_no_write_when_already_present(self) -> None:
        """A lock already holding the finalizer is not written again."""
        store = _BrokenStore([_lock(finalizers=[FINALIZER])])
        lock = asyncio.run(store.get("lock"))
        asyncio.run(LockFinalizer(store).add_finalizer(lock))

    def test_no_write_when_already_absent(self) -> None:
        """A lock without the finalizer is not written again."""
        store = _BrokenStore([_lock()])
        lock = asyncio.run(store.get("lock"))
        asyncio.run(LockFinalizer(store).remove_finalizer(lock))

    def test_store_failure_becomes_finalizer_error(self) -> None:
        """Store failures surface as FinalizerError and leave the lock unchanged."""
        store = _BrokenStore([_lock()])
        lock = asyncio.run(store.get("lock"))
        with pytest.raises(FinalizerError, match="cannot add lock finalizer"):
            asyncio.run(LockFinalizer(store).add_finalizer(lock))
        assert lock.finalizers == []

    def test_custom_finalizer_name(self) -> None:
        """The finalizer name is configurable."""
        store = InMemoryLockStore([_lock()])
        lock = asyncio.run(store.get("lock"))
        asyncio.run(LockFinalizer(store, "example.com/hold").add_finalizer(lock))
        assert lock.finalizers == ["example.com/hold"]


class TestNopFinalizer:
    """``NopFinalizer`` leaves the lock untouched."""

    def test_does_nothing(self) -> None:
        """Adding the finalizer leaves the lock unchanged."""
        lock = _lock()
        asyncio.run(NopFinalizer().add_finalizer(lock))
        assert lock.finalizers == []

    def test_store_contract_is_abstract(self) -> None:
        """The store base class cannot be instantiated."""
        with pytest.raises(TypeError):
            LockStore()  # type: ignore[abstract]
