"""Tests for ``packlock reconcile`` command.

Verifies:
    - A pass writes one manifest for the first missing dependency.
    - Repeated passes do not write the manifest twice.
    - The finalizer is persisted to the lock file.
    - Circular dependencies and malformed input exit with code 1 or 2.
"""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from packlock.cli.main import cli


def _invoke(runner: CliRunner, lock: Path, tags: Path, *extra: str):
    packages = lock.parent / "packages"
    return runner.invoke(
        cli,
        ["reconcile", str(lock), "-p", str(packages), "--tags", str(tags), *extra],
    )


class TestReconcile:
    """Tests for successful passes."""

    def test_writes_manifest(self, runner: CliRunner, lock_file: Path, tags_file: Path) -> None:
        """One pass writes a manifest for the missing provider."""
        result = _invoke(runner, lock_file, tags_file)
        assert result.exit_code == 0, result.output
        manifest_path = lock_file.parent / "packages" / "provider-crossplane-provider-aws.yaml"
        manifest = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
        assert manifest["kind"] == "Provider"
        assert manifest["metadata"]["name"] == "crossplane-provider-aws"
        assert manifest["spec"]["package"] == "crossplane/provider-aws:v1.5.2"
        assert "Materialized" in result.output

    def test_second_run_already_exists(
        self, runner: CliRunner, lock_file: Path, tags_file: Path
    ) -> None:
        """A repeated run reports the existing request and writes nothing new."""
        _invoke(runner, lock_file, tags_file)
        result = _invoke(runner, lock_file, tags_file)
        assert result.exit_code == 0
        assert "AlreadyExists" in result.output
        assert len(list((lock_file.parent / "packages").iterdir())) == 1

    def test_finalizer_written_to_lock(
        self, runner: CliRunner, lock_file: Path, tags_file: Path
    ) -> None:
        """The finalizer is saved back to the lock file."""
        _invoke(runner, lock_file, tags_file)
        data = json.loads(lock_file.read_text(encoding="utf-8"))
        assert data["finalizers"] == ["lock.pkg.crossplane.io"]

    def test_resolved_lock(
        self, runner: CliRunner, resolved_lock_file: Path, tags_file: Path
    ) -> None:
        """A lock with nothing missing writes no manifests."""
        result = _invoke(runner, resolved_lock_file, tags_file)
        assert result.exit_code == 0
        assert "NothingImplied" in result.output
        assert not (resolved_lock_file.parent / "packages").exists()

    def test_no_matching_tag_is_clean(
        self, runner: CliRunner, lock_file: Path, tmp_path: Path
    ) -> None:
        """A dependency with no satisfying tag waits for a lock change."""
        tags = tmp_path / "old-tags.json"
        tags.write_text(json.dumps({"crossplane/provider-aws": ["v0.9.0"]}), encoding="utf-8")
        result = _invoke(runner, lock_file, tags)
        assert result.exit_code == 0
        assert "ResolutionFailed" in result.output

    def test_max_passes(self, runner: CliRunner, lock_file: Path, tags_file: Path) -> None:
        """--max-passes runs that many passes."""
        packages = lock_file.parent / "packages"
        result = runner.invoke(
            cli,
            ["reconcile", str(lock_file), "-p", str(packages), "--tags", str(tags_file),
             "--max-passes", "2"],
            env={"PACKLOCK_RESYNC_PERIOD": "0.01"},
        )
        assert result.exit_code == 0
        assert "Materialized" in result.output
        assert "AlreadyExists" in result.output

    def test_pass_timeout_setting_from_environment(
        self, runner: CliRunner, lock_file: Path, tags_file: Path
    ) -> None:
        """A pass timeout from the environment is accepted."""
        result = runner.invoke(
            cli,
            ["reconcile", str(lock_file), "-p", str(lock_file.parent / "packages"),
             "--tags", str(tags_file)],
            env={"PACKLOCK_RECONCILE_TIMEOUT": "10"},
        )
        assert result.exit_code == 0


class TestReconcileErrors:
    """Tests for failing passes and bad input."""

    def test_cycle_exits_1(
        self, runner: CliRunner, cyclic_lock_file: Path, tags_file: Path
    ) -> None:
        """A cyclic lock exits 1 without writing manifests."""
        result = _invoke(runner, cyclic_lock_file, tags_file)
        assert result.exit_code == 1
        assert "Error" in result.output
        assert not (cyclic_lock_file.parent / "packages").exists()

    def test_lock_that_is_not_an_object_exits_1(
        self, runner: CliRunner, tmp_path: Path, tags_file: Path
    ) -> None:
        """A lock file holding a JSON array is a failed pass, not a traceback."""
        lock = tmp_path / "lock.json"
        lock.write_text("[]", encoding="utf-8")
        result = _invoke(runner, lock, tags_file)
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert not (tmp_path / "packages").exists()

    def test_packages_dir_required(self, runner: CliRunner, lock_file: Path) -> None:
        """--packages-dir is required."""
        result = runner.invoke(cli, ["reconcile", str(lock_file)])
        assert result.exit_code == 2

    def test_invalid_tags_file(self, runner: CliRunner, lock_file: Path, tmp_path: Path) -> None:
        """An unparseable --tags file is a usage error."""
        tags = tmp_path / "bad.json"
        tags.write_text("[1, 2", encoding="utf-8")
        result = _invoke(runner, lock_file, tags)
        assert result.exit_code == 2
        assert "--tags" in result.output

    def test_tags_file_must_be_object(
        self, runner: CliRunner, lock_file: Path, tmp_path: Path
    ) -> None:
        """A --tags file must hold a JSON object."""
        tags = tmp_path / "list.json"
        tags.write_text("[]", encoding="utf-8")
        result = _invoke(runner, lock_file, tags)
        assert result.exit_code == 2

    def test_lock_file_must_be_json(
        self, runner: CliRunner, tmp_path: Path, tags_file: Path
    ) -> None:
        """Only .json lock files are accepted."""
        lock = tmp_path / "lock.yaml"
        lock.write_text("packages: []\n", encoding="utf-8")
        result = _invoke(runner, lock, tags_file)
        assert result.exit_code == 2

    def test_invalid_env_setting(
        self, runner: CliRunner, lock_file: Path, tags_file: Path
    ) -> None:
        """An invalid PACKLOCK_* value is a usage error naming the variable."""
        result = runner.invoke(
            cli,
            ["reconcile", str(lock_file), "-p", str(lock_file.parent / "packages"),
             "--tags", str(tags_file)],
            env={"PACKLOCK_SHORT_WAIT": "soon"},
        )
        assert result.exit_code == 2
        assert "PACKLOCK_SHORT_WAIT" in result.output
