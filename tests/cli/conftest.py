"""Shared fixtures for CLI tests.

Provides lock files in the JSON format ``FileLockStore`` reads, and a tags
file so that no test queries a real registry.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner


def _write_lock(path: Path, packages: list[dict]) -> Path:
    path.write_text(json.dumps({"packages": packages}), encoding="utf-8")
    return path


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def lock_file(tmp_path: Path) -> Path:
    """A lock whose one configuration depends on a missing provider."""
    return _write_lock(
        tmp_path / "lock.json",
        [
            {
                "name": "platform-ref-aws",
                "type": "Configuration",
                "source": "upbound/platform-ref-aws",
                "version": "v0.2.1",
                "dependencies": [
                    {
                        "package": "crossplane/provider-aws",
                        "type": "Provider",
                        "constraints": ">=v1.0.0, <2.0.0",
                    }
                ],
            }
        ],
    )


@pytest.fixture
def resolved_lock_file(tmp_path: Path) -> Path:
    """A lock in which every dependency is installed."""
    return _write_lock(
        tmp_path / "resolved.json",
        [
            {
                "name": "platform-ref-aws",
                "type": "Configuration",
                "source": "upbound/platform-ref-aws",
                "version": "v0.2.1",
                "dependencies": [
                    {"package": "crossplane/provider-aws", "type": "Provider", "constraints": "*"}
                ],
            },
            {
                "name": "crossplane-provider-aws",
                "type": "Provider",
                "source": "crossplane/provider-aws",
                "version": "v1.5.2",
            },
        ],
    )


@pytest.fixture
def cyclic_lock_file(tmp_path: Path) -> Path:
    """A lock whose two configurations depend on each other."""
    return _write_lock(
        tmp_path / "cyclic.json",
        [
            {
                "name": "a",
                "type": "Configuration",
                "source": "acme/a",
                "version": "v1.0.0",
                "dependencies": [{"package": "acme/b", "type": "Configuration", "constraints": "*"}],
            },
            {
                "name": "b",
                "type": "Configuration",
                "source": "acme/b",
                "version": "v1.0.0",
                "dependencies": [{"package": "acme/a", "type": "Configuration", "constraints": "*"}],
            },
        ],
    )


@pytest.fixture
def tags_file(tmp_path: Path) -> Path:
    """Published tags for the provider the lock depends on."""
    path = tmp_path / "tags.json"
    path.write_text(
        json.dumps({"crossplane/provider-aws": ["v1.0.0", "v1.5.2", "v2.0.0", "latest"]}),
        encoding="utf-8",
    )
    return path
