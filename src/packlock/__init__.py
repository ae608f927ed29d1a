"""PackLock: Incremental dependency resolution for cluster-managed packages."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
