"""Registry access for published package versions.

Public API::

    from packlock.registry import NopFetcher, StaticFetcher, TagFetcher
    from packlock.registry.oci import OCIRegistryFetcher
"""

from __future__ import annotations

from packlock.registry.base import NopFetcher, StaticFetcher, TagFetcher

__all__ = [
    "NopFetcher",
    "StaticFetcher",
    "TagFetcher",
]
