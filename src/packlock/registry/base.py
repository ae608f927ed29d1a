"""Base classes for registry tag fetching.

Defines the ``TagFetcher`` abstract base class that concrete fetchers
implement, plus two fetchers that never touch the network: ``NopFetcher``
(the default, which knows no tags) and ``StaticFetcher`` (a fixed mapping
for offline use and tests).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from packlock.exceptions import TagFetchError

if TYPE_CHECKING:
    from packlock.core.package.reference import ImageReference

logger = logging.getLogger(__name__)


class TagFetcher(ABC):
    """Abstract base class for fetching the tags published for a package.

    Implementations must not block indefinitely: the caller bounds every
    reconciliation pass, and a fetch is cancelled with it.
    """

    @abstractmethod
    async def tags(self, ref: ImageReference) -> list[str]:
        """Return the raw tags published for *ref*, in any order.

        Raises:
            TagFetchError: If the registry cannot be queried.
        """


class NopFetcher(TagFetcher):
    """Fetcher that knows no tags."""

    async def tags(self, ref: ImageReference) -> list[str]:
        return []


class StaticFetcher(TagFetcher):
    """Fetcher answering from a fixed mapping.

    Keys may be the reference as written in the lock (``ref.original``) or
    its ``registry/repository`` context.

    Args:
        tags: Mapping of reference to published tags.
        missing_ok: When False, a reference absent from the mapping raises
            ``TagFetchError`` instead of yielding no tags.
    """

    def __init__(
        self, tags: Mapping[str, Iterable[str]], *, missing_ok: bool = True
    ) -> None:
        self._tags = {k: list(v) for k, v in tags.items()}
        self._missing_ok = missing_ok

    async def tags(self, ref: ImageReference) -> list[str]:
        for key in (ref.original, ref.context):
            if key in self._tags:
                return list(self._tags[key])
        if not self._missing_ok:
            raise TagFetchError(f"no tags known for {ref}")
        logger.debug("No tags known for %s", ref)
        return []
