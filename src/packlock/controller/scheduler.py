"""Controller — the loop that re-invokes the reconciler.

The controller runs one serialized loop per lock and runs loops for
different locks concurrently. After each pass it waits for:

- the delay the pass asked for (a recoverable failure), or
- an exponential backoff when the pass raised (a fatal-for-pass error
  such as a dependency cycle, or a timeout), or
- the resync period, so that lock changes are picked up level-triggered.

No error escapes the controller: every failure turns into a later retry.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from packlock.config import ResolverSettings
from packlock.controller.reconciler import Reconciler, Result
from packlock.exceptions import PackLockError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PassOutcome:
    """The result of one scheduled pass.

    Attributes:
        name: Lock the pass reconciled.
        result: The pass result, or None if the pass raised.
        error: The error the pass raised, if any.
        delay: Seconds before the next pass; None means "when the lock
            changes" (the controller falls back to its resync period).
    """

    name: str
    result: Result | None = None
    error: PackLockError | None = None
    delay: float | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Controller:
    """Schedules reconciliation passes for one or more locks.

    Args:
        reconciler: The reconciler to invoke.
        settings: Backoff and resync tunables. Defaults to the reconciler's.
    """

    def __init__(
        self, reconciler: Reconciler, settings: ResolverSettings | None = None
    ) -> None:
        self._reconciler = reconciler
        self.settings = settings or reconciler.settings
        self._failures: dict[str, int] = {}

    def backoff(self, name: str) -> float:
        """Record a failed pass for *name* and return the delay before retrying."""
        failures = self._failures.get(name, 0) + 1
        self._failures[name] = failures
        delay = self.settings.backoff_base * (2 ** (failures - 1))
        return min(delay, self.settings.backoff_max)

    def failures(self, name: str) -> int:
        """Return the number of consecutive failed passes for *name*."""
        return self._failures.get(name, 0)

    async def reconcile_once(self, name: str) -> PassOutcome:
        """Run one pass for *name* and decide when the next one is due."""
        try:
            result = await self._reconciler.reconcile(name)
        except PackLockError as exc:
            delay = self.backoff(name)
            logger.warning(
                "Reconciling lock %s failed (retry in %.1fs): %s", name, delay, exc
            )
            return PassOutcome(name=name, error=exc, delay=delay)
        self._failures.pop(name, None)
        logger.debug("Lock %s: %s", name, result.state.value)
        return PassOutcome(name=name, result=result, delay=result.requeue_after)

    async def _loop(
        self, name: str, stop: asyncio.Event, max_passes: int | None
    ) -> list[PassOutcome]:
        outcomes: list[PassOutcome] = []
        while not stop.is_set():
            outcome = await self.reconcile_once(name)
            outcomes.append(outcome)
            if max_passes is not None and len(outcomes) >= max_passes:
                break
            delay = outcome.delay if outcome.delay is not None else self.settings.resync_period
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                continue
        return outcomes

    async def run(
        self,
        names: Iterable[str],
        *,
        stop: asyncio.Event | None = None,
        max_passes: int | None = None,
    ) -> dict[str, list[PassOutcome]]:
        """Reconcile every lock in *names* until stopped.

        Args:
            names: Locks to reconcile.
            stop: Event ending every loop once set.
            max_passes: Stop each lock's loop after this many passes.

        Returns:
            The outcomes of every pass, per lock.
        """
        stop = stop or asyncio.Event()
        names = list(dict.fromkeys(names))
        results = await asyncio.gather(
            *(self._loop(name, stop, max_passes) for name in names)
        )
        return dict(zip(names, results))
