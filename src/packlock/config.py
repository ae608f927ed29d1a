"""Resolver settings.

Defaults mirror the behaviour of the lock controller: a one-minute budget
per reconciliation pass and a thirty-second requeue on recoverable
failures. Every field can be overridden from ``PACKLOCK_<FIELD>``
environment variables, and the CLI overrides the environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace

# Time limit for a single reconciliation pass (seconds).
RECONCILE_TIMEOUT: float = 60.0

# Requeue delay after a recoverable failure (seconds).
SHORT_WAIT: float = 30.0

# Finalizer attached to a lock that still lists packages.
FINALIZER: str = "lock.pkg.crossplane.io"

# Registry assumed for references that do not name one.
DEFAULT_REGISTRY: str = "index.docker.io"

ENV_PREFIX: str = "PACKLOCK_"


@dataclass(frozen=True)
class ResolverSettings:
    """Tunables for the reconciler and its scheduler.

    Attributes:
        reconcile_timeout: Wall-clock limit for one pass, in seconds.
        short_wait: Requeue delay after a recoverable failure, in seconds.
        finalizer: Finalizer name managed on the lock record.
        default_registry: Registry host for references without one.
        http_timeout: Timeout for each registry HTTP request, in seconds.
        backoff_base: First delay after a failed pass, in seconds.
        backoff_max: Upper bound for the failed-pass delay, in seconds.
        resync_period: Delay before a lock is re-reconciled when nothing
            asked for an earlier requeue, in seconds.
    """

    reconcile_timeout: float = RECONCILE_TIMEOUT
    short_wait: float = SHORT_WAIT
    finalizer: str = FINALIZER
    default_registry: str = DEFAULT_REGISTRY
    http_timeout: float = 30.0
    backoff_base: float = 1.0
    backoff_max: float = 300.0
    resync_period: float = 60.0

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None
    ) -> ResolverSettings:
        """Build settings from ``PACKLOCK_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Settings with every variable present applied over the defaults.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.type in ("float", float):
                try:
                    overrides[f.name] = float(raw)
                except ValueError:
                    raise ValueError(
                        f"{ENV_PREFIX}{f.name.upper()} must be a number, got {raw!r}"
                    ) from None
            else:
                overrides[f.name] = raw
        return replace(cls(), **overrides)
