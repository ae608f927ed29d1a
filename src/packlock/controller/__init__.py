"""Reconciliation of package locks.

Public API::

    from packlock.controller import Controller, Reconciler, Result, PassState
"""

from __future__ import annotations

from packlock.controller.reconciler import PassState, Reconciler, Result
from packlock.controller.scheduler import Controller, PassOutcome

__all__ = [
    "Controller",
    "PassOutcome",
    "PassState",
    "Reconciler",
    "Result",
]
