"""Cycle agent: runs one workflow cycle per engine tick.

Unexpected exceptions stop at :meth:`CycleAgent.step`: they are logged,
counted as a failed cycle on the reconciler, and turned into an
``error`` outcome so the engine loop keeps going.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from core.reconciler import BoostReconciler
from workflows.boost_workflow import STATUS_ERROR, CycleOutcome

_log = logging.getLogger("boost.cycle_agent")


class SupportsExecute(Protocol):
    def execute(self) -> CycleOutcome: ...


@dataclass(slots=True)
class CycleAgent:
    """Thin tick-driven agent that forwards every step to *workflow*."""

    workflow: SupportsExecute
    reconciler: BoostReconciler

    def step(self) -> CycleOutcome:
        try:
            return self.workflow.execute()
        except Exception as exc:
            _log.exception("workflow.execute() raised %s: %s", type(exc).__name__, exc)
            self.reconciler.record_failure("error")
            return CycleOutcome(status=STATUS_ERROR, reason=f"{type(exc).__name__}: {exc}")
