"""
Zone controller runner.

Purpose
Continuously:
- Pick zone keys whose requeue time has come
- Run the zone reconciler for each
- Schedule the key again when the pass asked for it

This is the runtime loop, not the reconciler.
Errors that carry requeue_after are retried after that fixed delay.
Every other error is retried with a per key exponential backoff, reset on success.
There is no retry ceiling.

One key is never reconciled twice at the same time because the loop is
single threaded and keys are unique in the queue.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from structlog.typing import FilteringBoundLogger

from ceph_orchestrator.core.cancellation import CancellationToken
from ceph_orchestrator.core.errors import OrchestratorError
from ceph_orchestrator.core.types import NamespacedName, ReconcileResult
from ceph_orchestrator.observability.logging import get_component_logger
from ceph_orchestrator.zone.reconciler import CONTROLLER_NAME, ZoneReconciler


@dataclass(frozen=True)
class ControllerConfig:
    """
    interval_seconds
    Sleep between cycles when nothing is due.

    base_backoff_seconds and max_backoff_seconds
    Bounds of the default backoff for errors without a fixed delay.
    """

    interval_seconds: float = 1.0
    base_backoff_seconds: float = 1.0
    max_backoff_seconds: float = 300.0


class ZoneController:
    """Keyed work queue around a ZoneReconciler."""

    def __init__(
        self,
        reconciler: ZoneReconciler,
        config: ControllerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[FilteringBoundLogger] = None,
    ) -> None:
        self._reconciler = reconciler
        self._config = config or ControllerConfig()
        self._clock = clock
        self._log = logger or get_component_logger(CONTROLLER_NAME)
        self._due: Dict[NamespacedName, float] = {}
        self._failures: Dict[NamespacedName, int] = {}

    def enqueue(self, key: NamespacedName, delay: float = 0.0) -> None:
        """Schedule key, keeping the earlier time when it is already queued."""
        when = self._clock() + delay
        current = self._due.get(key)
        if current is None or when < current:
            self._due[key] = when

    def pending(self) -> dict[NamespacedName, float]:
        return dict(self._due)

    def _backoff(self, key: NamespacedName) -> float:
        failures = self._failures.get(key, 0) + 1
        self._failures[key] = failures
        delay = self._config.base_backoff_seconds * (2 ** (failures - 1))
        return min(delay, self._config.max_backoff_seconds)

    def reconcile(self, key: NamespacedName) -> ReconcileResult:
        """
        Run one pass and translate errors into a requeue.

        Always returns. Failed passes are logged.
        """
        try:
            result = self._reconciler.reconcile(key)
        except OrchestratorError as exc:
            self._log.error("failed_to_reconcile", zone=str(key), error=str(exc))
            if exc.requeue_after is not None:
                return ReconcileResult(requeue_after=exc.requeue_after)
            return ReconcileResult(requeue_after=self._backoff(key))

        self._failures.pop(key, None)
        return result

    def run_cycle(self) -> int:
        """
        Reconcile every key that is due.

        Returns the number of keys processed.
        """
        now = self._clock()
        due = sorted((k for k, when in self._due.items() if when <= now), key=str)
        for key in due:
            del self._due[key]
            result = self.reconcile(key)
            if result.requeue:
                self.enqueue(key, result.requeue_after or 0.0)
        return len(due)

    def run_forever(self, stop: CancellationToken) -> None:
        """Cycle until stop fires."""
        while not stop.cancelled:
            if self.run_cycle() == 0:
                stop.wait(self._config.interval_seconds)
