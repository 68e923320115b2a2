"""
Drain waiter.

Wait until every managed daemon has left a namespace.

State machine
waiting    block on the cancellation token for one poll interval
polling    ask the prober for the current host set
done       the host set was empty
cancelled  the token fired while waiting

There is no retry ceiling. The loop ends only when the cluster drains, the
caller cancels, or the prober fails. A prober failure is not retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from structlog.typing import FilteringBoundLogger

from ceph_orchestrator.cleanup.prober import ObservedStateProber
from ceph_orchestrator.core.cancellation import CancellationToken
from ceph_orchestrator.core.errors import CancellationRequested, ControlPlaneError
from ceph_orchestrator.observability.logging import get_component_logger


class DrainState(StrEnum):
    waiting = "waiting"
    polling = "polling"
    done = "done"
    cancelled = "cancelled"


@dataclass(frozen=True)
class DrainConfig:
    """
    Drain configuration.

    poll_interval_seconds
    Time waited before every poll, including the first one.
    """

    poll_interval_seconds: float = 5.0


@dataclass(frozen=True)
class DrainOutcome:
    """
    Summary of a finished drain.

    polls is the number of prober queries issued.
    """

    state: DrainState
    polls: int


class DrainWaiter:
    """Poll the prober until the namespace has no daemon hosts left."""

    def __init__(
        self,
        prober: ObservedStateProber,
        config: DrainConfig | None = None,
        logger: Optional[FilteringBoundLogger] = None,
    ) -> None:
        self._prober = prober
        self._config = config or DrainConfig()
        self._log = logger or get_component_logger("drain-waiter")

    def wait(self, namespace: str, cancel: CancellationToken) -> DrainOutcome:
        """
        Block until namespace is drained.

        Raises CancellationRequested when cancel fires while waiting.
        Raises ControlPlaneError when a probe fails.
        """
        interval = self._config.poll_interval_seconds
        log = self._log.bind(namespace=namespace)
        log.info("waiting_for_daemons_cleanup")

        polls = 0
        state = DrainState.waiting
        while True:
            if cancel.wait(interval):
                state = DrainState.cancelled
                log.info("drain_cancelled", state=state.value, polls=polls)
                raise CancellationRequested("cancelling the host cleanup job")

            state = DrainState.polling
            polls += 1
            try:
                result = self._prober.probe(namespace)
            except ControlPlaneError as exc:
                raise ControlPlaneError(f"failed to list ceph daemon nodes: {exc}") from exc

            if result.drained:
                state = DrainState.done
                log.info("all_daemons_cleaned_up", state=state.value, polls=polls)
                return DrainOutcome(state=state, polls=polls)

            state = DrainState.waiting
            log.debug(
                "daemons_still_running",
                state=state.value,
                hosts=sorted(result.hosts),
                retry_in_seconds=interval,
            )
