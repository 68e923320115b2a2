"""
Cluster cleanup orchestrator.

Purpose
Tear a cluster down in order:
1) capture the hosts that run daemons and the cluster secrets, while they still exist
2) wait for every daemon to leave the namespace
3) dispatch one cleanup job per captured host

Dispatch never runs before the drain waiter reports an empty host set.
A drain that is cancelled or fails ends the request with no jobs dispatched.

Independent requests share no state, so each can run on its own thread.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional

from structlog.typing import FilteringBoundLogger

from ceph_orchestrator.cleanup.dispatcher import CleanupDispatcher, DispatchReport
from ceph_orchestrator.cleanup.drain import DrainWaiter
from ceph_orchestrator.cleanup.prober import ObservedStateProber
from ceph_orchestrator.control_plane.base import ClusterInfoLoader
from ceph_orchestrator.core.errors import ControlPlaneError, OrchestratorError
from ceph_orchestrator.core.types import ClusterCleanupRequest, HostSet
from ceph_orchestrator.observability.logging import get_component_logger


@dataclass
class CleanupOutcome:
    """
    Result of one cleanup request.

    error is set when the drain did not complete. report is None in that case.
    """

    namespace: str
    report: Optional[DispatchReport] = None
    error: Optional[OrchestratorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.ok


@dataclass(frozen=True)
class CleanupDetails:
    monitor_secret: str
    cluster_id: str


@dataclass
class ClusterCleanupOrchestrator:
    """
    Composition of prober, drain waiter and dispatcher.

    cluster_info
    Source of the monitor secret and cluster id carried by cleanup jobs.
    """

    prober: ObservedStateProber
    waiter: DrainWaiter
    dispatcher: CleanupDispatcher
    cluster_info: ClusterInfoLoader
    logger: Optional[FilteringBoundLogger] = None
    _log: FilteringBoundLogger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._log = self.logger or get_component_logger("cluster-cleanup")

    def cleanup_details(self, namespace: str) -> CleanupDetails:
        """Load the monitor secret and cluster id for namespace."""
        try:
            info = self.cluster_info.load(namespace)
        except ControlPlaneError as exc:
            raise ControlPlaneError(f"failed to get cluster info: {exc}") from exc
        return CleanupDetails(monitor_secret=info.monitor_secret, cluster_id=info.fsid)

    def prepare(
        self,
        namespace: str,
        data_dir_host_path: str,
    ) -> tuple[ClusterCleanupRequest, HostSet]:
        """
        Capture everything cleanup needs before the cluster goes away.

        Returns the request and the hosts that currently run daemons.
        """
        details = self.cleanup_details(namespace)
        hosts = self.prober.probe(namespace).hosts
        request = ClusterCleanupRequest(
            namespace=namespace,
            monitor_secret=details.monitor_secret,
            cluster_id=details.cluster_id,
            data_dir_host_path=data_dir_host_path,
        )
        return request, hosts

    def start_cluster_cleanup(
        self,
        request: ClusterCleanupRequest,
        hosts: Iterable[str],
    ) -> CleanupOutcome:
        """
        Drain then dispatch.

        Drain failures and cancellation are logged and returned, never raised,
        because this normally runs detached from any caller.
        """
        log = self._log.bind(namespace=request.namespace)
        log.info("starting_cluster_cleanup")

        try:
            self.waiter.wait(request.namespace, request.cancel)
        except OrchestratorError as exc:
            log.error("failed_to_wait_for_daemons", error=str(exc))
            return CleanupOutcome(namespace=request.namespace, error=exc)

        report = self.dispatcher.dispatch(request, hosts)
        log.info(
            "cluster_cleanup_dispatched",
            dispatched=len(report.dispatched),
            failed=sorted(report.failed),
        )
        return CleanupOutcome(namespace=request.namespace, report=report)

    def launch(self, request: ClusterCleanupRequest, hosts: Iterable[str]) -> threading.Thread:
        """Run start_cluster_cleanup on a daemon thread and return the thread."""
        captured = frozenset(hosts)
        thread = threading.Thread(
            target=self.start_cluster_cleanup,
            args=(request, captured),
            name=f"cluster-cleanup-{request.namespace}",
            daemon=True,
        )
        thread.start()
        return thread
