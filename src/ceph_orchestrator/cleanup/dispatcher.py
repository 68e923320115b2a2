"""
Cleanup dispatcher.

Fan out one cleanup job per host once a cluster has drained.

Dispatch is sequential and best effort. A failed submission is logged and the
remaining hosts are still dispatched. Nothing is rolled back, a later request
replaces any job left behind because job names depend only on the hostname.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from structlog.typing import FilteringBoundLogger

from ceph_orchestrator.cleanup.jobs import CleanupJob, CleanupJobConfig, build_cleanup_job
from ceph_orchestrator.control_plane.base import JobDispatcher
from ceph_orchestrator.core.errors import ControlPlaneError
from ceph_orchestrator.core.types import ClusterCleanupRequest
from ceph_orchestrator.observability.logging import get_component_logger


@dataclass
class DispatchReport:
    """
    dispatched
    Jobs accepted by the job dispatcher.

    failed
    Hostname to error message for rejected submissions.
    """

    dispatched: list[CleanupJob] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class CleanupDispatcher:
    """Build and submit host pinned cleanup jobs."""

    def __init__(
        self,
        jobs: JobDispatcher,
        config: CleanupJobConfig | None = None,
        logger: Optional[FilteringBoundLogger] = None,
    ) -> None:
        self._jobs = jobs
        self._config = config or CleanupJobConfig()
        self._log = logger or get_component_logger("cleanup-dispatcher")

    def dispatch(self, request: ClusterCleanupRequest, hosts: Iterable[str]) -> DispatchReport:
        """
        Submit one job per distinct host, in sorted order.

        An empty host set dispatches nothing.
        """
        report = DispatchReport()

        for hostname in sorted(set(hosts)):
            log = self._log.bind(namespace=request.namespace, host=hostname)
            job = build_cleanup_job(request, hostname, self._config)
            log.info("starting_cleanup_job", job=job.name)
            try:
                self._jobs.run_replaceable_job(job)
            except ControlPlaneError as exc:
                log.error("cleanup_job_failed", job=job.name, error=str(exc))
                report.failed[hostname] = str(exc)
                continue
            report.dispatched.append(job)

        return report
