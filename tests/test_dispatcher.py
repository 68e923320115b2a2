from structlog.testing import capture_logs

from ceph_orchestrator.cleanup.dispatcher import CleanupDispatcher
from ceph_orchestrator.core.errors import ControlPlaneError
from ceph_orchestrator.core.types import ClusterCleanupRequest


class FakeJobs:
    """Records submitted jobs and rejects hosts listed in fail_hosts."""

    def __init__(self, fail_hosts: set[str] | None = None) -> None:
        self.jobs = []
        self._fail_hosts = fail_hosts or set()

    def run_replaceable_job(self, job):  # type: ignore[no-untyped-def]
        if job.hostname in self._fail_hosts:
            raise ControlPlaneError("admission webhook denied the job")
        self.jobs.append(job)


def _request() -> ClusterCleanupRequest:
    return ClusterCleanupRequest(namespace="rook-ceph", monitor_secret="s", cluster_id="fsid")


def test_one_job_per_distinct_host():
    jobs = FakeJobs()
    dispatcher = CleanupDispatcher(jobs)

    report = dispatcher.dispatch(_request(), ["node-b", "node-a", "node-b"])

    assert report.ok
    assert [j.hostname for j in jobs.jobs] == ["node-a", "node-b"]
    assert len({j.name for j in jobs.jobs}) == 2


def test_empty_host_set_dispatches_nothing():
    jobs = FakeJobs()

    report = CleanupDispatcher(jobs).dispatch(_request(), [])

    assert report.dispatched == []
    assert jobs.jobs == []


def test_failure_on_one_host_does_not_block_the_rest():
    jobs = FakeJobs(fail_hosts={"node-b"})

    with capture_logs() as logs:
        report = CleanupDispatcher(jobs).dispatch(_request(), ["node-a", "node-b", "node-c"])

    assert [j.hostname for j in jobs.jobs] == ["node-a", "node-c"]
    assert list(report.failed) == ["node-b"]
    assert not report.ok
    failures = [e for e in logs if e["event"] == "cleanup_job_failed"]
    assert len(failures) == 1
    assert failures[0]["host"] == "node-b"
    assert failures[0]["log_level"] == "error"
