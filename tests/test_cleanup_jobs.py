from ceph_orchestrator.cleanup.jobs import (
    HOSTNAME_LABEL,
    MAX_NAME_LENGTH,
    CleanupJobConfig,
    build_cleanup_job,
    cleanup_job_name,
)
from ceph_orchestrator.core.serialization import job_to_manifest
from ceph_orchestrator.core.types import ClusterCleanupRequest


def _request(data_dir: str = "/var/lib/rook") -> ClusterCleanupRequest:
    return ClusterCleanupRequest(
        namespace="rook-ceph",
        monitor_secret="AQBmonsecret==",
        cluster_id="fsid-1234",
        data_dir_host_path=data_dir,
    )


def test_short_hostname_is_used_verbatim():
    assert cleanup_job_name("node-a") == "cluster-cleanup-job-node-a"
    assert cleanup_job_name("node-a") == cleanup_job_name("node-a")


def test_long_hostnames_are_hashed_and_stay_distinct():
    base = "worker." + "x" * 60 + ".example.internal"
    first = cleanup_job_name(base + "-1")
    second = cleanup_job_name(base + "-2")

    assert len(first) <= MAX_NAME_LENGTH
    assert len(second) <= MAX_NAME_LENGTH
    assert first != second
    assert first.startswith("cluster-cleanup-job-")
    assert first == cleanup_job_name(base + "-1")


def test_job_is_pinned_to_host_and_carries_cluster_values():
    job = build_cleanup_job(_request(), "node-a", CleanupJobConfig(image="rook/ceph:v1.5"))

    assert job.node_selector == {HOSTNAME_LABEL: "node-a"}
    assert job.restart_policy == "OnFailure"
    assert job.args == ["ceph", "clean"]
    assert job.env["ROOK_DATA_DIR_HOST_PATH"] == "/var/lib/rook"
    assert job.env["ROOK_NAMESPACE_DIR"] == "rook-ceph"
    assert job.env["ROOK_MON_SECRET"] == "AQBmonsecret=="
    assert job.env["ROOK_CLUSTER_FSID"] == "fsid-1234"
    assert {m.host_path for m in job.mounts} == {"/var/lib/rook", "/dev"}
    assert job.labels["rook-ceph-cleanup"] == "true"


def test_job_without_data_dir_has_no_mounts_or_env():
    job = build_cleanup_job(_request(data_dir=""), "node-a", CleanupJobConfig())

    assert job.mounts == []
    assert job.env == {}


def test_manifest_shape():
    job = build_cleanup_job(
        _request(),
        "node-a",
        CleanupJobConfig(annotations={"team": "storage"}, priority_class_name="system-node-critical"),
    )

    manifest = job_to_manifest(job)
    pod = manifest["spec"]["template"]["spec"]

    assert manifest["kind"] == "Job"
    assert manifest["metadata"]["name"] == "cluster-cleanup-job-node-a"
    assert manifest["metadata"]["annotations"] == {"team": "storage"}
    assert pod["nodeSelector"] == {HOSTNAME_LABEL: "node-a"}
    assert pod["restartPolicy"] == "OnFailure"
    assert pod["priorityClassName"] == "system-node-critical"
    assert {v["hostPath"]["path"] for v in pod["volumes"]} == {"/var/lib/rook", "/dev"}
    container = pod["containers"][0]
    assert {"name": "ROOK_CLUSTER_FSID", "value": "fsid-1234"} in container["env"]
    assert container["securityContext"] == {"privileged": True}
