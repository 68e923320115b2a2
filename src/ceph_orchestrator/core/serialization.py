from __future__ import annotations

from typing import Any

from ceph_orchestrator.cleanup.jobs import CleanupJob


def job_to_manifest(job: CleanupJob) -> dict[str, Any]:
    """
    batch/v1 Job transport shape.

    Every host mount becomes a hostPath volume plus a volume mount of the
    same name. The container runs privileged because it wipes devices.
    """
    volumes = [{"name": m.name, "hostPath": {"path": m.host_path}} for m in job.mounts]
    volume_mounts = [{"name": m.name, "mountPath": m.mount_path} for m in job.mounts]
    env = [{"name": k, "value": v} for k, v in job.env.items()]

    pod_spec: dict[str, Any] = {
        "containers": [
            {
                "name": "host-cleanup",
                "image": job.image,
                "args": list(job.args),
                "env": env,
                "volumeMounts": volume_mounts,
                "securityContext": {"privileged": True},
            }
        ],
        "volumes": volumes,
        "restartPolicy": job.restart_policy,
        "nodeSelector": dict(job.node_selector),
    }
    if job.priority_class_name:
        pod_spec["priorityClassName"] = job.priority_class_name

    return {
        "apiVersion": "batch/v1",
        "kind": "Job",
        "metadata": {
            "name": job.name,
            "namespace": job.namespace,
            "labels": dict(job.labels),
            "annotations": dict(job.annotations),
        },
        "spec": {
            "template": {
                "metadata": {"name": "rook-ceph-cleanup", "labels": dict(job.labels)},
                "spec": pod_spec,
            }
        },
    }
