"""
Cleanup job descriptors.

A cleanup job wipes residual on disk state from one host once every daemon
has left the cluster. Each job is pinned to its host with a node selector.

Naming
The job name is derived only from the hostname. Submitting a job with the same
name replaces the previous one, which gives at most one active job per host.
Names longer than the DNS-1035 label limit use a hash of the hostname instead.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Dict, List

from ceph_orchestrator.core.types import ClusterCleanupRequest

CLEANUP_APP_NAME = "rook-ceph-cleanup"
CLEANUP_JOB_NAME_FORMAT = "cluster-cleanup-job-{}"
HOSTNAME_LABEL = "kubernetes.io/hostname"

# DNS-1035 label length
MAX_NAME_LENGTH = 63

DATA_DIR_VOLUME = "cleanup-volume"
DEVICES_VOLUME = "devices"
DEVICES_PATH = "/dev"

ENV_DATA_DIR_HOST_PATH = "ROOK_DATA_DIR_HOST_PATH"
ENV_NAMESPACE_DIR = "ROOK_NAMESPACE_DIR"
ENV_MON_SECRET = "ROOK_MON_SECRET"
ENV_CLUSTER_FSID = "ROOK_CLUSTER_FSID"
ENV_LOG_LEVEL = "ROOK_LOG_LEVEL"
ENV_POD_NAMESPACE = "POD_NAMESPACE"


def hash_name(value: str) -> str:
    """First 16 bytes of the sha256 of value, hex encoded."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:32]


def truncate_node_name(name_format: str, node_name: str) -> str:
    """
    Format a per node object name that fits in MAX_NAME_LENGTH.

    When the formatted name would be too long, the node name is replaced by
    its hash. The hash keeps names distinct across hosts.
    """
    if len(name_format.format("")) + len(node_name) > MAX_NAME_LENGTH:
        node_name = hash_name(node_name)
    return name_format.format(node_name)


def cleanup_job_name(hostname: str) -> str:
    return truncate_node_name(CLEANUP_JOB_NAME_FORMAT, hostname)


@dataclass(frozen=True)
class HostMount:
    """A host path mounted into the cleanup container, read write."""

    name: str
    host_path: str
    mount_path: str


@dataclass(frozen=True)
class CleanupJobConfig:
    """
    Static settings applied to every cleanup job.

    image
    Operator image that implements the clean command.

    annotations and priority_class_name
    Passed through from the cluster spec.
    """

    image: str = "rook/ceph:master"
    annotations: Dict[str, str] = field(default_factory=dict)
    priority_class_name: str = ""


@dataclass
class CleanupJob:
    """
    A one shot, host pinned unit of work.

    restart_policy is OnFailure so the platform retries the pod without limit.
    """

    name: str
    namespace: str
    hostname: str
    image: str
    args: List[str]
    env: Dict[str, str]
    mounts: List[HostMount]
    labels: Dict[str, str]
    node_selector: Dict[str, str]
    annotations: Dict[str, str] = field(default_factory=dict)
    priority_class_name: str = ""
    restart_policy: str = "OnFailure"


def _cleanup_labels(namespace: str) -> Dict[str, str]:
    return {
        "app": CLEANUP_APP_NAME,
        "rook_cluster": namespace,
        CLEANUP_APP_NAME: "true",
    }


def build_cleanup_job(
    request: ClusterCleanupRequest,
    hostname: str,
    config: CleanupJobConfig,
) -> CleanupJob:
    """
    Build the cleanup job for one host.

    Mounts and env are only carried when the request has a data directory,
    without one there is nothing on the host for the job to wipe.
    """
    mounts: list[HostMount] = []
    env: dict[str, str] = {}
    if request.data_dir_host_path:
        mounts = [
            HostMount(
                name=DATA_DIR_VOLUME,
                host_path=request.data_dir_host_path,
                mount_path=request.data_dir_host_path,
            ),
            HostMount(name=DEVICES_VOLUME, host_path=DEVICES_PATH, mount_path=DEVICES_PATH),
        ]
        env = {
            ENV_DATA_DIR_HOST_PATH: request.data_dir_host_path,
            ENV_NAMESPACE_DIR: request.namespace,
            ENV_MON_SECRET: request.monitor_secret,
            ENV_CLUSTER_FSID: request.cluster_id,
            ENV_LOG_LEVEL: "DEBUG",
            ENV_POD_NAMESPACE: request.namespace,
        }

    return CleanupJob(
        name=cleanup_job_name(hostname),
        namespace=request.namespace,
        hostname=hostname,
        image=config.image,
        args=["ceph", "clean"],
        env=env,
        mounts=mounts,
        labels=_cleanup_labels(request.namespace),
        node_selector={HOSTNAME_LABEL: hostname},
        annotations=dict(config.annotations),
        priority_class_name=config.priority_class_name,
    )
