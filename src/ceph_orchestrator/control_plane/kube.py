"""
Kubernetes control plane adapters.

These adapters implement the control_plane.base interfaces with the official
kubernetes client. Each takes its API object in the constructor so tests can
pass fakes, and callers decide how the client is configured.

Error mapping
ApiException with status 404 becomes ResourceNotFound.
Every other ApiException becomes ControlPlaneError.
Transport failures (urllib3 errors, refused or reset sockets) become ControlPlaneError.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

import urllib3
from kubernetes import client, config
from kubernetes.client import ApiException

from ceph_orchestrator.cleanup.jobs import HOSTNAME_LABEL, CleanupJob
from ceph_orchestrator.control_plane.base import (
    ClusterInfoLoader,
    JobDispatcher,
    NodeHostnameResolver,
    PodInfo,
    PodLister,
    ResourceStore,
)
from ceph_orchestrator.core.errors import ControlPlaneError, ResourceNotFound
from ceph_orchestrator.core.serialization import job_to_manifest
from ceph_orchestrator.core.types import (
    RESOURCE_KINDS,
    ClusterInfo,
    ClusterState,
    NamespacedName,
    Phase,
    ResourceKind,
    Zone,
    ZoneGroup,
)

MON_SECRET_NAME = "rook-ceph-mon"
CLUSTER_READY_PHASE = "Ready"

# Everything the kubernetes client raises for a failed call.
CLIENT_ERRORS = (ApiException, urllib3.exceptions.HTTPError, OSError)


def load_kube_config() -> None:
    """Use the in cluster service account, or the local kubeconfig outside a cluster."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def _is_not_found(exc: Exception) -> bool:
    return isinstance(exc, ApiException) and exc.status == 404


def _describe(exc: Exception) -> str:
    if isinstance(exc, ApiException):
        return f"{exc.status} {exc.reason}"
    return str(exc) or type(exc).__name__


def _control_plane_error(exc: Exception, what: str) -> ControlPlaneError:
    return ControlPlaneError(f"{what}: {_describe(exc)}")


def _wrap(exc: Exception, what: str) -> Exception:
    if _is_not_found(exc):
        return ResourceNotFound(f"{what} not found")
    return _control_plane_error(exc, what)


def _parse_timestamp(raw: Any) -> Optional[datetime]:
    if not raw:
        return None
    if isinstance(raw, datetime):
        return raw
    return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))


def _parse_phase(raw: Any) -> Optional[Phase]:
    for phase in Phase:
        if phase.value == raw:
            return phase
    return None


def zone_from_object(obj: dict[str, Any]) -> Zone:
    """
    Convert a CephObjectZone custom object into a Zone.

    A status block whose phase is not a known value still counts as present.
    """
    meta = obj.get("metadata", {}) or {}
    spec = obj.get("spec", {}) or {}
    status = obj.get("status")
    return Zone(
        name=str(meta.get("name", "")),
        namespace=str(meta.get("namespace", "")),
        zone_group=str(spec.get("zoneGroup", "")),
        phase=_parse_phase((status or {}).get("phase")),
        deletion_timestamp=_parse_timestamp(meta.get("deletionTimestamp")),
        status_present=status is not None,
    )


def zone_group_from_object(obj: dict[str, Any]) -> ZoneGroup:
    """Convert a CephObjectZoneGroup custom object into a ZoneGroup."""
    meta = obj.get("metadata", {}) or {}
    spec = obj.get("spec", {}) or {}
    return ZoneGroup(
        name=str(meta.get("name", "")),
        namespace=str(meta.get("namespace", "")),
        realm=str(spec.get("realm", "")),
    )


@dataclass
class KubePodLister(PodLister):
    core: client.CoreV1Api

    def list_pods(self, namespace: str, label_selector: str) -> list[PodInfo]:
        try:
            pods = self.core.list_namespaced_pod(namespace, label_selector=label_selector)
        except CLIENT_ERRORS as exc:
            raise _control_plane_error(exc, f"list pods {label_selector}") from exc
        return [
            PodInfo(name=p.metadata.name, node_name=p.spec.node_name or "")
            for p in pods.items
        ]


@dataclass
class KubeNodeHostnameResolver(NodeHostnameResolver):
    """Read the hostname label of a node, falling back to the node name."""

    core: client.CoreV1Api

    def hostname(self, node_name: str) -> str:
        try:
            node = self.core.read_node(node_name)
        except CLIENT_ERRORS as exc:
            raise _control_plane_error(exc, f"read node {node_name}") from exc
        labels = node.metadata.labels or {}
        return labels.get(HOSTNAME_LABEL) or node_name


@dataclass
class KubeJobDispatcher(JobDispatcher):
    """
    Submit or replace batch jobs.

    An existing job is deleted with background propagation and the dispatcher
    waits up to delete_timeout_seconds for it to disappear before creating the
    new one.
    """

    batch: client.BatchV1Api
    delete_timeout_seconds: float = 60.0
    poll_seconds: float = 2.0
    sleep: Callable[[float], None] = time.sleep

    def _exists(self, job: CleanupJob) -> bool:
        try:
            self.batch.read_namespaced_job(job.name, job.namespace)
        except CLIENT_ERRORS as exc:
            if _is_not_found(exc):
                return False
            raise _control_plane_error(exc, f"read job {job.name}") from exc
        return True

    def _delete_and_wait(self, job: CleanupJob) -> None:
        try:
            self.batch.delete_namespaced_job(
                job.name,
                job.namespace,
                body=client.V1DeleteOptions(propagation_policy="Background"),
            )
        except CLIENT_ERRORS as exc:
            if not _is_not_found(exc):
                raise _control_plane_error(exc, f"delete job {job.name}") from exc

        waited = 0.0
        while self._exists(job):
            if waited >= self.delete_timeout_seconds:
                raise ControlPlaneError(f"job {job.name} still exists after delete")
            self.sleep(self.poll_seconds)
            waited += self.poll_seconds

    def run_replaceable_job(self, job: CleanupJob) -> None:
        if self._exists(job):
            self._delete_and_wait(job)
        try:
            self.batch.create_namespaced_job(job.namespace, body=job_to_manifest(job))
        except CLIENT_ERRORS as exc:
            raise _control_plane_error(exc, f"create job {job.name}") from exc


@dataclass
class KubeClusterInfoLoader(ClusterInfoLoader):
    """
    Load cluster info from the monitor secret.

    The secret stores base64 encoded fsid and mon-secret keys.
    Config and keyring live under data_dir_host_path/<namespace>.
    """

    core: client.CoreV1Api
    data_dir_host_path: str = "/var/lib/rook"

    def load(self, namespace: str) -> ClusterInfo:
        try:
            secret = self.core.read_namespaced_secret(MON_SECRET_NAME, namespace)
        except CLIENT_ERRORS as exc:
            raise _control_plane_error(exc, f"read secret {namespace}/{MON_SECRET_NAME}") from exc

        data = secret.data or {}
        try:
            fsid = base64.b64decode(data["fsid"]).decode("utf-8")
            mon_secret = base64.b64decode(data["mon-secret"]).decode("utf-8")
        except (KeyError, ValueError) as exc:
            raise ControlPlaneError(f"malformed secret {namespace}/{MON_SECRET_NAME}") from exc

        base = f"{self.data_dir_host_path}/{namespace}"
        return ClusterInfo(
            namespace=namespace,
            fsid=fsid,
            monitor_secret=mon_secret,
            cluster_name=namespace,
            config_path=f"{base}/{namespace}.config",
            keyring_path=f"{base}/client.admin.keyring",
        )


@dataclass
class KubeResourceStore(ResourceStore):
    """Custom resource access through the custom objects API."""

    custom: client.CustomObjectsApi

    def _get(self, kind: ResourceKind, key: NamespacedName) -> dict[str, Any]:
        try:
            return self.custom.get_namespaced_custom_object(
                kind.group, kind.version, key.namespace, kind.plural, key.name
            )
        except CLIENT_ERRORS as exc:
            raise _wrap(exc, f"{kind.kind} {key}") from exc

    def get_zone(self, key: NamespacedName) -> Zone:
        return zone_from_object(self._get(RESOURCE_KINDS["CephObjectZone"], key))

    def get_zone_group(self, key: NamespacedName) -> ZoneGroup:
        return zone_group_from_object(self._get(RESOURCE_KINDS["CephObjectZoneGroup"], key))

    def update_zone_phase(self, zone: Zone, phase: Phase) -> None:
        kind = RESOURCE_KINDS["CephObjectZone"]
        try:
            self.custom.patch_namespaced_custom_object_status(
                kind.group,
                kind.version,
                zone.namespace,
                kind.plural,
                zone.name,
                {"status": {"phase": phase.value}},
            )
        except CLIENT_ERRORS as exc:
            raise _wrap(exc, f"{kind.kind} {zone.key}") from exc

    def cluster_state(self, namespace: str) -> ClusterState:
        """
        The first CephCluster in the namespace is the parent.

        A cluster being deleted is never ready.
        """
        kind = RESOURCE_KINDS["CephCluster"]
        try:
            listing = self.custom.list_namespaced_custom_object(
                kind.group, kind.version, namespace, kind.plural
            )
        except CLIENT_ERRORS as exc:
            raise _wrap(exc, f"{kind.kind} list in {namespace}") from exc

        items = listing.get("items", []) or []
        if not items:
            return ClusterState(exists=False, ready=False)

        cluster = items[0]
        meta = cluster.get("metadata", {}) or {}
        status = cluster.get("status", {}) or {}
        ready = status.get("phase") == CLUSTER_READY_PHASE and not meta.get("deletionTimestamp")
        return ClusterState(exists=True, ready=ready)
