"""
Core types.

This file defines the shared data structures used across the operator.

Important design choice
We keep these types independent of the kubernetes client objects.

Adapters in control_plane convert custom resources and pods into these
dataclasses, so the cleanup and zone logic never sees raw API payloads.
"""

from __future__ import annotations

import errno
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ceph_orchestrator.core.cancellation import CancellationToken

HostSet = FrozenSet[str]

# Exit status the admin tool uses to signal a missing realm, zonegroup or zone.
ADMIN_NOT_FOUND_STATUS = errno.ENOENT


class DaemonKind(str, Enum):
    """
    Managed daemon kinds.

    The value is the app label carried by the daemon pods.

    monitor
      Cluster map quorum.

    manager
      Metrics and orchestration modules.

    storage_node
      Object storage daemons, one per disk.

    gateway
      Object gateway serving S3 and Swift.

    metadata_server
      Shared filesystem metadata.

    mirror
      Block image mirroring.
    """

    monitor = "rook-ceph-mon"
    manager = "rook-ceph-mgr"
    storage_node = "rook-ceph-osd"
    gateway = "rook-ceph-rgw"
    metadata_server = "rook-ceph-mds"
    mirror = "rook-ceph-rbd-mirror"


class Phase(str, Enum):
    """
    Status phases written on a zone.

    failed is a label, not a terminal state. The next reconcile moves
    the zone back to reconciling.
    """

    created = "Created"
    reconciling = "Reconciling"
    ready = "Ready"
    failed = "ReconcileFailed"


@dataclass(frozen=True)
class ResourceKind:
    """
    API coordinates for a custom resource kind.

    plural is the path segment used by the custom objects API.
    """

    kind: str
    group: str
    version: str
    plural: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"


CEPH_GROUP = "ceph.rook.io"
CEPH_VERSION = "v1"

RESOURCE_KINDS: Dict[str, ResourceKind] = {
    "CephCluster": ResourceKind("CephCluster", CEPH_GROUP, CEPH_VERSION, "cephclusters"),
    "CephObjectZoneGroup": ResourceKind(
        "CephObjectZoneGroup", CEPH_GROUP, CEPH_VERSION, "cephobjectzonegroups"
    ),
    "CephObjectZone": ResourceKind("CephObjectZone", CEPH_GROUP, CEPH_VERSION, "cephobjectzones"),
}


@dataclass(frozen=True)
class NamespacedName:
    """Identity of a namespaced object, and the work queue key of a reconcile."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class ZoneGroup:
    """
    Declared object zone group.

    realm names the realm that scopes this group.
    """

    name: str
    namespace: str
    realm: str


@dataclass
class Zone:
    """
    Declared object zone.

    zone_group names the parent group. The realm is always resolved through it.

    phase is None until the first reconcile writes Created, and also when the
    stored phase is not one of the known values.

    status_present tells whether the resource carries a status block at all.
    Only a zone without one gets the initial Created phase. A known phase
    implies a status block.

    deletion_timestamp is set by the platform once deletion was requested.
    """

    name: str
    namespace: str
    zone_group: str
    phase: Optional[Phase] = None
    deletion_timestamp: Optional[datetime] = None
    status_present: bool = False

    def __post_init__(self) -> None:
        if self.phase is not None:
            self.status_present = True

    @property
    def key(self) -> NamespacedName:
        return NamespacedName(namespace=self.namespace, name=self.name)

    @property
    def deletion_requested(self) -> bool:
        return self.deletion_timestamp is not None


@dataclass(frozen=True)
class ClusterState:
    """
    Parent cluster state as seen by reconcilers.

    exists is False once the cluster resource is gone.
    ready is True only when the cluster reports a ready phase.
    """

    exists: bool
    ready: bool


@dataclass(frozen=True)
class ClusterInfo:
    """
    Connection and identity details of a running storage cluster.

    fsid is the cluster id written into cleanup jobs.
    """

    namespace: str
    fsid: str
    monitor_secret: str
    cluster_name: str = "ceph"
    config_path: str = ""
    keyring_path: str = ""


@dataclass(frozen=True)
class AdminCommandResult:
    """
    Output of one admin command.

    exit_status is the process status. Zero is success, ADMIN_NOT_FOUND_STATUS
    means the named entity does not exist. Every other value is an opaque failure.
    """

    output: str
    exit_status: int

    @property
    def ok(self) -> bool:
        return self.exit_status == 0

    @property
    def not_found(self) -> bool:
        return self.exit_status == ADMIN_NOT_FOUND_STATUS


@dataclass
class ClusterCleanupRequest:
    """
    One cluster teardown.

    Created when cluster deletion starts.
    Ends when the drain completed and jobs were dispatched, or when cancel fired.
    """

    namespace: str
    monitor_secret: str
    cluster_id: str
    data_dir_host_path: str = "/var/lib/rook"
    cancel: CancellationToken = field(default_factory=CancellationToken)


@dataclass(frozen=True)
class ReconcileResult:
    """
    Outcome of a successful reconcile pass.

    requeue_after
    Seconds until the key must be reconciled again. None means done.
    """

    requeue_after: Optional[float] = None

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None
