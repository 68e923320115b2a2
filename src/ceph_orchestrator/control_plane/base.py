"""
Control plane interfaces.

Goal
Keep the cleanup and zone logic independent of a specific platform client.

Every collaborator here is narrow so tests can use small fakes.
Implementations raise ResourceNotFound for a missing named object and
ControlPlaneError for anything else that went wrong.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ceph_orchestrator.cleanup.jobs import CleanupJob
from ceph_orchestrator.core.types import (
    ClusterInfo,
    ClusterState,
    NamespacedName,
    Phase,
    Zone,
    ZoneGroup,
)


@dataclass(frozen=True)
class PodInfo:
    """
    A running daemon instance.

    node_name is the scheduling node, not the stable hostname.
    """

    name: str
    node_name: str


class PodLister(Protocol):
    """List running pods by label selector within a namespace."""

    def list_pods(self, namespace: str, label_selector: str) -> list[PodInfo]:
        """Return pods matching the selector."""


class NodeHostnameResolver(Protocol):
    """Resolve a scheduling node name to the hostname used for pinning."""

    def hostname(self, node_name: str) -> str:
        """Return the stable hostname of the node."""


class JobDispatcher(Protocol):
    """
    Submit or replace a one shot job.

    An existing job with the same name is removed before the new one is created.
    """

    def run_replaceable_job(self, job: CleanupJob) -> None:
        """Submit the job, replacing any job with the same name."""


class ClusterInfoLoader(Protocol):
    """Load connection details and secrets of the cluster in a namespace."""

    def load(self, namespace: str) -> ClusterInfo:
        """Return cluster info or raise ControlPlaneError."""


class ResourceStore(Protocol):
    """
    Declarative resource store.

    get_zone and get_zone_group raise ResourceNotFound when absent.
    """

    def get_zone(self, key: NamespacedName) -> Zone:
        """Fetch a zone."""

    def get_zone_group(self, key: NamespacedName) -> ZoneGroup:
        """Fetch a zone group."""

    def update_zone_phase(self, zone: Zone, phase: Phase) -> None:
        """Write the status phase of a zone."""

    def cluster_state(self, namespace: str) -> ClusterState:
        """Return whether the parent cluster exists and is ready."""
