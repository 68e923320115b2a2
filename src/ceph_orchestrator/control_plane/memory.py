"""
In memory resource store.

This store is used for tests and local simulations.
It keeps zones and zone groups keyed by namespace and name, and a per
namespace cluster state.

Features
- Records every phase written, in order, for assertions
- Can inject a failure into status writes
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from ceph_orchestrator.control_plane.base import ResourceStore
from ceph_orchestrator.core.errors import ControlPlaneError, ResourceNotFound
from ceph_orchestrator.core.types import (
    ClusterState,
    NamespacedName,
    Phase,
    Zone,
    ZoneGroup,
)


@dataclass
class InMemoryResourceStore(ResourceStore):
    """
    Simple registry of declared resources.

    fail_status_writes
    When True, update_zone_phase raises ControlPlaneError.
    """

    zones: Dict[NamespacedName, Zone] = field(default_factory=dict)
    zone_groups: Dict[NamespacedName, ZoneGroup] = field(default_factory=dict)
    clusters: Dict[str, ClusterState] = field(default_factory=dict)
    fail_status_writes: bool = False
    phase_history: List[Tuple[NamespacedName, Phase]] = field(default_factory=list)

    def add_zone(self, zone: Zone) -> None:
        """Add or replace a zone."""
        self.zones[zone.key] = zone

    def add_zone_group(self, group: ZoneGroup) -> None:
        """Add or replace a zone group."""
        self.zone_groups[NamespacedName(group.namespace, group.name)] = group

    def set_cluster(self, namespace: str, exists: bool = True, ready: bool = True) -> None:
        self.clusters[namespace] = ClusterState(exists=exists, ready=ready)

    def delete_zone(self, key: NamespacedName) -> None:
        self.zones.pop(key, None)

    def get_zone(self, key: NamespacedName) -> Zone:
        zone = self.zones.get(key)
        if zone is None:
            raise ResourceNotFound(f"zone {key} not found")
        # Callers get a snapshot, like a fresh read from an API server.
        return replace(zone)

    def get_zone_group(self, key: NamespacedName) -> ZoneGroup:
        group = self.zone_groups.get(key)
        if group is None:
            raise ResourceNotFound(f"zone group {key} not found")
        return replace(group)

    def update_zone_phase(self, zone: Zone, phase: Phase) -> None:
        if self.fail_status_writes:
            raise ControlPlaneError(f"status write rejected for zone {zone.key}")
        if zone.key not in self.zones:
            raise ResourceNotFound(f"zone {zone.key} not found")
        stored = self.zones[zone.key]
        stored.phase = phase
        stored.status_present = True
        self.phase_history.append((zone.key, phase))

    def cluster_state(self, namespace: str) -> ClusterState:
        return self.clusters.get(namespace, ClusterState(exists=False, ready=False))

    def phase_of(self, key: NamespacedName) -> Optional[Phase]:
        zone = self.zones.get(key)
        return zone.phase if zone else None
