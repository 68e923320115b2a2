"""
Zone status updater.

Status is best effort telemetry. A write that fails is logged and dropped.

The zone is fetched again right before every write, so a multi step reconcile
never writes through a stale snapshot. A zone deleted in the meantime is
skipped silently.
"""

from __future__ import annotations

from typing import Optional

from structlog.typing import FilteringBoundLogger

from ceph_orchestrator.control_plane.base import ResourceStore
from ceph_orchestrator.core.errors import OrchestratorError, ResourceNotFound
from ceph_orchestrator.core.types import NamespacedName, Phase
from ceph_orchestrator.observability.logging import get_component_logger


class StatusUpdater:
    """Write the phase of a zone."""

    def __init__(self, store: ResourceStore, logger: Optional[FilteringBoundLogger] = None) -> None:
        self._store = store
        self._log = logger or get_component_logger("zone-status")

    def update(self, key: NamespacedName, phase: Phase) -> None:
        log = self._log.bind(zone=str(key), phase=phase.value)
        try:
            zone = self._store.get_zone(key)
        except ResourceNotFound:
            log.debug("zone_not_found_ignoring_since_deleted")
            return
        except OrchestratorError as exc:
            log.warning("failed_to_retrieve_zone_for_status", error=str(exc))
            return

        try:
            self._store.update_zone_phase(zone, phase)
        except ResourceNotFound:
            log.debug("zone_not_found_ignoring_since_deleted")
            return
        except OrchestratorError as exc:
            log.error("failed_to_set_zone_status", error=str(exc))
            return
        log.debug("zone_status_updated")
