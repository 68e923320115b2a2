"""
Zone reconciler.

This reconciler brings an object zone into existence only after its zone group
is confirmed in the resource store and in the storage cluster.

Phases
Created -> Reconciling -> Ready or ReconcileFailed.
ReconcileFailed is a label, not a sink. The next pass starts over.

Steps per pass
1) fetch the zone, a missing zone means it was deleted
2) set Created when there is no status yet
3) defer while the parent cluster is not ready
4) finish on deletion, no remote teardown is performed
5) validate, set Reconciling
6) resolve the zone group and its realm from the store
7) confirm the zone group with `zonegroup get`
8) get or create the zone, as master when the group has none
9) set Ready

Convergence is create only. An existing zone is never updated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from structlog.typing import FilteringBoundLogger

from ceph_orchestrator.admin.base import AdminCommandFactory, AdminCommandInterface
from ceph_orchestrator.control_plane.base import ResourceStore
from ceph_orchestrator.core.errors import (
    DependencyNotReady,
    HardFailure,
    NotFoundRetryable,
    OrchestratorError,
    ResourceNotFound,
    ValidationFailure,
)
from ceph_orchestrator.core.types import NamespacedName, Phase, ReconcileResult, Zone
from ceph_orchestrator.observability.logging import get_component_logger
from ceph_orchestrator.zone.master import decode_master_zone
from ceph_orchestrator.zone.status import StatusUpdater
from ceph_orchestrator.zone.validation import validate_zone

CONTROLLER_NAME = "ceph-object-zone-controller"


@dataclass(frozen=True)
class ZoneReconcilerConfig:
    """
    requeue_seconds
    Fixed delay used while a dependency is missing or the cluster is not ready.
    """

    requeue_seconds: float = 10.0


class ZoneReconciler:
    """Converge one CephObjectZone per call."""

    def __init__(
        self,
        store: ResourceStore,
        admin_factory: AdminCommandFactory,
        status: StatusUpdater | None = None,
        config: ZoneReconcilerConfig | None = None,
        logger: Optional[FilteringBoundLogger] = None,
    ) -> None:
        self._store = store
        self._admin_factory = admin_factory
        self._log = logger or get_component_logger(CONTROLLER_NAME)
        self._status = status or StatusUpdater(store, logger=self._log)
        self._config = config or ZoneReconcilerConfig()

    def reconcile(self, key: NamespacedName) -> ReconcileResult:
        """
        Run one pass for key.

        Returns a ReconcileResult on success or deferral.
        Raises an OrchestratorError subclass on failure. Errors that carry
        requeue_after ask for a fixed delay, the rest use the default backoff.
        """
        log = self._log.bind(zone=str(key))

        try:
            zone = self._store.get_zone(key)
        except ResourceNotFound:
            log.debug("zone_not_found_ignoring_since_deleted")
            return ReconcileResult()

        if not zone.status_present:
            self._status.update(key, Phase.created)

        cluster = self._store.cluster_state(key.namespace)
        if not cluster.ready:
            if zone.deletion_requested and not cluster.exists:
                log.debug("cluster_gone_zone_deleted")
                return ReconcileResult()
            log.info("cluster_not_ready_deferring")
            return ReconcileResult(requeue_after=self._config.requeue_seconds)

        if zone.deletion_requested:
            # TODO: remove the zone from the cluster once zone teardown is designed.
            log.debug("deleting_zone")
            return ReconcileResult()

        admin = self._admin_factory.for_cluster(key.namespace)

        try:
            validate_zone(zone)
        except ValidationFailure as exc:
            self._status.update(key, Phase.failed)
            raise ValidationFailure(f"invalid CephObjectZone {zone.name!r}: {exc}") from exc

        self._status.update(key, Phase.reconciling)

        realm = self._resolve_realm(zone)
        zone_group_output = self._confirm_zone_group(admin, zone, realm)

        try:
            self._create_zone(admin, zone, realm, zone_group_output)
        except OrchestratorError as exc:
            self._status.update(key, Phase.failed)
            raise HardFailure(
                f"failed to create ceph zone: {exc}",
                exit_status=getattr(exc, "exit_status", None),
            ) from exc

        self._status.update(key, Phase.ready)
        log.debug("zone_done_reconciling")
        return ReconcileResult()

    def _resolve_realm(self, zone: Zone) -> str:
        """Look up the declared zone group and return its realm."""
        group_key = NamespacedName(namespace=zone.namespace, name=zone.zone_group)
        try:
            group = self._store.get_zone_group(group_key)
        except ResourceNotFound as exc:
            raise NotFoundRetryable(
                f"CephObjectZoneGroup {zone.zone_group!r} not found",
                requeue_after=self._config.requeue_seconds,
            ) from exc
        except OrchestratorError as exc:
            raise DependencyNotReady(
                f"error getting CephObjectZoneGroup {zone.zone_group!r}: {exc}",
                requeue_after=self._config.requeue_seconds,
            ) from exc

        self._log.info("zone_group_found", zone_group=group.name, realm=group.realm)
        return group.realm

    def _confirm_zone_group(self, admin: AdminCommandInterface, zone: Zone, realm: str) -> str:
        """Return `zonegroup get` output once the group exists in the cluster."""
        result = admin.run(
            "zonegroup",
            "get",
            f"--rgw-realm={realm}",
            f"--rgw-zonegroup={zone.zone_group}",
        )
        if result.not_found:
            raise NotFoundRetryable(
                f"ceph zone group {zone.zone_group!r} not found",
                requeue_after=self._config.requeue_seconds,
            )
        if not result.ok:
            raise HardFailure(
                f"radosgw-admin zonegroup get failed with code {result.exit_status}",
                exit_status=result.exit_status,
            )

        self._log.info("zone_group_found_in_cluster", zone_group=zone.zone_group, zone=zone.name)
        return result.output

    def _create_zone(
        self,
        admin: AdminCommandInterface,
        zone: Zone,
        realm: str,
        zone_group_output: str,
    ) -> None:
        """Create the zone unless it already exists."""
        self._log.info("creating_zone", zone=zone.name, zone_group=zone.zone_group, realm=realm)

        master_zone = decode_master_zone(zone_group_output)

        location = (
            f"--rgw-realm={realm}",
            f"--rgw-zonegroup={zone.zone_group}",
            f"--rgw-zone={zone.name}",
        )

        existing = admin.run("zone", "get", *location)
        if existing.ok:
            return
        if not existing.not_found:
            raise HardFailure(
                f"radosgw-admin zone get failed with code {existing.exit_status}",
                exit_status=existing.exit_status,
            )

        self._log.debug("zone_not_found_running_zone_create", zone=zone.name)
        args = ["zone", "create", *location]
        if not master_zone:
            args.append("--master")

        created = admin.run(*args)
        if not created.ok:
            raise HardFailure(
                f"failed to create ceph zone {zone.name!r} (code {created.exit_status})",
                exit_status=created.exit_status,
            )
