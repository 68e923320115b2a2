from datetime import datetime, timezone

import pytest

from ceph_orchestrator.admin.mock import InMemoryRadosgw, StaticAdminFactory
from ceph_orchestrator.control_plane.memory import InMemoryResourceStore
from ceph_orchestrator.core.errors import (
    ControlPlaneError,
    DependencyNotReady,
    HardFailure,
    NotFoundRetryable,
    ValidationFailure,
)
from ceph_orchestrator.core.types import (
    AdminCommandResult,
    NamespacedName,
    Phase,
    Zone,
    ZoneGroup,
)
from ceph_orchestrator.zone.reconciler import ZoneReconciler, ZoneReconcilerConfig

NS = "rook-ceph"
KEY = NamespacedName(namespace=NS, name="zone-a")
MASTER_CREATE = (
    "zone",
    "create",
    "--rgw-realm=realm-a",
    "--rgw-zonegroup=group-1",
    "--rgw-zone=zone-a",
    "--master",
)


def make_store(zone_group: str = "group-1") -> InMemoryResourceStore:
    store = InMemoryResourceStore()
    store.set_cluster(NS)
    store.add_zone_group(ZoneGroup(name="group-1", namespace=NS, realm="realm-a"))
    store.add_zone(Zone(name="zone-a", namespace=NS, zone_group=zone_group))
    return store


def make_admin(master_zone: str = "") -> InMemoryRadosgw:
    admin = InMemoryRadosgw()
    admin.add_zone_group("realm-a", "group-1", master_zone=master_zone)
    return admin


def make_reconciler(store, admin) -> ZoneReconciler:  # type: ignore[no-untyped-def]
    return ZoneReconciler(
        store=store,
        admin_factory=StaticAdminFactory(admin),
        config=ZoneReconcilerConfig(requeue_seconds=10.0),
    )


def phases(store: InMemoryResourceStore) -> list[Phase]:
    return [phase for key, phase in store.phase_history if key == KEY]


def test_creates_master_zone_when_group_has_none():
    store = make_store()
    admin = make_admin()

    result = make_reconciler(store, admin).reconcile(KEY)

    assert not result.requeue
    assert admin.calls_for("zone", "create") == [MASTER_CREATE]
    assert phases(store) == [Phase.created, Phase.reconciling, Phase.ready]


def test_creates_non_master_zone_when_master_exists():
    store = make_store()
    admin = make_admin(master_zone="zone-primary-id")

    make_reconciler(store, admin).reconcile(KEY)

    created = admin.calls_for("zone", "create")
    assert len(created) == 1
    assert "--master" not in created[0]
    assert store.phase_of(KEY) == Phase.ready


def test_existing_zone_is_left_alone_and_reaches_ready():
    store = make_store()
    admin = make_admin(master_zone="zone-a-id")
    admin.zones[("realm-a", "group-1")].append("zone-a")

    make_reconciler(store, admin).reconcile(KEY)

    assert admin.calls_for("zone", "create") == []
    assert len(admin.calls_for("zone", "get")) == 1
    assert store.phase_of(KEY) == Phase.ready


def test_second_pass_is_idempotent():
    store = make_store()
    admin = make_admin()
    reconciler = make_reconciler(store, admin)

    reconciler.reconcile(KEY)
    reconciler.reconcile(KEY)

    assert len(admin.calls_for("zone", "create")) == 1
    assert store.phase_of(KEY) == Phase.ready


def test_zone_group_missing_remotely_is_retryable_without_zone_calls():
    store = make_store()
    admin = InMemoryRadosgw()

    with pytest.raises(NotFoundRetryable) as excinfo:
        make_reconciler(store, admin).reconcile(KEY)

    assert excinfo.value.requeue_after == 10.0
    assert admin.calls_for("zone") == []
    assert len(admin.calls_for("zonegroup", "get")) == 1
    assert store.phase_of(KEY) == Phase.reconciling


def test_zone_group_missing_in_store_is_retryable_without_admin_calls():
    store = make_store(zone_group="group-missing")
    admin = make_admin()

    with pytest.raises(NotFoundRetryable) as excinfo:
        make_reconciler(store, admin).reconcile(KEY)

    assert excinfo.value.requeue_after == 10.0
    assert admin.calls == []
    assert store.phase_of(KEY) == Phase.reconciling


def test_zone_group_store_error_is_dependency_not_ready():
    class FlakyStore(InMemoryResourceStore):
        def get_zone_group(self, key):  # type: ignore[no-untyped-def]
            raise ControlPlaneError("etcd timeout")

    store = FlakyStore()
    store.set_cluster(NS)
    store.add_zone(Zone(name="zone-a", namespace=NS, zone_group="group-1"))

    with pytest.raises(DependencyNotReady) as excinfo:
        make_reconciler(store, make_admin()).reconcile(KEY)

    assert excinfo.value.requeue_after == 10.0


def test_zone_group_get_failure_is_hard_with_default_backoff():
    store = make_store()
    admin = make_admin()
    admin.failures[("zonegroup", "get")] = 5

    with pytest.raises(HardFailure) as excinfo:
        make_reconciler(store, admin).reconcile(KEY)

    assert excinfo.value.exit_status == 5
    assert excinfo.value.requeue_after is None
    assert "code 5" in str(excinfo.value)
    assert admin.calls_for("zone") == []
    assert store.phase_of(KEY) == Phase.reconciling


def test_zone_create_failure_marks_failed_and_next_pass_recovers():
    store = make_store()
    admin = make_admin()
    admin.failures[("zone", "create")] = 1
    reconciler = make_reconciler(store, admin)

    with pytest.raises(HardFailure):
        reconciler.reconcile(KEY)
    assert store.phase_of(KEY) == Phase.failed

    admin.failures.clear()
    reconciler.reconcile(KEY)

    assert store.phase_of(KEY) == Phase.ready
    assert phases(store)[-3:] == [Phase.failed, Phase.reconciling, Phase.ready]


def test_zone_get_failure_marks_failed_without_create():
    store = make_store()
    admin = make_admin()
    admin.failures[("zone", "get")] = 13

    with pytest.raises(HardFailure) as excinfo:
        make_reconciler(store, admin).reconcile(KEY)

    assert excinfo.value.exit_status == 13
    assert admin.calls_for("zone", "create") == []
    assert store.phase_of(KEY) == Phase.failed


def test_unparseable_zone_group_output_marks_failed():
    class GarbledAdmin(InMemoryRadosgw):
        def run(self, *args):  # type: ignore[no-untyped-def]
            if args[:2] == ("zonegroup", "get"):
                self.calls.append(tuple(args))
                return AdminCommandResult(output="not json", exit_status=0)
            return super().run(*args)

    store = make_store()
    admin = GarbledAdmin()
    admin.add_zone_group("realm-a", "group-1")

    with pytest.raises(HardFailure, match="failed to parse"):
        make_reconciler(store, admin).reconcile(KEY)

    assert admin.calls_for("zone") == []
    assert store.phase_of(KEY) == Phase.failed


def test_invalid_zone_marks_failed():
    store = make_store(zone_group="")
    admin = make_admin()

    with pytest.raises(ValidationFailure, match="missing zonegroup"):
        make_reconciler(store, admin).reconcile(KEY)

    assert admin.calls == []
    assert store.phase_of(KEY) == Phase.failed


def test_cluster_not_ready_defers_without_further_status():
    store = make_store()
    store.set_cluster(NS, exists=True, ready=False)
    admin = make_admin()

    result = make_reconciler(store, admin).reconcile(KEY)

    assert result.requeue_after == 10.0
    assert admin.calls == []
    assert phases(store) == [Phase.created]


def test_zone_with_unrecognized_status_is_not_reset_to_created():
    store = make_store()
    store.add_zone(Zone(name="zone-a", namespace=NS, zone_group="group-1", status_present=True))
    admin = make_admin()

    make_reconciler(store, admin).reconcile(KEY)

    assert phases(store) == [Phase.reconciling, Phase.ready]


def test_deleted_zone_with_cluster_gone_finishes_without_remote_calls():
    store = make_store()
    store.set_cluster(NS, exists=False, ready=False)
    store.zones[KEY].phase = Phase.ready
    store.zones[KEY].deletion_timestamp = datetime.now(timezone.utc)
    admin = make_admin()

    result = make_reconciler(store, admin).reconcile(KEY)

    assert not result.requeue
    assert admin.calls == []


def test_deleted_zone_with_cluster_present_finishes_without_remote_calls():
    store = make_store()
    store.zones[KEY].phase = Phase.ready
    store.zones[KEY].deletion_timestamp = datetime.now(timezone.utc)
    admin = make_admin()

    result = make_reconciler(store, admin).reconcile(KEY)

    assert not result.requeue
    assert admin.calls == []
    assert phases(store) == []


def test_missing_zone_is_ignored():
    store = InMemoryResourceStore()
    store.set_cluster(NS)
    admin = make_admin()

    result = make_reconciler(store, admin).reconcile(KEY)

    assert not result.requeue
    assert admin.calls == []
