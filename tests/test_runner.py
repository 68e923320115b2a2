from structlog.testing import capture_logs

from ceph_orchestrator.admin.mock import InMemoryRadosgw, StaticAdminFactory
from ceph_orchestrator.agent.runner import ControllerConfig, ZoneController
from ceph_orchestrator.control_plane.memory import InMemoryResourceStore
from ceph_orchestrator.core.cancellation import CancellationToken
from ceph_orchestrator.core.types import NamespacedName, Phase, Zone, ZoneGroup
from ceph_orchestrator.zone.reconciler import ZoneReconciler

NS = "rook-ceph"
KEY = NamespacedName(namespace=NS, name="zone-a")


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _setup(admin: InMemoryRadosgw):  # type: ignore[no-untyped-def]
    store = InMemoryResourceStore()
    store.set_cluster(NS)
    store.add_zone_group(ZoneGroup(name="group-1", namespace=NS, realm="realm-a"))
    store.add_zone(Zone(name="zone-a", namespace=NS, zone_group="group-1"))
    clock = FakeClock()
    controller = ZoneController(
        ZoneReconciler(store=store, admin_factory=StaticAdminFactory(admin)),
        config=ControllerConfig(base_backoff_seconds=1.0, max_backoff_seconds=4.0),
        clock=clock,
    )
    return store, controller, clock


def test_retryable_error_requeues_after_fixed_delay_then_converges():
    admin = InMemoryRadosgw()
    store, controller, clock = _setup(admin)

    controller.enqueue(KEY)
    assert controller.run_cycle() == 1
    assert controller.pending() == {KEY: 10.0}
    assert store.phase_of(KEY) == Phase.reconciling

    admin.add_zone_group("realm-a", "group-1")
    clock.now = 5.0
    assert controller.run_cycle() == 0

    clock.now = 10.0
    assert controller.run_cycle() == 1
    assert controller.pending() == {}
    assert store.phase_of(KEY) == Phase.ready


def test_hard_failures_back_off_exponentially_with_a_cap():
    admin = InMemoryRadosgw()
    admin.add_zone_group("realm-a", "group-1")
    admin.failures[("zone", "create")] = 1
    _, controller, _ = _setup(admin)

    delays = [controller.reconcile(KEY).requeue_after for _ in range(4)]

    assert delays == [1.0, 2.0, 4.0, 4.0]


def test_success_resets_backoff():
    admin = InMemoryRadosgw()
    admin.add_zone_group("realm-a", "group-1")
    admin.failures[("zone", "create")] = 1
    _, controller, _ = _setup(admin)

    controller.reconcile(KEY)
    controller.reconcile(KEY)
    admin.failures.clear()
    assert not controller.reconcile(KEY).requeue

    admin.failures[("zone", "get")] = 1
    assert controller.reconcile(KEY).requeue_after == 1.0


def test_failed_pass_is_logged():
    admin = InMemoryRadosgw()
    admin.add_zone_group("realm-a", "group-1")
    admin.failures[("zone", "create")] = 1

    with capture_logs() as logs:
        _, controller, _ = _setup(admin)
        controller.reconcile(KEY)

    errors = [e for e in logs if e["event"] == "failed_to_reconcile"]
    assert len(errors) == 1
    assert errors[0]["zone"] == "rook-ceph/zone-a"


def test_enqueue_keeps_earliest_time():
    _, controller, clock = _setup(InMemoryRadosgw())

    controller.enqueue(KEY, delay=30.0)
    controller.enqueue(KEY, delay=5.0)
    controller.enqueue(KEY, delay=60.0)

    assert controller.pending() == {KEY: 5.0}


def test_run_forever_stops_on_cancel():
    _, controller, _ = _setup(InMemoryRadosgw())
    stop = CancellationToken()
    stop.cancel()

    controller.run_forever(stop)

    assert controller.pending() == {}
