"""
Operator wiring.

This is the composition layer. It builds the zone controller and the cluster
cleanup orchestrator from kubernetes API objects and an OperatorConfig.
build_operator is the process entry point. It configures logging from the
config before anything logs.

The core components stay free of client construction so they can run against
in memory doubles.
"""

from __future__ import annotations

from dataclasses import dataclass

from kubernetes import client

from ceph_orchestrator.admin.radosgw import RadosgwAdminFactory
from ceph_orchestrator.agent.runner import ControllerConfig, ZoneController
from ceph_orchestrator.cleanup.dispatcher import CleanupDispatcher
from ceph_orchestrator.cleanup.drain import DrainConfig, DrainWaiter
from ceph_orchestrator.cleanup.jobs import CleanupJobConfig
from ceph_orchestrator.cleanup.orchestrator import ClusterCleanupOrchestrator
from ceph_orchestrator.cleanup.prober import ObservedStateProber
from ceph_orchestrator.config import OperatorConfig
from ceph_orchestrator.control_plane.kube import (
    KubeClusterInfoLoader,
    KubeJobDispatcher,
    KubeNodeHostnameResolver,
    KubePodLister,
    KubeResourceStore,
    load_kube_config,
)
from ceph_orchestrator.observability.logging import configure_structlog
from ceph_orchestrator.zone.reconciler import ZoneReconciler, ZoneReconcilerConfig


def build_zone_controller(
    config: OperatorConfig,
    core: client.CoreV1Api,
    custom: client.CustomObjectsApi,
    controller_config: ControllerConfig | None = None,
) -> ZoneController:
    store = KubeResourceStore(custom=custom)
    admin_factory = RadosgwAdminFactory(
        cluster_info=KubeClusterInfoLoader(core=core, data_dir_host_path=config.data_dir_host_path),
        binary=config.radosgw_admin_binary,
    )
    reconciler = ZoneReconciler(
        store=store,
        admin_factory=admin_factory,
        config=ZoneReconcilerConfig(requeue_seconds=config.zone_requeue_seconds),
    )
    return ZoneController(reconciler, config=controller_config)


def build_cleanup_orchestrator(
    config: OperatorConfig,
    core: client.CoreV1Api,
    batch: client.BatchV1Api,
) -> ClusterCleanupOrchestrator:
    prober = ObservedStateProber(
        pods=KubePodLister(core=core),
        nodes=KubeNodeHostnameResolver(core=core),
    )
    return ClusterCleanupOrchestrator(
        prober=prober,
        waiter=DrainWaiter(
            prober,
            config=DrainConfig(poll_interval_seconds=config.cleanup_poll_interval_seconds),
        ),
        dispatcher=CleanupDispatcher(
            KubeJobDispatcher(batch=batch),
            config=CleanupJobConfig(image=config.image),
        ),
        cluster_info=KubeClusterInfoLoader(core=core, data_dir_host_path=config.data_dir_host_path),
    )


@dataclass(frozen=True)
class Operator:
    """The two long running parts of the operator."""

    zones: ZoneController
    cleanup: ClusterCleanupOrchestrator


def build_operator(
    config: OperatorConfig | None = None,
    api_client: client.ApiClient | None = None,
) -> Operator:
    """
    Build the whole operator.

    config defaults to OperatorConfig.from_env().
    api_client defaults to one built from the in cluster or local kubeconfig.
    """
    config = config or OperatorConfig.from_env()
    configure_structlog(environment=config.log_environment)

    if api_client is None:
        load_kube_config()
        api_client = client.ApiClient()

    core = client.CoreV1Api(api_client)
    return Operator(
        zones=build_zone_controller(config, core, client.CustomObjectsApi(api_client)),
        cleanup=build_cleanup_orchestrator(config, core, client.BatchV1Api(api_client)),
    )
