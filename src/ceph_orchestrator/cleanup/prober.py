"""
Observed state prober.

Discover where managed daemons still run.

For each daemon kind we list pods labeled app=<kind> in the namespace and
collect the scheduling nodes they run on. Each node is then resolved to its
stable hostname, because cleanup jobs are pinned by hostname label and the
scheduling node name may differ from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from structlog.typing import FilteringBoundLogger

from ceph_orchestrator.control_plane.base import NodeHostnameResolver, PodLister
from ceph_orchestrator.core.errors import ControlPlaneError
from ceph_orchestrator.core.types import DaemonKind, HostSet
from ceph_orchestrator.observability.logging import get_component_logger


@dataclass(frozen=True)
class ProbeResult:
    """
    Result of one probe.

    hosts
    Distinct hostnames running any managed daemon.

    counts
    Pod count per daemon kind. Diagnostics only.
    """

    hosts: HostSet
    counts: Dict[DaemonKind, int]

    @property
    def drained(self) -> bool:
        return not self.hosts


class ObservedStateProber:
    """Query the control plane for running daemons and their hosts."""

    def __init__(
        self,
        pods: PodLister,
        nodes: NodeHostnameResolver,
        kinds: Sequence[DaemonKind] = tuple(DaemonKind),
        logger: Optional[FilteringBoundLogger] = None,
    ) -> None:
        self._pods = pods
        self._nodes = nodes
        self._kinds = tuple(kinds)
        self._log = logger or get_component_logger("observed-state-prober")

    def probe(self, namespace: str) -> ProbeResult:
        """
        Return hosts and per kind counts for namespace.

        Raises ControlPlaneError if any listing or hostname lookup fails.
        """
        counts: dict[DaemonKind, int] = {}
        node_names: set[str] = set()

        for kind in self._kinds:
            selector = f"app={kind.value}"
            try:
                pods = self._pods.list_pods(namespace, selector)
            except ControlPlaneError as exc:
                raise ControlPlaneError(f"could not list the {kind.value!r} pods: {exc}") from exc
            for pod in pods:
                node_names.add(pod.node_name)
            counts[kind] = len(pods)

        self._log.info(
            "existing_daemons",
            namespace=namespace,
            **{kind.value: count for kind, count in counts.items()},
        )

        hosts: set[str] = set()
        for node_name in sorted(node_names):
            try:
                hosts.add(self._nodes.hostname(node_name))
            except ControlPlaneError as exc:
                raise ControlPlaneError(
                    f"failed to get hostname from node {node_name!r}: {exc}"
                ) from exc

        return ProbeResult(hosts=frozenset(hosts), counts=counts)
