"""
radosgw-admin command runner.

This adapter runs the object gateway admin tool as a local process and
returns its stdout with the process exit status.

Connection arguments come from ClusterInfo so one runner instance always
talks to exactly one cluster. There is no timeout, a call blocks until the
process exits.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import Callable, Optional

from structlog.typing import FilteringBoundLogger

from ceph_orchestrator.admin.base import AdminCommandFactory, AdminCommandInterface
from ceph_orchestrator.control_plane.base import ClusterInfoLoader
from ceph_orchestrator.core.errors import ControlPlaneError, HardFailure
from ceph_orchestrator.core.types import AdminCommandResult, ClusterInfo
from ceph_orchestrator.observability.logging import get_component_logger

CommandRunner = Callable[..., "subprocess.CompletedProcess[str]"]

DEFAULT_BINARY = "radosgw-admin"


def connection_args(info: ClusterInfo) -> list[str]:
    """Arguments that point the admin tool at the cluster described by info."""
    args = [f"--cluster={info.cluster_name}"]
    if info.config_path:
        args.append(f"--conf={info.config_path}")
    if info.keyring_path:
        args.append("--name=client.admin")
        args.append(f"--keyring={info.keyring_path}")
    return args


@dataclass
class RadosgwAdmin(AdminCommandInterface):
    """
    Subprocess backed admin interface.

    runner
    Defaults to subprocess.run. Tests replace it to avoid spawning processes.
    """

    cluster: ClusterInfo
    binary: str = DEFAULT_BINARY
    runner: CommandRunner = subprocess.run
    logger: Optional[FilteringBoundLogger] = None
    _log: FilteringBoundLogger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._log = self.logger or get_component_logger(
            "radosgw-admin", namespace=self.cluster.namespace
        )

    def run(self, *args: str) -> AdminCommandResult:
        cmd = [self.binary, *args, *connection_args(self.cluster)]
        self._log.debug("admin_command_started", args=list(args))
        try:
            proc = self.runner(cmd, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise HardFailure(f"failed to run {self.binary}: {exc}") from exc

        if proc.returncode != 0 and proc.stderr:
            self._log.debug(
                "admin_command_failed",
                args=list(args),
                exit_status=proc.returncode,
                stderr=proc.stderr[:800],
            )
        return AdminCommandResult(output=proc.stdout or "", exit_status=proc.returncode)


@dataclass
class RadosgwAdminFactory(AdminCommandFactory):
    """
    Build a RadosgwAdmin per cluster.

    Cluster info is loaded on every call so a reconcile always uses the
    current connection details.
    """

    cluster_info: ClusterInfoLoader
    binary: str = DEFAULT_BINARY
    runner: CommandRunner = subprocess.run

    def for_cluster(self, namespace: str) -> AdminCommandInterface:
        try:
            info = self.cluster_info.load(namespace)
        except ControlPlaneError as exc:
            raise ControlPlaneError(f"failed to populate cluster info: {exc}") from exc
        return RadosgwAdmin(
            cluster=info,
            binary=self.binary,
            runner=self.runner,
        )
