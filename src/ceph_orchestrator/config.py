"""
Operator configuration.

Component configs are frozen dataclasses with safe defaults. OperatorConfig
collects the values an operator deployment overrides through its environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ceph_orchestrator.admin.radosgw import DEFAULT_BINARY


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class OperatorConfig:
    """
    image
    Operator image used by cleanup jobs.

    cleanup_poll_interval_seconds
    Drain poll interval.

    zone_requeue_seconds
    Fixed delay for zones waiting on a dependency.

    data_dir_host_path
    Host directory holding cluster state, wiped by cleanup jobs.

    log_environment
    production for JSON logs, development for console logs.
    """

    image: str = "rook/ceph:master"
    cleanup_poll_interval_seconds: float = 5.0
    zone_requeue_seconds: float = 10.0
    data_dir_host_path: str = "/var/lib/rook"
    radosgw_admin_binary: str = DEFAULT_BINARY
    log_environment: str = "production"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OperatorConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            image=env.get("ROOK_CEPH_IMAGE", defaults.image),
            cleanup_poll_interval_seconds=_float(
                env, "CLEANUP_POLL_INTERVAL_SECONDS", defaults.cleanup_poll_interval_seconds
            ),
            zone_requeue_seconds=_float(env, "ZONE_REQUEUE_SECONDS", defaults.zone_requeue_seconds),
            data_dir_host_path=env.get("ROOK_DATA_DIR_HOST_PATH", defaults.data_dir_host_path),
            radosgw_admin_binary=env.get("RADOSGW_ADMIN_BINARY", defaults.radosgw_admin_binary),
            log_environment=env.get("LOG_ENVIRONMENT", defaults.log_environment),
        )
