"""
Admin command interfaces.

Goal
Define a stable interface for running object gateway admin commands without
binding the reconciler to a binary, a container exec, or a test double.

Design notes
run never raises for a failing command. It returns the exit status and the
reconciler decides what the status means. Only ADMIN_NOT_FOUND_STATUS carries
meaning, every other nonzero status is an opaque failure.
"""

from __future__ import annotations

from typing import Protocol

from ceph_orchestrator.core.types import AdminCommandResult


class AdminCommandInterface(Protocol):
    """
    Minimal admin command interface.

    run
    Executes one command such as ["zonegroup", "get", "--rgw-realm=r1", ...]
    and blocks until it returns.
    """

    def run(self, *args: str) -> AdminCommandResult:
        """Run an admin command and return its output and exit status."""


class AdminCommandFactory(Protocol):
    """
    Create an admin interface bound to one cluster.

    This decouples the reconciler from cluster connection details such as
    config files, keyrings, and cluster names.
    """

    def for_cluster(self, namespace: str) -> AdminCommandInterface:
        """Return an admin interface for the cluster in namespace."""
