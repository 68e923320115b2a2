"""
Zone package.

Re-exports the reconciler and status updater for callers that wire them.
"""

from ceph_orchestrator.zone.reconciler import ZoneReconciler, ZoneReconcilerConfig
from ceph_orchestrator.zone.status import StatusUpdater

__all__ = ["StatusUpdater", "ZoneReconciler", "ZoneReconcilerConfig"]
