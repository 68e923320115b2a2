"""
Zone validation.

A zone must name itself, its namespace, and the zone group it joins.
"""

from __future__ import annotations

from ceph_orchestrator.core.errors import ValidationFailure
from ceph_orchestrator.core.types import Zone


def validate_zone(zone: Zone) -> None:
    """Raise ValidationFailure when a required field is empty."""
    if not zone.name:
        raise ValidationFailure("missing name")
    if not zone.namespace:
        raise ValidationFailure("missing namespace")
    if not zone.zone_group:
        raise ValidationFailure("missing zonegroup")
