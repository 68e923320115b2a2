"""
In memory admin interface.

This double is used for tests and local simulations.
It behaves like a tiny realm, zone group and zone database and answers the
subset of radosgw-admin commands the zone reconciler issues.

Features
- Records every command in calls
- Returns ADMIN_NOT_FOUND_STATUS for missing zone groups and zones
- Can inject a fixed exit status for any command prefix such as ("zone", "create")
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ceph_orchestrator.admin.base import AdminCommandFactory, AdminCommandInterface
from ceph_orchestrator.core.types import ADMIN_NOT_FOUND_STATUS, AdminCommandResult

# Exit status for commands the double does not understand.
UNSUPPORTED_STATUS = 22


def _parse_flags(args: tuple[str, ...]) -> tuple[list[str], dict[str, str]]:
    words: list[str] = []
    flags: dict[str, str] = {}
    for arg in args:
        if arg.startswith("--"):
            key, _, value = arg[2:].partition("=")
            flags[key] = value
        else:
            words.append(arg)
    return words, flags


@dataclass
class InMemoryRadosgw(AdminCommandInterface):
    """
    In memory admin interface.

    zone_groups
    Mapping of (realm, zone group) to the master zone name, empty when unset.

    zones
    Mapping of (realm, zone group) to the zone names in that group.

    failures
    Mapping of command prefix to the exit status forced for it.
    """

    zone_groups: Dict[Tuple[str, str], str] = field(default_factory=dict)
    zones: Dict[Tuple[str, str], List[str]] = field(default_factory=dict)
    failures: Dict[Tuple[str, ...], int] = field(default_factory=dict)
    calls: List[Tuple[str, ...]] = field(default_factory=list)

    def add_zone_group(self, realm: str, name: str, master_zone: str = "") -> None:
        self.zone_groups[(realm, name)] = master_zone
        self.zones.setdefault((realm, name), [])

    def calls_for(self, *prefix: str) -> list[tuple[str, ...]]:
        """Return recorded calls whose leading words match prefix."""
        return [c for c in self.calls if c[: len(prefix)] == prefix]

    def _forced_status(self, words: list[str]) -> Optional[int]:
        for prefix, status in self.failures.items():
            if tuple(words[: len(prefix)]) == prefix:
                return status
        return None

    def run(self, *args: str) -> AdminCommandResult:
        self.calls.append(tuple(args))
        words, flags = _parse_flags(args)

        forced = self._forced_status(words)
        if forced is not None:
            return AdminCommandResult(output="", exit_status=forced)

        group_key = (flags.get("rgw-realm", ""), flags.get("rgw-zonegroup", ""))

        if words == ["zonegroup", "get"]:
            if group_key not in self.zone_groups:
                return AdminCommandResult(output="", exit_status=ADMIN_NOT_FOUND_STATUS)
            body = {
                "name": group_key[1],
                "master_zone": self.zone_groups[group_key],
                "zones": [{"name": z} for z in self.zones.get(group_key, [])],
            }
            return AdminCommandResult(output=json.dumps(body), exit_status=0)

        if words == ["zone", "get"]:
            zone = flags.get("rgw-zone", "")
            if zone not in self.zones.get(group_key, []):
                return AdminCommandResult(output="", exit_status=ADMIN_NOT_FOUND_STATUS)
            return AdminCommandResult(output=json.dumps({"name": zone}), exit_status=0)

        if words == ["zone", "create"]:
            if group_key not in self.zone_groups:
                return AdminCommandResult(output="", exit_status=ADMIN_NOT_FOUND_STATUS)
            zone = flags.get("rgw-zone", "")
            self.zones[group_key].append(zone)
            if "master" in flags:
                self.zone_groups[group_key] = zone
            return AdminCommandResult(output=json.dumps({"name": zone}), exit_status=0)

        return AdminCommandResult(output="", exit_status=UNSUPPORTED_STATUS)


@dataclass
class StaticAdminFactory(AdminCommandFactory):
    """Return the same admin interface for every cluster."""

    admin: AdminCommandInterface

    def for_cluster(self, namespace: str) -> AdminCommandInterface:
        return self.admin
