from __future__ import annotations

import json

from ceph_orchestrator.core.errors import HardFailure


def decode_master_zone(output: str) -> str:
    """
    Return the master zone id from `zonegroup get` output.

    An empty string means the zone group has no master zone yet.
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as exc:
        raise HardFailure(f"failed to parse `radosgw-admin zonegroup get` output: {exc}") from exc

    if not isinstance(data, dict):
        raise HardFailure("failed to parse `radosgw-admin zonegroup get` output: expected an object")

    master = data.get("master_zone", "")
    return str(master or "")
