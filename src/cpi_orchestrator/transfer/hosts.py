"""
Healthy host selection.

A datastore is mounted on several hosts. Any of them can serve file level
access, but only if it is usable right now.

Policy
First match in inventory order. No load balancing, no best fit.

A host is healthy when
- it is not in maintenance mode
- its power state is poweredOn
- its connection state is connected
"""

from __future__ import annotations

from cpi_orchestrator.core.errors import NoHealthyHostError
from cpi_orchestrator.core.types import ConnectionState, Datastore, Host, PowerState


def is_healthy(host: Host) -> bool:
    runtime = host.runtime
    return (
        not runtime.in_maintenance_mode
        and runtime.power_state == PowerState.powered_on
        and runtime.connection_state == ConnectionState.connected
    )


def select_healthy_host(datastore: Datastore) -> Host:
    """Return the first healthy host mounting the datastore."""
    for mount in datastore.host_mounts:
        if is_healthy(mount.host):
            return mount.host
    raise NoHealthyHostError(datastore.name)
