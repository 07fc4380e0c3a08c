"""
Core types.

This file defines the shared data structures used across the core.

Important design choice
We keep these types controller neutral and transport neutral.

Controller neutral means:
The saga talks about T1 routers and logical switches, not about a specific
SDN controller SDK object model.

Transport neutral means:
HttpClient may use urllib or another library, but callers only see HttpResponse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, StrEnum
from ipaddress import IPv4Address, IPv4Network
from typing import Dict, List, Optional


class PowerState(str, Enum):
    """
    Host power state as reported by the inventory.

    unknown is used for any value we do not recognise.
    Such hosts are never selected for file transfer.
    """

    powered_on = "poweredOn"
    powered_off = "poweredOff"
    standby = "standBy"
    unknown = "unknown"


class ConnectionState(str, Enum):
    """Host connection state as seen by the management server."""

    connected = "connected"
    disconnected = "disconnected"
    not_responding = "notResponding"
    unknown = "unknown"


class TicketMethod(StrEnum):
    """Http methods a generic service ticket can be scoped to."""

    http_get = "httpGet"
    http_put = "httpPut"


@dataclass(frozen=True)
class IPSubnet:
    """
    Addressing attached to the router port of a logical switch.

    ip_addresses holds the gateway, the router answers on it.
    prefix_length comes from the subnet range.
    cidr keeps the original range text for logs and inspection.
    """

    ip_addresses: List[str]
    prefix_length: int
    cidr: str


@dataclass(frozen=True)
class Subnet:
    """
    A validated subnet definition.

    Build it with network.validation.build_subnet.
    t1_name and switch_name are None when the controller should pick a name.
    """

    range: IPv4Network
    gateway: IPv4Address
    edge_cluster_id: str
    t0_router_id: str
    transport_zone_id: str
    t1_name: Optional[str] = None
    switch_name: Optional[str] = None

    def ip_subnet(self) -> IPSubnet:
        return IPSubnet(
            ip_addresses=[str(self.gateway)],
            prefix_length=self.range.prefixlen,
            cidr=str(self.range),
        )


@dataclass(frozen=True)
class LogicalRouter:
    """T1 router as returned by the controller."""

    id: str
    display_name: str


@dataclass(frozen=True)
class LogicalSwitch:
    """Logical switch as returned by the controller."""

    id: str
    display_name: str


@dataclass(frozen=True)
class NetworkTopology:
    """
    Result of a successful subnet provisioning.

    Owned by the caller, the provisioner keeps no reference to it.
    """

    id: str
    display_name: str


@dataclass(frozen=True)
class ServiceTicket:
    """Single use credential scoped to one url and one http method."""

    id: str


@dataclass(frozen=True)
class HttpResponse:
    """Transport neutral http response."""

    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HostRuntime:
    """Runtime flags the host selector looks at."""

    in_maintenance_mode: bool
    power_state: PowerState
    connection_state: ConnectionState


@dataclass(frozen=True)
class Host:
    """
    A hypervisor host.

    name is the network name used to reach the host over https.
    """

    name: str
    runtime: HostRuntime


@dataclass(frozen=True)
class HostMount:
    """Association between a datastore and a host that can serve its files."""

    host: Host
    mount_path: str = ""


@dataclass(frozen=True)
class Datastore:
    """
    Read only view of a datastore.

    host_mounts keeps the order the inventory returned.
    Host selection is first match, so the order matters.
    """

    name: str
    host_mounts: List[HostMount] = field(default_factory=list)
