"""
SDN controller interfaces.

Goal
Define the controller calls the subnet saga needs without binding the core to
a specific controller SDK or transport.

Real implementations wrap the controller REST API.
We keep the interface narrow for testability.

Name arguments are optional. When None is passed the controller assigns a
default name, usually echoing the generated id.
"""

from __future__ import annotations

from typing import Optional, Protocol

from cpi_orchestrator.core.types import IPSubnet, LogicalRouter, LogicalSwitch


class SdnControllerClient(Protocol):
    """
    Router and switch operations used by the subnet saga.

    create_t1_router
    Create a T1 router on the given edge cluster.

    enable_route_advertisement
    Advertise the connected routes of a T1 router to its T0.

    attach_t1_to_t0
    Link a T1 router under an existing T0 router.

    create_logical_switch
    Create a logical switch in a transport zone.

    attach_switch_to_t1
    Create a router port on the T1 for the switch, addressed with ip_subnet.
    """

    def create_t1_router(self, edge_cluster_id: str, name: Optional[str] = None) -> LogicalRouter:
        """Create a T1 router."""

    def enable_route_advertisement(self, router_id: str) -> None:
        """Enable route advertisement on a T1 router."""

    def attach_t1_to_t0(self, t0_router_id: str, t1_router_id: str) -> None:
        """Attach a T1 router to a T0 router."""

    def delete_t1_router(self, router_id: str) -> None:
        """Delete a T1 router."""

    def create_logical_switch(
        self, transport_zone_id: str, name: Optional[str] = None
    ) -> LogicalSwitch:
        """Create a logical switch."""

    def delete_logical_switch(self, switch_id: str) -> None:
        """Delete a logical switch."""

    def attach_switch_to_t1(self, switch_id: str, router_id: str, ip_subnet: IPSubnet) -> None:
        """Attach a logical switch to a T1 router."""
