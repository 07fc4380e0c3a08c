"""
In memory SDN controller.

This controller is used for tests and local simulations.
It behaves like a controller database of routers and switches keyed by id.

Features
- Records every call with its arguments, in order
- Assigns ids and default names the way a controller does
- Can inject failures per operation name to drive saga compensation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from cpi_orchestrator.core.types import IPSubnet, LogicalRouter, LogicalSwitch
from cpi_orchestrator.network.base import SdnControllerClient


@dataclass
class InMemorySdnController(SdnControllerClient):
    """
    In memory controller.

    fail_on
    Optional mapping of operation name to exception.
    The operation raises it instead of changing state.

    routers and switches
    Current controller state.

    t1_links
    T1 router id to T0 router id.

    switch_ports
    Switch id to (router id, ip subnet).
    """

    fail_on: dict[str, BaseException] = field(default_factory=dict)
    routers: dict[str, LogicalRouter] = field(default_factory=dict)
    switches: dict[str, LogicalSwitch] = field(default_factory=dict)
    advertised: set[str] = field(default_factory=set)
    t1_links: dict[str, str] = field(default_factory=dict)
    switch_ports: dict[str, tuple[str, IPSubnet]] = field(default_factory=dict)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    _counter: int = 0

    def create_t1_router(self, edge_cluster_id: str, name: Optional[str] = None) -> LogicalRouter:
        self._record("create_t1_router", edge_cluster_id, name)
        router_id = self._next_id("t1-router")
        router = LogicalRouter(id=router_id, display_name=name or router_id)
        self.routers[router_id] = router
        return router

    def enable_route_advertisement(self, router_id: str) -> None:
        self._record("enable_route_advertisement", router_id)
        self._require_router(router_id)
        self.advertised.add(router_id)

    def attach_t1_to_t0(self, t0_router_id: str, t1_router_id: str) -> None:
        self._record("attach_t1_to_t0", t0_router_id, t1_router_id)
        self._require_router(t1_router_id)
        self.t1_links[t1_router_id] = t0_router_id

    def delete_t1_router(self, router_id: str) -> None:
        self._record("delete_t1_router", router_id)
        self._require_router(router_id)
        del self.routers[router_id]
        self.advertised.discard(router_id)
        self.t1_links.pop(router_id, None)

    def create_logical_switch(
        self, transport_zone_id: str, name: Optional[str] = None
    ) -> LogicalSwitch:
        self._record("create_logical_switch", transport_zone_id, name)
        switch_id = self._next_id("switch")
        switch = LogicalSwitch(id=switch_id, display_name=name or switch_id)
        self.switches[switch_id] = switch
        return switch

    def delete_logical_switch(self, switch_id: str) -> None:
        self._record("delete_logical_switch", switch_id)
        if switch_id not in self.switches:
            raise KeyError(f"logical switch {switch_id} not found")
        del self.switches[switch_id]
        self.switch_ports.pop(switch_id, None)

    def attach_switch_to_t1(self, switch_id: str, router_id: str, ip_subnet: IPSubnet) -> None:
        self._record("attach_switch_to_t1", switch_id, router_id, ip_subnet)
        self._require_router(router_id)
        if switch_id not in self.switches:
            raise KeyError(f"logical switch {switch_id} not found")
        self.switch_ports[switch_id] = (router_id, ip_subnet)

    def call_names(self) -> list[str]:
        """Return operation names in call order."""
        return [name for name, _ in self.calls]

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def _require_router(self, router_id: str) -> None:
        if router_id not in self.routers:
            raise KeyError(f"T1 router {router_id} not found")

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"
