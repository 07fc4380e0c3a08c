"""
Subnet definition validation.

Input shape expectations
A subnet definition is the dict the director sends for a network:

{
  "range": "192.168.111.0/24",
  "gateway": "192.168.111.1",
  "cloud_properties": {
    "edge_cluster_id": "...",
    "t0_router_id": "...",
    "transport_zone_id": "...",
    "t1_name": "optional",
    "switch_name": "optional"
  }
}

If the structure is missing or wrong, we raise ConfigError with a message that
is safe to show to the operator. Validation is pure: no remote calls.

The gateway is checked for format only. It is not required to sit inside the
range.
"""

from __future__ import annotations

from ipaddress import AddressValueError, IPv4Address, IPv4Network
from typing import Any, Mapping

from cpi_orchestrator.core.errors import ConfigError
from cpi_orchestrator.core.types import Subnet

RANGE_ERROR = "Incorrect subnet definition. Proper CIDR block range must be given"
GATEWAY_ERROR = "Incorrect subnet definition. Proper gateway must be given"

_REQUIRED_CLOUD_PROPERTIES = ("t0_router_id", "edge_cluster_id", "transport_zone_id")


def build_subnet(definition: Mapping[str, Any] | Subnet) -> Subnet:
    """
    Validate a subnet definition and return a Subnet.

    An already built Subnet is returned unchanged.
    """
    if isinstance(definition, Subnet):
        return definition
    if not isinstance(definition, Mapping):
        raise ConfigError("Incorrect subnet definition. Subnet definition must be an object")

    cloud_properties = definition.get("cloud_properties")
    if not isinstance(cloud_properties, Mapping) or not cloud_properties:
        raise ConfigError("cloud_properties must be provided")

    for key in _REQUIRED_CLOUD_PROPERTIES:
        value = cloud_properties.get(key)
        if not isinstance(value, str) or not value:
            raise ConfigError(f"{key} cloud property can not be empty")

    return Subnet(
        range=_parse_range(definition.get("range")),
        gateway=_parse_gateway(definition.get("gateway")),
        edge_cluster_id=cloud_properties["edge_cluster_id"],
        t0_router_id=cloud_properties["t0_router_id"],
        transport_zone_id=cloud_properties["transport_zone_id"],
        t1_name=_optional_name(cloud_properties.get("t1_name")),
        switch_name=_optional_name(cloud_properties.get("switch_name")),
    )


def _parse_range(raw: Any) -> IPv4Network:
    if not isinstance(raw, str) or not raw:
        raise ConfigError(RANGE_ERROR)

    _, sep, prefix = raw.partition("/")
    if sep and prefix.isascii() and prefix.isdigit() and int(prefix) > 32:
        raise ConfigError(f"{RANGE_ERROR}: Netmask, {prefix}, is out of bounds for IPv4")

    try:
        return IPv4Network(raw, strict=False)
    except ValueError as exc:
        raise ConfigError(f"{RANGE_ERROR}: {exc}") from exc


def _parse_gateway(raw: Any) -> IPv4Address:
    if not isinstance(raw, str) or not raw:
        raise ConfigError(GATEWAY_ERROR)
    try:
        return IPv4Address(raw)
    except AddressValueError as exc:
        raise ConfigError(GATEWAY_ERROR) from exc


def _optional_name(raw: Any) -> str | None:
    # empty names let the controller assign its default
    if raw is None or raw == "":
        return None
    return str(raw)
