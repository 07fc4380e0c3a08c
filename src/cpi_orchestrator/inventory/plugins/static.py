"""
Static datastore inventory plugin.

Reads a json document listing datastores and the hosts mounting them:

{
  "datastores": [
    {
      "name": "ds1",
      "hosts": [
        {
          "name": "esx1.example.com",
          "mount_path": "/vmfs/volumes/ds1",
          "in_maintenance_mode": false,
          "power_state": "poweredOn",
          "connection_state": "connected"
        }
      ]
    }
  ]
}

Host order is kept, host selection depends on it.
Entries that are not objects or have no name are skipped.
A state string we do not recognise becomes unknown, which makes the host
unusable for transfers.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Mapping, Type, TypeVar

import structlog

from cpi_orchestrator.core.errors import ConfigError
from cpi_orchestrator.core.types import (
    ConnectionState,
    Datastore,
    Host,
    HostMount,
    HostRuntime,
    PowerState,
)
from cpi_orchestrator.inventory.plugins.base import DatastoreInventoryPlugin
from cpi_orchestrator.inventory.store import DatastoreStore

logger = structlog.get_logger(__name__)

StateT = TypeVar("StateT", PowerState, ConnectionState)


def _state(enum_type: Type[StateT], raw: Any) -> StateT:
    try:
        return enum_type(raw)
    except ValueError:
        return enum_type.unknown


def _host_mount(obj: Mapping[str, Any]) -> HostMount:
    runtime = HostRuntime(
        in_maintenance_mode=obj.get("in_maintenance_mode") is True,
        power_state=_state(PowerState, obj.get("power_state")),
        connection_state=_state(ConnectionState, obj.get("connection_state")),
    )
    return HostMount(
        host=Host(name=str(obj["name"]), runtime=runtime),
        mount_path=str(obj.get("mount_path") or ""),
    )


def _named_objects(items: Any) -> Iterator[Mapping[str, Any]]:
    if not isinstance(items, list):
        return
    for item in items:
        if isinstance(item, Mapping) and item.get("name"):
            yield item


@dataclass(frozen=True)
class StaticDatastoreInventoryPlugin(DatastoreInventoryPlugin):
    """Load datastores from a local json file."""

    path: Path

    def load(self) -> DatastoreStore:
        try:
            data = json.loads(Path(self.path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"datastore inventory {self.path} is not valid json: {exc}") from exc
        if not isinstance(data, Mapping):
            raise ConfigError(f"datastore inventory {self.path} must be an object")

        store = DatastoreStore.of(
            Datastore(
                name=str(obj["name"]),
                host_mounts=[_host_mount(host) for host in _named_objects(obj.get("hosts"))],
            )
            for obj in _named_objects(data.get("datastores"))
        )
        logger.debug("Loaded datastore inventory", path=str(self.path), datastores=len(store))
        return store
