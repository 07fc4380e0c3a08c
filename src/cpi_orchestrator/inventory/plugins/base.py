"""
Datastore inventory plugin interface.

A plugin reads datastores and their host mounts from some source, a json
file or the management server, and returns them as a DatastoreStore.
The runtime calls load once when it is built and again on reload_inventory.
"""

from __future__ import annotations

from typing import Protocol

from cpi_orchestrator.inventory.store import DatastoreStore


class DatastoreInventoryPlugin(Protocol):
    def load(self) -> DatastoreStore:
        """Return a freshly built store. Raise ConfigError on a malformed source."""
