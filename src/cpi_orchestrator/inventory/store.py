"""
Datastore inventory.

The runtime resolves datastore names from CPI requests through this store
before any file transfer. A name that is not in the store fails with
UnknownDatastoreError without contacting any host.

Plugins build the store. Reloading replaces the whole content so a datastore
removed from the source stops being resolvable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List

from cpi_orchestrator.core.errors import UnknownDatastoreError
from cpi_orchestrator.core.types import Datastore


@dataclass
class DatastoreStore:
    """Datastores keyed by name. The last one added under a name wins."""

    datastores: Dict[str, Datastore] = field(default_factory=dict)

    @classmethod
    def of(cls, datastores: Iterable[Datastore]) -> "DatastoreStore":
        store = cls()
        for datastore in datastores:
            store.add(datastore)
        return store

    def add(self, datastore: Datastore) -> None:
        self.datastores[datastore.name] = datastore

    def require(self, name: str) -> Datastore:
        """Return the named datastore or raise UnknownDatastoreError."""
        try:
            return self.datastores[name]
        except KeyError:
            raise UnknownDatastoreError(name) from None

    def replace_with(self, other: "DatastoreStore") -> None:
        self.datastores = dict(other.datastores)

    def names(self) -> List[str]:
        return sorted(self.datastores)

    def __contains__(self, name: object) -> bool:
        return name in self.datastores

    def __len__(self) -> int:
        return len(self.datastores)

    def __iter__(self) -> Iterator[Datastore]:
        return iter(self.datastores.values())
