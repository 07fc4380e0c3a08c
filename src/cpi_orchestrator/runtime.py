"""
Core runtime.

Purpose
Wire the core services for the CPI command handlers:
- Retryer built from config
- SubnetProvisioner over the SDN controller client
- FileTransferService over the http client and session manager
- DatastoreStore filled by an inventory plugin

This is the composition layer of the core.
Services stay pure. The runtime handles configuration and resolves datastore
names from requests into inventory records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import structlog

from cpi_orchestrator.core.cancellation import CancellationToken
from cpi_orchestrator.core.config import CoreConfig
from cpi_orchestrator.core.logging import setup_logging
from cpi_orchestrator.core.types import NetworkTopology, Subnet
from cpi_orchestrator.inventory.plugins.base import DatastoreInventoryPlugin
from cpi_orchestrator.inventory.store import DatastoreStore
from cpi_orchestrator.network.base import SdnControllerClient
from cpi_orchestrator.network.provisioner import SubnetProvisioner
from cpi_orchestrator.network.validation import build_subnet
from cpi_orchestrator.transfer.file_provider import FileTransferService
from cpi_orchestrator.transfer.http import HttpClient, UrllibHttpClient
from cpi_orchestrator.transfer.retry import Retryer
from cpi_orchestrator.transfer.tickets import ServiceTicketIssuer, SessionManager

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CpiRuntime:
    """
    Services shared by all CPI requests.

    Nothing here holds per request state, so one runtime can serve
    concurrent requests. The datastore store is only replaced as a whole
    by reload_inventory.
    """

    config: CoreConfig
    provisioner: SubnetProvisioner
    file_transfer: FileTransferService
    datastores: DatastoreStore = field(default_factory=DatastoreStore)
    inventory_plugin: DatastoreInventoryPlugin | None = None

    def create_subnet(
        self,
        definition: Mapping[str, Any] | Subnet,
        cancel_token: CancellationToken | None = None,
    ) -> NetworkTopology:
        """Validate a subnet definition and provision it."""
        subnet = build_subnet(definition)
        return self.provisioner.create_infrastructure(subnet, cancel_token=cancel_token)

    def fetch_file(
        self,
        datacenter_name: str,
        datastore_name: str,
        path: str,
        cancel_token: CancellationToken | None = None,
    ) -> bytes | None:
        """Download path from the named datastore. None when the file is missing."""
        datastore = self.datastores.require(datastore_name)
        return self.file_transfer.fetch_from_datastore(
            datacenter_name, datastore, path, cancel_token=cancel_token
        )

    def upload_file(
        self,
        datastore_name: str,
        path: str,
        contents: Any,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        datastore = self.datastores.require(datastore_name)
        self.file_transfer.upload_to_datastore(datastore, path, contents, cancel_token=cancel_token)

    def reload_inventory(self) -> None:
        """Reload datastores from the inventory plugin, if one is configured."""
        if self.inventory_plugin is None:
            return
        self.datastores.replace_with(self.inventory_plugin.load())
        logger.info("Reloaded datastore inventory", datastores=self.datastores.names())


def build_runtime(
    config: CoreConfig,
    sdn_client: SdnControllerClient,
    session_manager: SessionManager,
    http_client: HttpClient | None = None,
    inventory_plugin: DatastoreInventoryPlugin | None = None,
    configure_logging: bool = False,
) -> CpiRuntime:
    if configure_logging:
        setup_logging(config.logging)

    if http_client is None:
        http_client = UrllibHttpClient(
            timeout_seconds=config.http.timeout_seconds,
            verify_ssl=config.http.verify_ssl,
        )

    retryer = Retryer(config.retry)
    datastores = inventory_plugin.load() if inventory_plugin is not None else DatastoreStore()

    logger.debug(
        "Built core runtime",
        max_attempts=config.retry.max_attempts,
        verify_ssl=config.http.verify_ssl,
        datastores=len(datastores),
    )

    return CpiRuntime(
        config=config,
        provisioner=SubnetProvisioner(sdn_client, retryer=retryer),
        file_transfer=FileTransferService(
            http_client,
            ServiceTicketIssuer(session_manager),
            retryer=retryer,
        ),
        datastores=datastores,
        inventory_plugin=inventory_plugin,
    )
