from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog

from cpi_orchestrator.core.config import CoreConfig, HttpConfig, LoggingConfig, RetryConfig
from cpi_orchestrator.core.errors import ConfigError, ProvisioningError, UnknownDatastoreError
from cpi_orchestrator.core.logging import setup_logging
from cpi_orchestrator.core.types import HttpResponse, ServiceTicket
from cpi_orchestrator.inventory.plugins.static import StaticDatastoreInventoryPlugin
from cpi_orchestrator.network.mock import InMemorySdnController
from cpi_orchestrator.runtime import build_runtime
from cpi_orchestrator.transfer.http import UrllibHttpClient


class FakeSessionManager:
    def acquire_generic_service_ticket(self, url, method):
        return ServiceTicket(id="ticket")


class FakeHttpClient:
    def __init__(self) -> None:
        self.urls = []
        self.bodies = []

    def get(self, url, headers):
        self.urls.append(url)
        return HttpResponse(status_code=200, body=b"stemcell")

    def post(self, url, body, headers):
        self.urls.append(url)
        return HttpResponse(status_code=200)

    def put(self, url, body, headers):
        self.urls.append(url)
        self.bodies.append(body)
        return HttpResponse(status_code=201)


DEFINITION = {
    "range": "192.168.111.0/24",
    "gateway": "192.168.111.1",
    "cloud_properties": {
        "edge_cluster_id": "cluster_id",
        "t0_router_id": "t0-router-id",
        "transport_zone_id": "zone-id",
    },
}


def _config() -> CoreConfig:
    return CoreConfig(retry=RetryConfig(max_attempts=2, initial_delay_seconds=0))


def test_runtime_creates_subnet_end_to_end():
    sdn = InMemorySdnController()
    runtime = build_runtime(_config(), sdn_client=sdn, session_manager=FakeSessionManager())

    result = runtime.create_subnet(DEFINITION)

    assert result.id in sdn.switches
    assert sdn.call_names() == [
        "create_t1_router",
        "enable_route_advertisement",
        "attach_t1_to_t0",
        "create_logical_switch",
        "attach_switch_to_t1",
    ]


def test_runtime_rejects_invalid_definition_before_any_call():
    sdn = InMemorySdnController()
    runtime = build_runtime(_config(), sdn_client=sdn, session_manager=FakeSessionManager())

    with pytest.raises(ConfigError):
        runtime.create_subnet({**DEFINITION, "gateway": "192.168.111.1/24"})

    assert sdn.calls == []


def test_runtime_surfaces_provisioning_errors():
    sdn = InMemorySdnController(fail_on={"attach_t1_to_t0": RuntimeError("t0 not found")})
    runtime = build_runtime(_config(), sdn_client=sdn, session_manager=FakeSessionManager())

    with pytest.raises(ProvisioningError, match="Failed to create subnet: t0 not found"):
        runtime.create_subnet(DEFINITION)

    assert sdn.routers == {}


def test_runtime_builds_default_http_client_from_config():
    config = CoreConfig(http=HttpConfig(timeout_seconds=3, verify_ssl=False))

    runtime = build_runtime(config, sdn_client=InMemorySdnController(), session_manager=FakeSessionManager())

    client = runtime.file_transfer._http
    assert isinstance(client, UrllibHttpClient)
    assert client.timeout_seconds == 3
    assert client.verify_ssl is False


def test_runtime_uses_given_http_client():
    http = FakeHttpClient()
    runtime = build_runtime(
        _config(),
        sdn_client=InMemorySdnController(),
        session_manager=FakeSessionManager(),
        http_client=http,
    )

    runtime.file_transfer.upload_to_url("https://controller/upload", b"abc", {})

    assert http.urls == ["https://controller/upload"]


def _write_inventory(path: Path, datastores) -> StaticDatastoreInventoryPlugin:
    path.write_text(json.dumps({"datastores": datastores}), encoding="utf-8")
    return StaticDatastoreInventoryPlugin(path=path)


def _datastore(name, host="esx1"):
    return {
        "name": name,
        "hosts": [{"name": host, "power_state": "poweredOn", "connection_state": "connected"}],
    }


def _runtime_with_inventory(tmp_path: Path, http):
    plugin = _write_inventory(tmp_path / "datastores.json", [_datastore("ds1")])
    return build_runtime(
        _config(),
        sdn_client=InMemorySdnController(),
        session_manager=FakeSessionManager(),
        http_client=http,
        inventory_plugin=plugin,
    )


def test_runtime_fetches_file_from_inventory_datastore(tmp_path: Path):
    http = FakeHttpClient()
    runtime = _runtime_with_inventory(tmp_path, http)

    body = runtime.fetch_file("dc1", "ds1", "stemcells/image.vmdk")

    assert body == b"stemcell"
    assert http.urls == ["https://esx1/folder/stemcells/image.vmdk?dsName=ds1"]


def test_runtime_uploads_file_to_inventory_datastore(tmp_path: Path):
    http = FakeHttpClient()
    runtime = _runtime_with_inventory(tmp_path, http)

    runtime.upload_file("ds1", "disk.vmdk", b"12345")

    assert http.urls == ["https://esx1/folder/disk.vmdk?dsName=ds1"]
    assert http.bodies == [b"12345"]


def test_runtime_unknown_datastore_fails_before_any_request(tmp_path: Path):
    http = FakeHttpClient()
    runtime = _runtime_with_inventory(tmp_path, http)

    with pytest.raises(UnknownDatastoreError, match="Datastore 'ds9' not found in inventory"):
        runtime.fetch_file("dc1", "ds9", "a.vmdk")
    with pytest.raises(UnknownDatastoreError):
        runtime.upload_file("ds9", "a.vmdk", b"x")

    assert http.urls == []


def test_runtime_without_inventory_knows_no_datastores():
    runtime = build_runtime(_config(), sdn_client=InMemorySdnController(), session_manager=FakeSessionManager())

    assert runtime.datastores.names() == []
    with pytest.raises(UnknownDatastoreError):
        runtime.fetch_file("dc1", "ds1", "a.vmdk")


def test_reload_inventory_picks_up_changed_file(tmp_path: Path):
    http = FakeHttpClient()
    runtime = _runtime_with_inventory(tmp_path, http)
    _write_inventory(tmp_path / "datastores.json", [_datastore("ds2", host="esx7")])

    runtime.reload_inventory()

    assert runtime.datastores.names() == ["ds2"]
    runtime.upload_file("ds2", "disk.vmdk", b"x")
    assert http.urls == ["https://esx7/folder/disk.vmdk?dsName=ds2"]


def test_setup_logging_writes_to_file(tmp_path: Path):
    config = LoggingConfig(level="DEBUG", destination="file", log_dir=str(tmp_path), renderer="json")

    try:
        logger = setup_logging(config)
        logger.info("runtime ready", datastore="ds1")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = (tmp_path / "cpi.log").read_text(encoding="utf-8")
        assert '"event": "runtime ready"' in content
        assert '"datastore": "ds1"' in content
    finally:
        structlog.reset_defaults()
        logging.basicConfig(force=True, handlers=[logging.NullHandler()])
