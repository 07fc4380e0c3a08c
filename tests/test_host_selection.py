from __future__ import annotations

import pytest

from cpi_orchestrator.core.errors import NoHealthyHostError
from cpi_orchestrator.core.types import (
    ConnectionState,
    Datastore,
    Host,
    HostMount,
    HostRuntime,
    PowerState,
)
from cpi_orchestrator.transfer.hosts import select_healthy_host


def make_mount(
    name: str,
    maintenance: bool = False,
    power: PowerState = PowerState.powered_on,
    connection: ConnectionState = ConnectionState.connected,
) -> HostMount:
    runtime = HostRuntime(
        in_maintenance_mode=maintenance,
        power_state=power,
        connection_state=connection,
    )
    return HostMount(host=Host(name=name, runtime=runtime))


def test_first_healthy_host_wins():
    ds = Datastore(name="ds1", host_mounts=[make_mount("esx1"), make_mount("esx2")])

    assert select_healthy_host(ds).name == "esx1"


def test_unhealthy_hosts_are_skipped():
    ds = Datastore(
        name="ds1",
        host_mounts=[
            make_mount("maintenance", maintenance=True),
            make_mount("off", power=PowerState.powered_off),
            make_mount("gone", connection=ConnectionState.disconnected),
            make_mount("esx4"),
        ],
    )

    assert select_healthy_host(ds).name == "esx4"


def test_no_healthy_host_raises_typed_error():
    ds = Datastore(
        name="ds1",
        host_mounts=[make_mount("esx1", connection=ConnectionState.not_responding)],
    )

    with pytest.raises(NoHealthyHostError, match="No healthy host found for datastore 'ds1'"):
        select_healthy_host(ds)


def test_datastore_without_mounts_raises():
    with pytest.raises(NoHealthyHostError):
        select_healthy_host(Datastore(name="empty"))
