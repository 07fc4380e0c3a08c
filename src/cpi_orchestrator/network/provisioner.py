"""
Subnet provisioner.

This turns a validated Subnet into live controller resources:
a T1 router attached under an existing T0 router, and a logical switch
attached to that T1 router with the subnet range and gateway.

Steps
1) create T1 router                 undo: delete router
2) enable route advertisement
3) attach T1 to T0
4) create logical switch            undo: delete switch
5) attach switch to T1

Whatever step fails, the caller sees ProvisioningError with the message
"Failed to create subnet: <cause>" and nothing created by the saga remains,
except resources whose delete itself failed. Those are listed on the error.
"""

from __future__ import annotations

import structlog

from cpi_orchestrator.core.cancellation import CancellationToken
from cpi_orchestrator.core.config import RetryConfig
from cpi_orchestrator.core.errors import ProvisioningError
from cpi_orchestrator.core.types import NetworkTopology, Subnet
from cpi_orchestrator.network.base import SdnControllerClient
from cpi_orchestrator.network.saga import ProvisioningLedger, SagaAborted, SagaStep, run_saga
from cpi_orchestrator.transfer.retry import Retryer

logger = structlog.get_logger(__name__)


def single_attempt_retryer() -> Retryer:
    """Retryer that never retries. Controller calls fail fast by default."""
    return Retryer(RetryConfig(max_attempts=1), retry_on=(OSError,))


class SubnetProvisioner:
    """
    Subnet saga over an SDN controller client.

    sdn_client
    Controller capability. See network.base.SdnControllerClient.

    retryer
    Used for the repeatable steps and for compensations.
    Creation steps are never retried.
    """

    def __init__(self, sdn_client: SdnControllerClient, retryer: Retryer | None = None) -> None:
        self._sdn = sdn_client
        self._retryer = retryer or single_attempt_retryer()

    def create_infrastructure(
        self,
        subnet: Subnet,
        cancel_token: CancellationToken | None = None,
    ) -> NetworkTopology:
        """
        Provision router and switch for the subnet.

        Raises ProvisioningError after compensation when any step fails.
        """
        ledger = ProvisioningLedger()
        logger.info(
            "Creating subnet infrastructure",
            range=str(subnet.range),
            gateway=str(subnet.gateway),
            t0_router_id=subnet.t0_router_id,
        )

        try:
            run_saga(self._steps(subnet), ledger, retryer=self._retryer, cancel_token=cancel_token)
        except SagaAborted as aborted:
            logger.error(
                "Failed to create subnet",
                step=aborted.step,
                error=str(aborted.cause),
                compensation_failures=len(aborted.compensation_failures),
            )
            raise ProvisioningError(
                aborted.cause,
                failed_step=aborted.step,
                compensation_failures=aborted.compensation_failures,
                ledger=ledger,
            ) from aborted.cause

        # every step ran, so the ledger holds both router and switch
        logger.info(
            "Created subnet infrastructure",
            switch_id=ledger.switch.id,
            router_id=ledger.router.id,
        )
        return NetworkTopology(id=ledger.switch.id, display_name=ledger.switch.display_name)

    def _steps(self, subnet: Subnet) -> list[SagaStep]:
        sdn = self._sdn

        def create_router(ledger: ProvisioningLedger) -> None:
            ledger.router = sdn.create_t1_router(subnet.edge_cluster_id, subnet.t1_name)
            logger.info("Created T1 router", router_id=ledger.router.id)

        def delete_router(ledger: ProvisioningLedger) -> None:
            sdn.delete_t1_router(ledger.router.id)
            logger.info("Deleted T1 router", router_id=ledger.router.id)

        def enable_route_advertisement(ledger: ProvisioningLedger) -> None:
            sdn.enable_route_advertisement(ledger.router.id)

        def attach_t1_to_t0(ledger: ProvisioningLedger) -> None:
            sdn.attach_t1_to_t0(subnet.t0_router_id, ledger.router.id)

        def create_switch(ledger: ProvisioningLedger) -> None:
            ledger.switch = sdn.create_logical_switch(subnet.transport_zone_id, subnet.switch_name)
            logger.info("Created logical switch", switch_id=ledger.switch.id)

        def delete_switch(ledger: ProvisioningLedger) -> None:
            sdn.delete_logical_switch(ledger.switch.id)
            logger.info("Deleted logical switch", switch_id=ledger.switch.id)

        def attach_switch_to_t1(ledger: ProvisioningLedger) -> None:
            sdn.attach_switch_to_t1(ledger.switch.id, ledger.router.id, subnet.ip_subnet())

        return [
            SagaStep("create_t1_router", create_router, compensation=delete_router),
            SagaStep("enable_route_advertisement", enable_route_advertisement, retryable=True),
            SagaStep("attach_t1_to_t0", attach_t1_to_t0, retryable=True),
            SagaStep("create_logical_switch", create_switch, compensation=delete_switch),
            SagaStep("attach_switch_to_t1", attach_switch_to_t1, retryable=True),
        ]
