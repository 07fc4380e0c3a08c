"""
Saga driver.

Purpose
Run a linear list of remote steps with all or nothing visible effect.

Each step may carry a compensation that undoes it. The driver runs steps in
order. On the first failure it runs the compensations of every completed step
in reverse order, then raises SagaAborted.

Ledger
The ProvisioningLedger is the explicit record of what exists remotely so far.
Steps write the resources they create into it and compensations read from it.
A ledger belongs to exactly one saga run and is never persisted.

Compensation policy
Compensations are best effort. A failing compensation is logged and recorded
but never replaces the original failure.
Cancellation is checked before each step only. Compensations always run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

import structlog

from cpi_orchestrator.core.cancellation import CancellationToken
from cpi_orchestrator.core.types import LogicalRouter, LogicalSwitch
from cpi_orchestrator.transfer.retry import Retryer

logger = structlog.get_logger(__name__)


@dataclass
class ProvisioningLedger:
    """
    Resources created so far by one saga run.

    router
    The T1 router, once created.

    switch
    The logical switch, once created.

    completed_steps
    Names of steps that finished, in execution order.
    """

    router: Optional[LogicalRouter] = None
    switch: Optional[LogicalSwitch] = None
    completed_steps: List[str] = field(default_factory=list)


StepAction = Callable[[ProvisioningLedger], None]


@dataclass(frozen=True)
class SagaStep:
    """
    One saga step.

    retryable
    True when the action is safe to repeat. Creation steps are not.
    """

    name: str
    action: StepAction
    compensation: Optional[StepAction] = None
    retryable: bool = False


class SagaAborted(Exception):
    """
    Raised by run_saga after compensation ran.

    step is the name of the failed step.
    cause is the exception the step raised.
    compensation_failures lists (step name, exception) for failed undo actions.
    """

    def __init__(
        self,
        step: str,
        cause: BaseException,
        compensation_failures: list[tuple[str, BaseException]],
    ) -> None:
        super().__init__(f"step {step} failed: {cause}")
        self.step = step
        self.cause = cause
        self.compensation_failures = compensation_failures


def run_saga(
    steps: list[SagaStep],
    ledger: ProvisioningLedger,
    retryer: Retryer | None = None,
    cancel_token: CancellationToken | None = None,
) -> ProvisioningLedger:
    """
    Execute steps in order, compensating on the first failure.

    Returns the ledger when every step succeeded.
    """
    completed: list[SagaStep] = []

    for step in steps:
        try:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            logger.info("Running saga step", step=step.name)
            _invoke(step.action, ledger, step.name, step.retryable, retryer, cancel_token)
        except Exception as exc:
            logger.error("Saga step failed", step=step.name, error=str(exc))
            failures = _compensate(completed, ledger, retryer)
            raise SagaAborted(step.name, exc, failures) from exc

        completed.append(step)
        ledger.completed_steps.append(step.name)

    return ledger


def _compensate(
    completed: list[SagaStep],
    ledger: ProvisioningLedger,
    retryer: Retryer | None,
) -> list[tuple[str, BaseException]]:
    failures: list[tuple[str, BaseException]] = []

    for step in reversed(completed):
        if step.compensation is None:
            continue
        logger.info("Compensating saga step", step=step.name)
        try:
            _invoke(step.compensation, ledger, f"undo {step.name}", True, retryer, None)
        except Exception as exc:
            logger.error("Compensation failed", step=step.name, error=str(exc))
            failures.append((step.name, exc))

    return failures


def _invoke(
    action: StepAction,
    ledger: ProvisioningLedger,
    description: str,
    retryable: bool,
    retryer: Retryer | None,
    cancel_token: CancellationToken | None,
) -> None:
    if retryer is None or not retryable:
        action(ledger)
        return
    retryer.run(lambda _attempt: action(ledger), description=description, cancel_token=cancel_token)
