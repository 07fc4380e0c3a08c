from __future__ import annotations

import pytest

from cpi_orchestrator.core.cancellation import CancellationToken
from cpi_orchestrator.core.errors import OperationCancelled
from cpi_orchestrator.network.saga import ProvisioningLedger, SagaAborted, SagaStep, run_saga


def _step(name, log, fail=False, undo=True, undo_fails=False):
    def action(ledger):
        log.append(name)
        if fail:
            raise RuntimeError(f"{name} failed")

    def compensation(ledger):
        log.append(f"undo {name}")
        if undo_fails:
            raise RuntimeError(f"undo {name} failed")

    return SagaStep(name, action, compensation=compensation if undo else None)


def test_all_steps_run_in_order():
    log = []
    ledger = ProvisioningLedger()

    result = run_saga([_step("a", log), _step("b", log), _step("c", log)], ledger)

    assert result is ledger
    assert log == ["a", "b", "c"]
    assert ledger.completed_steps == ["a", "b", "c"]


def test_failure_compensates_completed_steps_in_reverse():
    log = []
    steps = [_step("a", log), _step("b", log, undo=False), _step("c", log), _step("d", log, fail=True)]

    with pytest.raises(SagaAborted) as exc_info:
        run_saga(steps, ProvisioningLedger())

    assert log == ["a", "b", "c", "d", "undo c", "undo a"]
    assert exc_info.value.step == "d"
    assert str(exc_info.value.cause) == "d failed"


def test_compensation_failures_are_collected():
    log = []
    steps = [_step("a", log), _step("b", log, undo_fails=True), _step("c", log, fail=True)]

    with pytest.raises(SagaAborted) as exc_info:
        run_saga(steps, ProvisioningLedger())

    assert log == ["a", "b", "c", "undo b", "undo a"]
    failures = exc_info.value.compensation_failures
    assert [name for name, _ in failures] == ["b"]


def test_cancelled_token_stops_before_next_step():
    log = []
    token = CancellationToken()

    def cancel(ledger):
        log.append("cancel")
        token.cancel()

    steps = [_step("a", log), SagaStep("cancel", cancel), _step("b", log)]

    with pytest.raises(SagaAborted) as exc_info:
        run_saga(steps, ProvisioningLedger(), cancel_token=token)

    assert isinstance(exc_info.value.cause, OperationCancelled)
    assert log == ["a", "cancel", "undo a"]
