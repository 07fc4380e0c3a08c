"""
Cooperative cancellation.

A CancellationToken is created by the caller of one CPI request and passed
down to the saga driver and the retryer. Nothing inside the core cancels a
token, it only checks it:
- before each saga step
- while waiting between retry attempts

Outbound calls themselves are bounded by the transport timeout.
"""

from __future__ import annotations

import threading

from cpi_orchestrator.core.errors import OperationCancelled


class CancellationToken:
    """Thread safe one shot cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = "operation cancelled"

    def cancel(self, reason: str = "operation cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(self._reason)

    def wait(self, seconds: float) -> None:
        """
        Sleep for seconds unless cancelled first.

        Raises OperationCancelled as soon as the token fires.
        """
        if self._event.wait(timeout=seconds):
            raise OperationCancelled(self._reason)
