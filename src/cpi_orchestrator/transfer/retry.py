"""
Bounded retry executor.

Outcome classification
An operation either returns a value, which ends the loop, or raises.

retryable
The exception type is listed in retry_on. We log it, wait, and try again
until the attempt budget is spent. The last exception is then re-raised
unchanged so callers see the real failure message.

fatal
Any other exception propagates at once.

The retryer keeps no state between calls. One instance can be shared by
every service and every thread.
"""

from __future__ import annotations

import time
from typing import Callable, TypeVar

import structlog

from cpi_orchestrator.core.cancellation import CancellationToken
from cpi_orchestrator.core.config import RetryConfig
from cpi_orchestrator.core.errors import TransferError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_ON: tuple[type[BaseException], ...] = (TransferError, OSError)


class Retryer:
    def __init__(
        self,
        config: RetryConfig | None = None,
        retry_on: tuple[type[BaseException], ...] = DEFAULT_RETRY_ON,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config or RetryConfig()
        self._retry_on = retry_on
        self._sleep = sleep

    @property
    def config(self) -> RetryConfig:
        return self._config

    def run(
        self,
        operation: Callable[[int], T],
        description: str = "operation",
        cancel_token: CancellationToken | None = None,
    ) -> T:
        """
        Run operation until it returns or the attempt budget is spent.

        operation receives the 1 based attempt number.
        """
        max_attempts = self._config.max_attempts

        for attempt in range(1, max_attempts + 1):
            try:
                return operation(attempt)
            except self._retry_on as exc:
                if attempt >= max_attempts:
                    logger.error(
                        "Giving up after retries",
                        operation=description,
                        attempts=attempt,
                        error=str(exc),
                    )
                    raise

                delay = self._config.delay_for(attempt)
                logger.warning(
                    "Attempt failed, retrying",
                    operation=description,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay_seconds=delay,
                    error=str(exc),
                )
                self._wait(delay, cancel_token)

        raise AssertionError("unreachable, the loop returns or raises")

    def _wait(self, delay: float, cancel_token: CancellationToken | None) -> None:
        if cancel_token is None:
            if delay > 0:
                self._sleep(delay)
            return
        cancel_token.wait(delay)
