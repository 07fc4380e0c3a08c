"""
Error taxonomy.

We separate error types so callers can react correctly.
Example:
ConfigError is raised before any remote call is made and is never retried.
ProvisioningError is raised after compensation of created resources ran.
TransferError is raised after the retry budget is exhausted.
NoHealthyHostError means no host can serve the datastore, retrying will not help.
UnknownDatastoreError means the inventory has no datastore by that name.
"""

from __future__ import annotations

from typing import Any


class CpiError(Exception):
    """Base class for all CPI core exceptions."""


class ConfigError(CpiError):
    """Raised when a subnet definition or a config document is malformed."""


class OperationCancelled(CpiError):
    """Raised when a cancellation token fires between steps or attempts."""


class NoHealthyHostError(CpiError):
    """Raised when no host mounting a datastore is usable for file access."""

    def __init__(self, datastore_name: str) -> None:
        super().__init__(f"No healthy host found for datastore '{datastore_name}'")
        self.datastore_name = datastore_name


class UnknownDatastoreError(CpiError):
    """Raised when a request names a datastore the inventory does not know."""

    def __init__(self, datastore_name: str) -> None:
        super().__init__(f"Datastore '{datastore_name}' not found in inventory")
        self.datastore_name = datastore_name


class TransferError(CpiError):
    """
    Raised when a file transfer request fails.

    status_code is None when the failure was not an http status.
    """

    def __init__(self, url: str, status_code: int | None = None, message: str | None = None) -> None:
        if message is None:
            message = f"Could not transfer file '{url}', received status code '{status_code}'"
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ProvisioningError(CpiError):
    """
    Raised when the subnet saga fails.

    The message never tells which step failed.
    Callers needing that detail inspect failed_step, cause and
    compensation_failures.
    """

    def __init__(
        self,
        cause: BaseException,
        failed_step: str | None = None,
        compensation_failures: list[tuple[str, BaseException]] | None = None,
        ledger: Any = None,
    ) -> None:
        super().__init__(f"Failed to create subnet: {cause}")
        self.cause = cause
        self.failed_step = failed_step
        self.compensation_failures = list(compensation_failures or [])
        self.ledger = ledger
