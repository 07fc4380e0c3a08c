"""
Generic service tickets.

A ticket authenticates exactly one file transfer request against a host,
without handing the primary session credential to the host.

Tickets are single use. We never cache them: every transfer attempt asks the
session manager for a fresh one, retries included.
"""

from __future__ import annotations

from typing import Protocol

import structlog

from cpi_orchestrator.core.types import ServiceTicket, TicketMethod

logger = structlog.get_logger(__name__)


class SessionManager(Protocol):
    """
    Session management capability of the controlling client.

    A real implementation wraps the management server session manager and
    builds its http service request spec from url and method.
    """

    def acquire_generic_service_ticket(self, url: str, method: str) -> ServiceTicket:
        """Return a ticket scoped to url and method."""


class ServiceTicketIssuer:
    """Issue url and method scoped tickets through a SessionManager."""

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    def issue(self, url: str, method: TicketMethod | str) -> ServiceTicket:
        method = TicketMethod(method)
        logger.info("Acquiring generic service ticket", url=url, method=method.value)
        return self._session_manager.acquire_generic_service_ticket(url, method.value)
