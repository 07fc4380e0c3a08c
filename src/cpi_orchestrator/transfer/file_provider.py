"""
Datastore file transfer.

Moves stemcells, ISOs and disk images between the CPI and a datastore, or to
an arbitrary upload url.

Datastore flow
1) pick the first healthy host mounting the datastore
2) build https://<host>/folder/<path>?dsName=<datastore>
3) per attempt, acquire a fresh service ticket for (url, method)
4) send the request with the ticket cookie
5) classify the status, retry through the Retryer

Status classification
2xx and 3xx are success.
404 on a fetch means the file does not exist, we return None.
Any other status >= 400 raises TransferError, which is retryable.
"""

from __future__ import annotations

from typing import Any, Callable
from urllib.parse import quote

import structlog

from cpi_orchestrator.core.cancellation import CancellationToken
from cpi_orchestrator.core.errors import TransferError
from cpi_orchestrator.core.types import Datastore, HttpResponse, TicketMethod
from cpi_orchestrator.transfer.hosts import select_healthy_host
from cpi_orchestrator.transfer.http import HttpClient, merge_headers
from cpi_orchestrator.transfer.retry import Retryer
from cpi_orchestrator.transfer.tickets import ServiceTicketIssuer

logger = structlog.get_logger(__name__)

OCTET_STREAM = "application/octet-stream"
TICKET_COOKIE = "vmware_cgi_ticket"


def datastore_file_url(host_name: str, datastore_name: str, path: str) -> str:
    return f"https://{host_name}/folder/{quote(path, safe='/')}?dsName={quote(datastore_name, safe='')}"


class FileTransferService:
    """
    File transfer over https.

    http_client
    Sends requests. Returns a response for every status.

    ticket_issuer
    Issues single use tickets for datastore urls.

    retryer
    Retries TransferError and connection errors.
    """

    def __init__(
        self,
        http_client: HttpClient,
        ticket_issuer: ServiceTicketIssuer,
        retryer: Retryer | None = None,
    ) -> None:
        self._http = http_client
        self._tickets = ticket_issuer
        self._retryer = retryer or Retryer()

    def fetch_from_datastore(
        self,
        datacenter_name: str,
        datastore: Datastore,
        path: str,
        cancel_token: CancellationToken | None = None,
    ) -> bytes | None:
        """
        Download a file from a datastore.

        Returns None when the file does not exist.
        """
        host = select_healthy_host(datastore)
        url = datastore_file_url(host.name, datastore.name, path)

        logger.info("Fetching file", url=url, datacenter=datacenter_name, host=host.name)
        response = self._do_request(
            "GET",
            url,
            ticket_method=TicketMethod.http_get,
            headers={"Content-Type": OCTET_STREAM},
            allow_not_found=True,
            cancel_token=cancel_token,
        )

        if response is None:
            logger.info("Could not find file", url=url)
            return None

        logger.info("Successfully downloaded file", url=url, size=len(response.body))
        return response.body

    def upload_to_datastore(
        self,
        datastore: Datastore,
        path: str,
        contents: Any,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        host = select_healthy_host(datastore)
        url = datastore_file_url(host.name, datastore.name, path)

        logger.info("Uploading file", url=url, host=host.name)
        self._do_request(
            "PUT",
            url,
            body=contents,
            ticket_method=TicketMethod.http_put,
            headers={"Content-Type": OCTET_STREAM},
            cancel_token=cancel_token,
        )
        logger.info("Successfully uploaded file", url=url)

    def upload_to_url(
        self,
        url: str,
        body: Any,
        headers: dict[str, str] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """
        POST a body to a fully formed upload target.

        No host selection and no ticket, the caller owns the url and headers.
        """
        logger.info("Uploading file", url=url)
        self._do_request("POST", url, body=body, headers=headers, cancel_token=cancel_token)
        logger.info("Successfully uploaded file", url=url)

    def _do_request(
        self,
        request_type: str,
        url: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
        ticket_method: TicketMethod | None = None,
        allow_not_found: bool = False,
        cancel_token: CancellationToken | None = None,
    ) -> HttpResponse | None:
        send = self._sender(request_type, url, body)
        rewind = _rewinder(body)

        def attempt(attempt_number: int) -> HttpResponse | None:
            rewind()

            req_headers = dict(headers or {})
            if ticket_method is not None:
                ticket = self._tickets.issue(url, ticket_method)
                req_headers["Cookie"] = f"{TICKET_COOKIE}={ticket.id}"

            resp = send(merge_headers(body, req_headers))

            if resp.status_code == 404 and allow_not_found:
                return None
            if resp.status_code >= 400:
                err = TransferError(url, resp.status_code)
                logger.warning(str(err), attempt=attempt_number)
                raise err
            return resp

        return self._retryer.run(
            attempt,
            description=f"{request_type} {url}",
            cancel_token=cancel_token,
        )

    def _sender(
        self, request_type: str, url: str, body: Any
    ) -> Callable[[dict[str, str]], HttpResponse]:
        if request_type == "GET":
            return lambda h: self._http.get(url, h)
        if request_type == "POST":
            return lambda h: self._http.post(url, body, h)
        if request_type == "PUT":
            return lambda h: self._http.put(url, body, h)
        raise ValueError(f"Invalid request type: {request_type}.")


def _rewinder(body: Any) -> Callable[[], None]:
    """
    Return a callable that puts a stream body back at its starting offset.

    Bodies without seek support are left alone.
    """
    if body is None or not (hasattr(body, "seek") and hasattr(body, "tell")):
        return lambda: None
    start = body.tell()
    return lambda: body.seek(start)
