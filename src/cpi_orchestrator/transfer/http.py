"""
Http capability.

The file transfer service only needs get, put and post with explicit headers.
We keep the interface narrow so it is easy to fake in tests.

Status handling
Clients return an HttpResponse for every status code, including 4xx and 5xx.
Status classification belongs to the file transfer service.
Connection level failures are raised as OSError.
"""

from __future__ import annotations

import io
import os
import ssl
from dataclasses import dataclass
from typing import Any, Mapping, Protocol
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from cpi_orchestrator.core.types import HttpResponse


class HttpClient(Protocol):
    """Simple http client interface for testability."""

    def get(self, url: str, headers: dict[str, str]) -> HttpResponse:
        """Issue a GET request."""

    def post(self, url: str, body: Any, headers: dict[str, str]) -> HttpResponse:
        """Issue a POST request with body."""

    def put(self, url: str, body: Any, headers: dict[str, str]) -> HttpResponse:
        """Issue a PUT request with body."""


def compute_content_length(body: Any) -> int:
    """
    Measure a request body in bytes.

    The most specific measure wins:
    file size for real files, buffer length for bytes, encoded length for text,
    stream length for other seekable streams.
    """
    if hasattr(body, "fileno"):
        try:
            return os.fstat(body.fileno()).st_size
        except (OSError, io.UnsupportedOperation):
            pass

    if isinstance(body, memoryview):
        return body.nbytes
    if isinstance(body, (bytes, bytearray)):
        return len(body)
    if isinstance(body, str):
        return len(body.encode("utf-8"))

    if hasattr(body, "seek") and hasattr(body, "tell"):
        start = body.tell()
        body.seek(0, os.SEEK_END)
        end = body.tell()
        body.seek(start)
        return end - start

    return len(body)


def merge_headers(body: Any, headers: Mapping[str, str] | None) -> dict[str, str]:
    """
    Build request headers.

    Content-Length is computed locally when a body is present.
    Caller headers are applied on top and win on conflict.
    """
    merged: dict[str, str] = {}
    if body is not None:
        merged["Content-Length"] = str(compute_content_length(body))
    merged.update(headers or {})
    return merged


@dataclass
class UrllibHttpClient(HttpClient):
    """
    Default http client using urllib.

    verify_ssl
    When False, certificates are not verified. Used against hosts and
    controllers with self signed certificates.
    """

    timeout_seconds: int = 60
    verify_ssl: bool = True

    def get(self, url: str, headers: dict[str, str]) -> HttpResponse:
        return self._send("GET", url, None, headers)

    def post(self, url: str, body: Any, headers: dict[str, str]) -> HttpResponse:
        return self._send("POST", url, body, headers)

    def put(self, url: str, body: Any, headers: dict[str, str]) -> HttpResponse:
        return self._send("PUT", url, body, headers)

    def _send(self, method: str, url: str, body: Any, headers: dict[str, str]) -> HttpResponse:
        if isinstance(body, str):
            body = body.encode("utf-8")

        req = Request(url, data=body, headers=headers, method=method)
        try:
            with urlopen(req, timeout=self.timeout_seconds, context=self._ssl_context()) as resp:
                return HttpResponse(
                    status_code=resp.status,
                    body=resp.read(),
                    headers=dict(resp.headers.items()),
                )
        except HTTPError as err:
            payload = err.read() if err.fp is not None else b""
            return HttpResponse(
                status_code=err.code,
                body=payload,
                headers=dict(err.headers.items()) if err.headers else {},
            )

    def _ssl_context(self) -> ssl.SSLContext | None:
        if self.verify_ssl:
            return None
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx
