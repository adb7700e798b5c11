"""HTTP transport for the release host client.

This module provides:
- HttpTransport: Protocol for one request/response exchange (injectable for tests)
- UrllibTransport: Real implementation using urllib
- HttpResponse / TransportError: what a transport hands back

A transport never judges status codes. Any response that arrives, 4xx and
5xx included, is ``Ok(HttpResponse)``; ``Err(TransportError)`` means no
response arrived at all (DNS, TLS, connection reset, timeout).
"""

from __future__ import annotations

import http.client
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import BinaryIO, Protocol, runtime_checkable

from tagcut.core.result import Err, Ok, Result

__all__ = [
    "HttpResponse",
    "HttpTransport",
    "TransportError",
    "UrllibTransport",
]

RequestBody = bytes | BinaryIO | None


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True, slots=True)
class TransportError:
    """No response was received.

    Attributes:
        url: The URL that failed
        message: Human-readable reason
    """

    url: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpTransport(Protocol):
    """One HTTP exchange.

    ``body`` may be a file object; it is streamed and the caller must set
    ``Content-Length`` itself.
    """

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: RequestBody = None,
        timeout: float,
    ) -> Result[HttpResponse, TransportError]: ...


class UrllibTransport:
    """HttpTransport over urllib with system certificates."""

    def __init__(self) -> None:
        self._ssl_context = ssl.create_default_context()

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: RequestBody = None,
        timeout: float,
    ) -> Result[HttpResponse, TransportError]:
        if timeout <= 0:
            return Err(TransportError(url=url, message="Request not sent: deadline exceeded"))

        req = urllib.request.Request(url, data=body, headers=dict(headers), method=method)
        try:
            with urllib.request.urlopen(req, timeout=timeout, context=self._ssl_context) as resp:
                return Ok(
                    HttpResponse(
                        status=resp.status,
                        body=resp.read(),
                        headers=dict(resp.headers.items()),
                    )
                )
        except urllib.error.HTTPError as e:
            # Non-2xx still carries a response; the host decides what it means.
            payload = e.read() if e.fp is not None else b""
            return Ok(
                HttpResponse(
                    status=e.code,
                    body=payload,
                    headers=dict(e.headers.items()) if e.headers is not None else {},
                )
            )
        except urllib.error.URLError as e:
            return Err(TransportError(url=url, message=str(e.reason)))
        except TimeoutError:
            return Err(TransportError(url=url, message="Request timed out"))
        except (ValueError, OSError, http.client.HTTPException) as e:
            return Err(TransportError(url=url, message=str(e) or type(e).__name__))
