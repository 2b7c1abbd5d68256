"""
HTTP transport for the Lookback client.

The client talks to the service only through ``Transport.send`` so that
queries can be executed against a fake in tests. ``RequestsTransport`` is
the default, backed by a ``requests.Session``.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional
import logging

import requests

from .errors import TransportFailureError

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Status and raw body of one HTTP exchange."""

    status_code: int
    body: bytes = b""
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Transport(ABC):
    """Performs a single request/response exchange."""

    @abstractmethod
    def send(self, method: str, url: str, headers: Dict[str, str], body: bytes) -> TransportResponse:
        """
        Send a request and wait for the response.

        Args:
            method: HTTP method
            url: Absolute request URL
            headers: Request headers
            body: Encoded request body

        Returns:
            The response status and body

        Raises:
            TransportFailureError: If the exchange could not complete
        """

    def close(self) -> None:
        """Release any resources held by the transport."""


class RequestsTransport(Transport):
    """
    Transport backed by ``requests``.

    Example:
        ```python
        with RequestsTransport(timeout=10.0) as transport:
            response = transport.send("POST", url, headers, body)
        ```
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds (default: 30)
            verify_ssl: Verify TLS certificates
            session: Optional requests.Session for connection pooling
        """
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._session = session or requests.Session()
        self._owns_session = session is None

    @property
    def timeout(self) -> float:
        return self._timeout

    def send(self, method: str, url: str, headers: Dict[str, str], body: bytes) -> TransportResponse:
        try:
            response = self._session.request(
                method,
                url,
                data=body,
                headers=headers,
                timeout=self._timeout,
                verify=self._verify_ssl,
            )
        except requests.exceptions.RequestException as e:
            raise TransportFailureError(f"HTTP request failed: {e}", cause=e)

        logger.debug(f"{method} {url} -> HTTP {response.status_code}")
        return TransportResponse(
            status_code=response.status_code,
            body=response.content or b"",
            reason=response.reason or "",
        )

    def close(self) -> None:
        """Close the HTTP session if owned by this transport."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> RequestsTransport:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "Transport",
    "TransportResponse",
    "RequestsTransport",
]
