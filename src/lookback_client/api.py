"""
Lookback API client.

``LookbackApi`` holds connection configuration, creates queries and
executes them. Configure it with chained calls, then build queries from it:

    api = (LookbackApi()
           .set_credentials("user@example.com", "secret")
           .set_workspace("41529001"))

    result = (api.new_query()
              .add_find_clause("_TypeHierarchy", -51038)
              .set_page_size(200)
              .execute())

    while result.has_more_pages():
        result = api.continuation_query(result).execute()

Configuration is read when a query executes. Changing it while another
thread is executing a query has undefined effect on that query; callers
must coordinate this themselves.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional
import base64
import json
import logging

from .errors import (
    LookbackError,
    InvalidArgumentError,
    MissingCredentialsError,
    MissingWorkspaceError,
    AuthenticationFailedError,
    EmptyResponseError,
    TransportFailureError,
)
from .query import LookbackQuery
from .result import LookbackResult
from .transport import Transport, RequestsTransport

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "https://rally1.rallydev.com"
QUERY_PATH = "/analytics/v{major}.{minor}/service/rally/workspace/{workspace}/artifact/snapshot/query.js"


@dataclass
class ClientConfig:
    """Configuration for the Lookback API client."""

    server: str = DEFAULT_SERVER
    version_major: str = "2"
    version_minor: str = "0"
    workspace: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = 30.0
    verify_ssl: bool = True
    user_agent: str = "lookback-client-python/1.0.0"
    debug: bool = False


class LookbackApi:
    """
    Client for Rally's Lookback API.

    Every call to ``execute`` is a single synchronous POST. Nothing is
    retried, cached or fetched in parallel.
    """

    def __init__(self, config: Optional[ClientConfig] = None, transport: Optional[Transport] = None):
        """
        Initialize the client.

        Args:
            config: Connection configuration (defaults to ClientConfig())
            transport: Transport used for requests; a RequestsTransport is
                created from the config when omitted
        """
        self.config = config or ClientConfig()

        self.logger = logger
        if self.config.debug:
            self.logger.setLevel(logging.DEBUG)

        if transport is None:
            transport = RequestsTransport(timeout=self.config.timeout, verify_ssl=self.config.verify_ssl)
            self._owns_transport = True
        else:
            self._owns_transport = False
        self.transport = transport

    # =========================================================================
    # Configuration
    # =========================================================================

    def set_credentials(self, username: str, password: str) -> LookbackApi:
        """Set the Rally username and password used for basic authentication."""
        self.config.username = username
        self.config.password = password
        return self

    def set_server(self, server: str) -> LookbackApi:
        """Set the server base URL, including the protocol."""
        self.config.server = server.rstrip("/")
        return self

    def set_workspace(self, workspace: str) -> LookbackApi:
        """Set the workspace OID queries run against."""
        self.config.workspace = workspace
        return self

    def set_version(self, major: str, minor: str) -> LookbackApi:
        """Set the Lookback API version (default 2.0)."""
        self.config.version_major = str(major)
        self.config.version_minor = str(minor)
        return self

    # =========================================================================
    # Queries
    # =========================================================================

    def new_query(self) -> LookbackQuery:
        """Create an empty snapshot query bound to this client."""
        return LookbackQuery(self)

    def continuation_query(self, previous: LookbackResult) -> LookbackQuery:
        """
        Build the query for the page following ``previous``.

        The new query is an independent copy of the one that produced
        ``previous``, advanced by that query's requested page size. Using
        the requested stride rather than the number of records returned
        means a short last page always advances past the end.

        Start and page size are read from the request document as sent, so
        ``pagesize``/``start`` properties are honoured. A ``start``
        property is dropped from the copy so the advanced start is sent.

        Args:
            previous: A validated result page

        Returns:
            Query for the next page

        Raises:
            InvalidArgumentError: If the page has no source query
        """
        source = previous.source_query
        if source is None:
            raise InvalidArgumentError("Result has no source query; only executed results can be continued")

        sent = source.to_request_dict()
        query = source.copy()
        query.properties.pop("start", None)
        query.set_start_index(sent["start"] + sent["pagesize"])
        return query

    def iterate_pages(self, query: LookbackQuery) -> Iterator[LookbackResult]:
        """
        Execute ``query`` and every following page, one at a time.

        Pages are fetched lazily as the iterator advances.
        """
        result = self.execute(query)
        yield result
        while result.has_more_pages():
            next_query = self.continuation_query(result)
            self.logger.debug(
                f"Fetching next page at start={next_query.start} "
                f"(total={result.total_result_count})"
            )
            result = self.execute(next_query)
            yield result

    def iterate_records(self, query: LookbackQuery) -> Iterator[Dict[str, Any]]:
        """Iterate the snapshots of every page of ``query``."""
        for page in self.iterate_pages(query):
            yield from page.iterate_records()

    # =========================================================================
    # Execution
    # =========================================================================

    def build_url(self) -> str:
        """
        Build the snapshot query URL for the configured workspace.

        Raises:
            MissingWorkspaceError: If no workspace is configured
        """
        if not self.config.workspace:
            raise MissingWorkspaceError()

        return self.config.server + QUERY_PATH.format(
            major=self.config.version_major,
            minor=self.config.version_minor,
            workspace=self.config.workspace,
        )

    def auth_header(self) -> str:
        """
        Build the basic authentication header value.

        Raises:
            MissingCredentialsError: If username or password is not set
        """
        if not self.config.username or not self.config.password:
            raise MissingCredentialsError()

        token = f"{self.config.username}:{self.config.password}".encode("utf-8")
        return "Basic " + base64.b64encode(token).decode("ascii")

    def execute(self, query: LookbackQuery) -> LookbackResult:
        """
        Execute a query and return its validated result page.

        Args:
            query: The query to execute

        Returns:
            Result page with ``source_query`` set to ``query``

        Raises:
            ConflictingProjectionError: If fields=true and explicit fields are both set
            MissingFilterError: If the query has no find clause
            MissingWorkspaceError: If no workspace is configured
            MissingCredentialsError: If username or password is missing
            AuthenticationFailedError: If the service answers 401
            EmptyResponseError: If the service answers without a body
            ServiceReportedError: If the response carries errors
            TransportFailureError: If the request fails or the body cannot be read
        """
        query.validate()
        request = query.to_request_dict()

        url = self.build_url()
        headers = {
            "Authorization": self.auth_header(),
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        }
        body = json.dumps(request).encode("utf-8")

        self.logger.debug(f"POST {url}")
        if self.config.debug:
            self.logger.debug(f"Request: {json.dumps(request, indent=2)}")

        try:
            response = self.transport.send("POST", url, headers, body)
        except LookbackError:
            raise
        except Exception as e:
            raise TransportFailureError(f"Transport failed: {e}", cause=e)

        if response.status_code == 401:
            raise AuthenticationFailedError(details={"status": response.status_code})

        if not response.body or not response.body.strip():
            raise EmptyResponseError(details={"status": response.status_code})

        if not response.ok:
            # The service reports query errors in the body of some non-2xx answers
            self.logger.debug(f"HTTP {response.status_code} {response.reason}; parsing body for errors")

        result = LookbackResult.from_json(response.body)
        self.logger.debug(
            f"Received {len(result.records)} of {result.total_result_count} snapshots "
            f"starting at {result.start_index}"
        )
        return result.validate(query)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the transport if owned by this client."""
        if self._owns_transport:
            self.transport.close()

    def __enter__(self) -> LookbackApi:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "LookbackApi",
    "ClientConfig",
    "DEFAULT_SERVER",
]
