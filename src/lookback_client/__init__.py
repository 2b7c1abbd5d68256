"""
Lookback Python Client

Build snapshot queries against Rally's Lookback API, execute them over
HTTP with basic authentication and page through the results.
"""

from .api import LookbackApi, ClientConfig, DEFAULT_SERVER
from .query import LookbackQuery, ASCENDING, DESCENDING
from .result import LookbackResult
from .transport import Transport, TransportResponse, RequestsTransport
from .errors import *

__version__ = "1.0.0"
__all__ = [
    # Client
    "LookbackApi",
    "ClientConfig",
    "DEFAULT_SERVER",

    # Queries and results
    "LookbackQuery",
    "LookbackResult",
    "ASCENDING",
    "DESCENDING",

    # Transport
    "Transport",
    "TransportResponse",
    "RequestsTransport",

    # Errors
    "ErrorCode",
    "LookbackError",
    "InvalidArgumentError",
    "QueryValidationError",
    "ConflictingProjectionError",
    "MissingFilterError",
    "ConfigurationError",
    "MissingCredentialsError",
    "MissingWorkspaceError",
    "AuthenticationFailedError",
    "EmptyResponseError",
    "ServiceReportedError",
    "TransportFailureError",
    "ErrorHandler",
]
