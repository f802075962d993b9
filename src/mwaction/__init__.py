"""Client-side request engine for the MediaWiki action API."""

from .combine import CombiningTransport
from .exceptions import (
    ApiErrors,
    ApiWarnings,
    DefaultUserAgentWarning,
    MwActionError,
    MwActionHTTPError,
    MwActionNetworkError,
    MwActionTimeoutError,
    MwActionValidationError,
    RemovedOptionWarning,
)
from .models import TransportResponse
from .request_options import DEFAULT_OPTIONS, RequestOptions, compose_options
from .response import make_warn_dropping_truncated_result_warning, response_boolean
from .session import DEFAULT_USER_AGENT, Session
from .transport import HttpxTransport, Transport

__all__ = [
    "ApiErrors",
    "ApiWarnings",
    "CombiningTransport",
    "DEFAULT_OPTIONS",
    "DEFAULT_USER_AGENT",
    "DefaultUserAgentWarning",
    "HttpxTransport",
    "MwActionError",
    "MwActionHTTPError",
    "MwActionNetworkError",
    "MwActionTimeoutError",
    "MwActionValidationError",
    "RemovedOptionWarning",
    "RequestOptions",
    "Session",
    "Transport",
    "TransportResponse",
    "compose_options",
    "make_warn_dropping_truncated_result_warning",
    "response_boolean",
]
