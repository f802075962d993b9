"""Exceptions raised by the request engine and passed to warn handlers."""

from __future__ import annotations

from typing import Any, Mapping, Sequence


class MwActionError(Exception):
    """Base exception for all mwaction failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.cause = cause

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class MwActionValidationError(MwActionError):
    """Raised when a request or a response body is malformed."""


class MwActionHTTPError(MwActionError):
    """Raised when the API answers with a non-200 HTTP status."""


class MwActionNetworkError(MwActionError):
    """Raised for transport-level failures like DNS and TCP errors."""


class MwActionTimeoutError(MwActionError):
    """Raised when a single network call exceeds the transport timeout."""


class ApiErrors(MwActionError):
    """One or more error objects returned by the API.

    The message is the code of the first error; all of them are kept in
    :attr:`errors`. The other members of each error depend on the
    ``errorformat`` of the request.
    """

    def __init__(self, errors: Sequence[Mapping[str, Any]], **kwargs: Any) -> None:
        if not errors:
            raise ValueError("ApiErrors requires at least one error")
        super().__init__(str(errors[0].get("code")), **kwargs)
        self.errors = list(errors)


class ApiWarnings(MwActionError):
    """One or more warning objects returned by the API.

    Never raised by the engine; instances are handed to the ``warn`` option.
    """

    def __init__(self, warnings: Sequence[Mapping[str, Any]], **kwargs: Any) -> None:
        if not warnings:
            raise ValueError("ApiWarnings requires at least one warning")
        first = warnings[0]
        message = first.get("code") or first.get("warnings") or first.get("*")
        super().__init__(str(message), **kwargs)
        self.warnings = list(warnings)


class DefaultUserAgentWarning(MwActionError):
    """Emitted once per session when a request is sent without a custom user agent."""

    def __init__(self) -> None:
        super().__init__(
            "mwaction: Sending request with default User-Agent. "
            "You should set the user_agent request option, "
            "either as a default option for the session or as an option for each request. "
            "See https://meta.wikimedia.org/wiki/User-Agent_policy for the User-Agent policy."
        )


class RemovedOptionWarning(MwActionError):
    """Emitted when a request uses an option that is no longer supported."""

    def __init__(self, option: str, replacement: str) -> None:
        super().__init__(f"The {option} option is no longer supported, use {replacement} instead.")
        self.option = option
        self.replacement = replacement
