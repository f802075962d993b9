"""API endpoint resolution and header helpers."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import urlparse

from .exceptions import MwActionValidationError

SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "set-cookie",
}


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return headers with sensitive values redacted for logging."""
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def resolve_api_url(api_url: str, *, allow_http: bool = False) -> str:
    """Expand a bare domain such as ``en.wikipedia.org`` to its api.php URL.

    Anything containing a slash is taken to be a full URL already.
    """
    if "/" not in api_url:
        api_url = f"https://{api_url}/w/api.php"
    validate_api_url(api_url, allow_http=allow_http)
    return api_url


def validate_api_url(url: str, *, allow_http: bool = False) -> None:
    """Validate the endpoint URL to avoid scheme abuse."""
    if "\x00" in url:
        raise MwActionValidationError("Invalid api_url")
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise MwActionValidationError("api_url must include scheme and host")
    if parsed.scheme not in {"http", "https"}:
        raise MwActionValidationError(f"Unsupported api_url scheme: {parsed.scheme}")
    if parsed.scheme == "http" and not allow_http:
        allowed = {"localhost", "127.0.0.1", "::1"}
        host = (parsed.hostname or "").lower()
        if host not in allowed:
            raise MwActionValidationError("Non-HTTPS api_url is not allowed without allow_http=True")
