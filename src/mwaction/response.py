"""Classification of decoded API response bodies."""

from __future__ import annotations

import datetime as _dt
import math
import re
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Mapping

from .exceptions import ApiWarnings

TRUNCATED_RESULT = re.compile(
    r"^This result was truncated because it would otherwise  ?be larger than the limit of .* bytes$"
)


def response_errors(response: Mapping[str, Any]) -> list[Any]:
    if "error" in response:
        return [response["error"]]
    if "errors" in response:
        return list(response["errors"])
    return []


def response_warnings(response: Mapping[str, Any]) -> list[Any]:
    """Return the warnings of a response as a list.

    Legacy responses (errorformat=bc) use a mapping from module name to
    warning; those are converted to a list of warnings tagged with their
    ``module``, with ``main`` moved to the end. The response is not modified.
    """
    warnings = response.get("warnings")
    if not warnings:
        return []
    if isinstance(warnings, Mapping):
        entries = list(warnings.items())
        if entries[0][0] == "main":
            entries.append(entries.pop(0))
        return [{**warning, "module": module} for module, warning in entries]
    return list(warnings)


def is_truncated_result_warning(warning: Mapping[str, Any]) -> bool:
    if warning.get("code"):
        return warning["code"] == "truncatedresult"
    text = warning.get("warnings") or warning.get("*")
    return isinstance(text, str) and TRUNCATED_RESULT.match(text) is not None


def make_warn_dropping_truncated_result_warning(
    warn: Callable[[Exception], Any],
) -> Callable[[Exception], Any]:
    """Decorate a warn handler so that truncated result warnings are dropped.

    Most of the time, use the ``drop_truncated_result_warning`` request option
    instead of calling this directly. The wrapped handler is not called at
    all when only truncated result warnings were present.
    """

    def dropping_warn(error: Exception) -> Any:
        if not isinstance(error, ApiWarnings):
            return warn(error)
        warnings = [warning for warning in error.warnings if not is_truncated_result_warning(warning)]
        if not warnings:
            return None
        if len(warnings) == len(error.warnings):
            return warn(error)
        return warn(ApiWarnings(warnings))

    return dropping_warn


def response_boolean(value: Any) -> bool:
    """Interpret a boolean from a response body.

    Works for formatversion=1 booleans (absent means false, empty string
    means true) as well as formatversion=2 ones (false / true).
    """
    return bool(value) or value == ""


def parse_retry_after(raw: str | None) -> float | None:
    """Parse Retry-After header values into seconds.

    Returns None for values that cannot be used as a delay, including
    HTTP-dates that are not in the future.
    """
    if raw is None:
        return None

    raw = raw.strip()
    if not raw:
        return None

    try:
        seconds = float(raw)
    except ValueError:
        pass
    else:
        return max(0.0, seconds) if math.isfinite(seconds) else None

    try:
        parsed = parsedate_to_datetime(raw)
    except (ValueError, TypeError, OverflowError):
        return None

    if parsed is None:
        return None

    now = _dt.datetime.now(_dt.timezone.utc)
    if parsed.utcoffset() is None:
        parsed = parsed.replace(tzinfo=_dt.timezone.utc)
    else:
        parsed = parsed.astimezone(_dt.timezone.utc)

    delta = (parsed - now).total_seconds()
    # a date that has already passed gives no usable delay
    return delta if delta > 0 else None
