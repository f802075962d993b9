"""Per-request options and their composition with session defaults."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .logging import log_warning


class RequestOptions(BaseModel):
    """Options for one request.

    Only fields that were set explicitly take part in
    :func:`compose_options`, so an explicit ``None`` (e.g.
    ``token_type=None``) still overrides a session default.

    Unknown keys are kept as extension options. Packages building on
    mwaction conventionally prefix them with their own name and a slash,
    e.g. ``"mypkg/retries"``; read them back with :meth:`get`.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    method: str = "GET"
    token_type: str | None = None
    token_name: str = "token"
    user_agent: str | None = None
    max_retries_seconds: float = 65
    retry_after_maxlag_seconds: float = 5
    retry_after_readonly_seconds: float = 30
    warn: Callable[[Exception], Any] = log_warning
    drop_truncated_result_warning: bool = False
    # removed; only detected so that a warning can be emitted
    max_retries: int | None = None

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    def get(self, name: str, default: Any = None) -> Any:
        """Return an option by name, including extension options."""
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name, default)


# Defaults for requests across all sessions. Extension packages may add
# their own prefixed options here; changing the built-in ones is discouraged.
DEFAULT_OPTIONS: dict[str, Any] = {
    name: field.default
    for name, field in RequestOptions.model_fields.items()
    if name != "max_retries"
}

OptionsLike = Union[RequestOptions, Mapping[str, Any]]


def coerce_options(options: OptionsLike | None) -> RequestOptions:
    if options is None:
        return RequestOptions()
    if isinstance(options, RequestOptions):
        return options
    return RequestOptions.model_validate(dict(options))


def explicit_options(options: OptionsLike | None) -> dict[str, Any]:
    """Return only the options that were set explicitly on ``options``."""
    if options is None:
        return {}
    resolved = coerce_options(options)
    explicit = {
        name: getattr(resolved, name)
        for name in resolved.model_fields_set
        if name in RequestOptions.model_fields
    }
    explicit.update(resolved.model_extra or {})
    return explicit


def compose_options(*layers: OptionsLike | None) -> RequestOptions:
    """Compose option layers on top of :data:`DEFAULT_OPTIONS`.

    Later layers override earlier ones. The result always has a value for
    every built-in option.
    """
    merged: dict[str, Any] = dict(DEFAULT_OPTIONS)
    for layer in layers:
        merged.update(explicit_options(layer))
    return RequestOptions.model_validate(merged)
