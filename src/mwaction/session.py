"""Sessions to make action API requests."""

from __future__ import annotations

import asyncio
import os
import time
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Mapping

from pydantic import ValidationError

from .combine import CombiningTransport
from .endpoint import resolve_api_url
from .exceptions import (
    ApiErrors,
    ApiWarnings,
    DefaultUserAgentWarning,
    MwActionHTTPError,
    MwActionValidationError,
    RemovedOptionWarning,
)
from .logging import logger
from .models import TokensResponse, TransportResponse
from .params import split_post_parameters, transform_params
from .request_options import OptionsLike, RequestOptions, compose_options, explicit_options
from .response import (
    make_warn_dropping_truncated_result_warning,
    parse_retry_after,
    response_boolean,
    response_errors,
    response_warnings,
)
from .transport import HttpxTransport, Transport

DEFAULT_USER_AGENT = "mwaction-python/0.1.0"


class _TokenPlaceholder:
    """Reserves the token parameter until the token is fetched."""

    def __repr__(self) -> str:
        return "<mwaction token placeholder>"


TOKEN_PLACEHOLDER = _TokenPlaceholder()


@dataclass(frozen=True)
class _Call:
    """Everything one logical request keeps constant across its retries."""

    method: str
    params: dict[str, Any]
    user_agent: str | None
    full_user_agent: str
    warn: Callable[[Exception], Any]
    token_type: str | None
    token_name: str
    retry_until: float
    retry_after_maxlag_seconds: float
    retry_after_readonly_seconds: float


class Session:
    """A session to make API requests.

    ``api_url`` is the URL of the api.php endpoint, such as
    ``https://en.wikipedia.org/w/api.php``, or just the domain, such as
    ``en.wikipedia.org``. ``default_params`` are included in every request
    and ``default_options`` apply to every request; both may be modified
    after construction (e.g. to add ``assert=user`` after logging in).

    With ``combine_requests=True``, concurrent compatible GET requests are
    merged into a single network call (see :class:`CombiningTransport`).
    """

    def __init__(
        self,
        api_url: str | None = None,
        default_params: Mapping[str, Any] | None = None,
        default_options: OptionsLike | None = None,
        *,
        transport: Transport | None = None,
        combine_requests: bool = False,
        allow_http: bool = False,
        api_url_env_var: str = "MWACTION_API_URL",
    ) -> None:
        raw_url = api_url or os.getenv(api_url_env_var)
        if not raw_url:
            raise MwActionValidationError(f"api_url is required (or set {api_url_env_var})")
        self.api_url = resolve_api_url(raw_url, allow_http=allow_http)
        self.default_params: dict[str, Any] = dict(default_params or {})
        self.default_options: OptionsLike = default_options or {}
        # Saved tokens by type; call clear() after logging in or out.
        self.tokens: dict[str, str] = {}

        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport(self.api_url)
        if combine_requests:
            self.transport = CombiningTransport(self.transport)

        self._warned_default_user_agent = False
        self._clock: Callable[[], float] = time.monotonic
        self._sleep: Callable[[float], Any] = asyncio.sleep

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_transport:
            await self.transport.aclose()

    async def request(
        self,
        params: Mapping[str, Any] | None = None,
        options: OptionsLike | None = None,
    ) -> Any:
        """Make an API request and return the decoded response body.

        Parameter values may be strings, numbers, sets / lists / tuples
        thereof, booleans or None; ``False`` and ``None`` remove the
        parameter. Default parameters are overridden by ``params`` on
        collision, and ``format=json`` is always sent.

        Raises :class:`ApiErrors` if the response contains errors after all
        automatic retries (Retry-After, maxlag, readonly, badtoken) within
        ``max_retries_seconds``, and :class:`MwActionHTTPError` for any
        non-200 status. Warnings go to the ``warn`` option.
        """
        resolved = compose_options(self.default_options, options)
        warn = resolved.warn
        configured = {**explicit_options(self.default_options), **explicit_options(options)}
        if configured.get("max_retries") is not None and "max_retries_seconds" not in configured:
            warn(RemovedOptionWarning("max_retries", "max_retries_seconds"))
        full_user_agent = self._full_user_agent(resolved.user_agent, warn)
        if resolved.drop_truncated_result_warning:
            warn = make_warn_dropping_truncated_result_warning(warn)

        token_params: dict[str, Any] = {}
        if resolved.token_type is not None:
            token_params[resolved.token_name] = TOKEN_PLACEHOLDER  # replaced in _internal_request()

        call = _Call(
            method=resolved.method,
            params=transform_params({
                **self.default_params,
                **token_params,
                **(params or {}),
                "format": "json",
            }),
            user_agent=resolved.user_agent,
            full_user_agent=full_user_agent,
            warn=warn,
            token_type=resolved.token_type,
            token_name=resolved.token_name,
            retry_until=self._clock() + resolved.max_retries_seconds,
            retry_after_maxlag_seconds=resolved.retry_after_maxlag_seconds,
            retry_after_readonly_seconds=resolved.retry_after_readonly_seconds,
        )
        return await self._internal_request(call)

    async def request_and_continue(
        self,
        params: Mapping[str, Any] | None = None,
        options: OptionsLike | None = None,
    ) -> AsyncIterator[Any]:
        """Make a series of API requests, following API continuation.

        Yields each response body; stops after a response without ``continue``.
        """
        continue_params: dict[str, Any] | None = {"continue": None}
        while continue_params is not None:
            response = await self.request({**(params or {}), **continue_params}, options)
            next_continue = response.get("continue")
            continue_params = dict(next_continue) if isinstance(next_continue, Mapping) else None
            yield response

    async def request_and_continue_reducing_batch(
        self,
        params: Mapping[str, Any] | None,
        options: OptionsLike | None,
        reducer: Callable[[Any, Any], Any],
        initial: Callable[[], Any] = dict,
    ) -> AsyncIterator[Any]:
        """Follow continuation, yielding one accumulated value per batch.

        Like a repeated ``functools.reduce``: each batch starts from
        ``initial()``, ``reducer(accumulator, response)`` folds in every
        response, and the accumulator is yielded once a response marks the
        batch complete. ``drop_truncated_result_warning`` defaults to True
        here, since continuation delivers the rest of a truncated result.
        """
        batch_options = {"drop_truncated_result_warning": True, **explicit_options(options)}

        accumulator = initial()
        async with aclosing(self.request_and_continue(params, batch_options)) as responses:
            async for response in responses:
                complete = response_boolean(response.get("batchcomplete"))
                accumulator = reducer(accumulator, response)
                if complete:
                    yield accumulator
                    accumulator = initial()

    async def get_token(self, token_type: str, options: OptionsLike | None = None) -> str | None:
        """Get a token of the given type, from the cache or from the API.

        Usually there is no need to call this directly: use the
        ``token_type`` / ``token_name`` request options instead. Returns None
        if the API never returned a token of that type.
        """
        if token_type not in self.tokens:
            params = {
                "action": "query",
                "meta": {"tokens"},
                "type": {token_type},
            }
            token_options = {
                **explicit_options(options),
                "method": "GET",
                "token_type": None,
                "drop_truncated_result_warning": True,
            }
            async with aclosing(self.request_and_continue(params, token_options)) as responses:
                async for response in responses:
                    try:
                        token = TokensResponse.model_validate(response).token(token_type)
                    except ValidationError:
                        token = None
                    if token is not None:
                        self.tokens[token_type] = token
                        break
                    # not in this response, follow continuation
        return self.tokens.get(token_type)

    def _full_user_agent(self, user_agent: str | None, warn: Callable[[Exception], Any]) -> str:
        if user_agent:
            return f"{user_agent} {DEFAULT_USER_AGENT}"
        if not self._warned_default_user_agent:
            warn(DefaultUserAgentWarning())
            self._warned_default_user_agent = True
        return DEFAULT_USER_AGENT

    def _retry_delay_within_deadline(self, call: _Call, delay: float | None) -> float | None:
        if delay is None:
            return None
        if self._clock() + delay <= call.retry_until:
            return delay
        return None

    async def _internal_request(self, call: _Call) -> Any:
        while True:
            token_params: dict[str, Any] | None = None
            if call.params.get(call.token_name) is TOKEN_PLACEHOLDER:
                token = await self.get_token(
                    call.token_type,
                    RequestOptions(
                        max_retries_seconds=call.retry_until - self._clock(),
                        retry_after_maxlag_seconds=call.retry_after_maxlag_seconds,
                        retry_after_readonly_seconds=call.retry_after_readonly_seconds,
                        user_agent=call.user_agent,
                        warn=call.warn,
                    ),
                )
                token_params = {call.token_name: token}

            response = await self._dispatch(call, transform_params({**call.params, **(token_params or {})}))

            if response.status != 200:
                raise MwActionHTTPError(
                    f"API request returned non-200 HTTP status code: {response.status}",
                    status_code=response.status,
                    body=response.body,
                    headers=response.headers,
                )
            body = response.body
            if not isinstance(body, Mapping):
                raise MwActionValidationError(
                    "API response body is not a JSON object",
                    status_code=response.status,
                    body=body,
                    headers=response.headers,
                )

            errors = response_errors(body)
            codes = {error.get("code") for error in errors if isinstance(error, Mapping)}
            has_retry_after_header = "retry-after" in response.headers

            retry_delay: float | None = None
            reason = None
            if has_retry_after_header:
                retry_delay = self._retry_delay_within_deadline(
                    call, parse_retry_after(response.headers["retry-after"])
                )
                reason = "retry-after header"
            if retry_delay is None and not has_retry_after_header and "maxlag" in codes:
                retry_delay = self._retry_delay_within_deadline(call, call.retry_after_maxlag_seconds)
                reason = "maxlag"
            if retry_delay is None and not has_retry_after_header and "readonly" in codes:
                retry_delay = self._retry_delay_within_deadline(call, call.retry_after_readonly_seconds)
                reason = "readonly"
            if retry_delay is None and token_params is not None and "badtoken" in codes:
                logger.debug(f"Bad token for {call.token_type}, clearing token cache")
                self.tokens.clear()
                retry_delay = self._retry_delay_within_deadline(call, 0)
                reason = "badtoken"

            if retry_delay is not None:
                logger.debug(f"Retrying {call.method} request in {retry_delay}s ({reason})")
                await self._sleep(retry_delay)
                continue

            if errors:
                raise ApiErrors(errors, body=body, headers=response.headers)

            warnings = response_warnings(body)
            if warnings:
                call.warn(ApiWarnings(warnings))

            return body

    async def _dispatch(self, call: _Call, params: dict[str, Any]) -> TransportResponse:
        headers = {"user-agent": call.full_user_agent}
        logger.debug(f"Dispatching {call.method} request with action={params.get('action')}")
        if call.method == "GET":
            return await self.transport.get(params, headers)
        if call.method == "POST":
            url_params, body_params = split_post_parameters(params)
            return await self.transport.post(url_params, body_params, headers)
        raise MwActionValidationError(f"Unknown request method: {call.method}")
