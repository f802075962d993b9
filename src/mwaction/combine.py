"""Merging of concurrent compatible GET requests into one network call."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Mapping

from .logging import logger
from .models import TransportResponse
from .transport import Transport


def params_compatible(first: Mapping[str, str], second: Mapping[str, str]) -> bool:
    """Two parameter sets are compatible if they agree on every shared key."""
    return all(first[key] == value for key, value in second.items() if key in first)


@dataclass
class _PendingGet:
    params: dict[str, str]
    headers: dict[str, str]
    waiters: list[asyncio.Future[TransportResponse]] = field(default_factory=list)

    def accepts(self, params: Mapping[str, str], headers: Mapping[str, str]) -> bool:
        return self.headers == headers and params_compatible(self.params, params)


class CombiningTransport:
    """Wraps a transport so that concurrent compatible GETs share one call.

    A GET is held back until the event loop's next turn. Any other GET issued
    before then whose parameters are compatible (and whose headers are equal)
    joins it, and the union of their parameters is sent once; every caller
    receives the same response, or the same exception. Nothing is kept after
    the call is dispatched, so sequential requests are never combined.
    POST requests are passed through unchanged.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self._pending: list[_PendingGet] = []
        self._in_flight: set[asyncio.Task[None]] = set()

    async def get(self, params: Mapping[str, str], headers: Mapping[str, str]) -> TransportResponse:
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[TransportResponse] = loop.create_future()
        for pending in self._pending:
            if pending.accepts(params, headers):
                pending.params.update(params)
                pending.waiters.append(waiter)
                logger.debug(f"Combining GET request into pending call ({len(pending.waiters)} waiters)")
                break
        else:
            pending = _PendingGet(params=dict(params), headers=dict(headers), waiters=[waiter])
            self._pending.append(pending)
            loop.call_soon(self._dispatch, pending)
        return await waiter

    async def post(
        self,
        url_params: Mapping[str, str],
        body_params: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> TransportResponse:
        return await self.transport.post(url_params, body_params, headers)

    async def aclose(self) -> None:
        await self.transport.aclose()

    def _dispatch(self, pending: _PendingGet) -> None:
        self._pending.remove(pending)
        task = asyncio.ensure_future(self._send(pending))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _send(self, pending: _PendingGet) -> None:
        try:
            response = await self.transport.get(pending.params, pending.headers)
        except asyncio.CancelledError:
            for waiter in pending.waiters:
                waiter.cancel()
            raise
        except Exception as exc:
            for waiter in pending.waiters:
                if not waiter.done():
                    waiter.set_exception(exc)
            return
        for waiter in pending.waiters:
            if not waiter.done():
                waiter.set_result(response)
