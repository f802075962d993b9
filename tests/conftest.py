from __future__ import annotations

import asyncio
from typing import Any, Mapping

import pytest

from mwaction import Session, TransportResponse


def ok(body: Any, headers: Mapping[str, str] | None = None) -> TransportResponse:
    return TransportResponse(status=200, headers=dict(headers or {}), body=body)


class FakeTransport:
    """In-memory transport returning queued responses in order."""

    def __init__(self, responses: list[TransportResponse | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def _next(self) -> TransportResponse:
        assert self.responses, "unexpected transport call"
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def get(self, params: Mapping[str, str], headers: Mapping[str, str]) -> TransportResponse:
        self.calls.append({"method": "GET", "params": dict(params), "headers": dict(headers)})
        await asyncio.sleep(0)
        return self._next()

    async def post(
        self,
        url_params: Mapping[str, str],
        body_params: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> TransportResponse:
        self.calls.append(
            {
                "method": "POST",
                "url_params": dict(url_params),
                "body_params": dict(body_params),
                "headers": dict(headers),
            }
        )
        await asyncio.sleep(0)
        return self._next()

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


class Harness:
    def __init__(self, responses: list[TransportResponse | Exception], **session_kwargs: Any) -> None:
        self.transport = FakeTransport(responses)
        self.clock = FakeClock()
        self.warnings: list[Exception] = []
        default_options = {"user_agent": "test-agent", "warn": self.warnings.append}
        default_options.update(session_kwargs.pop("default_options", {}))
        self.session = Session(
            "https://wiki.example.org/w/api.php",
            session_kwargs.pop("default_params", None),
            default_options,
            transport=self.transport,
            **session_kwargs,
        )
        self.session._clock = self.clock
        self.session._sleep = self.clock.sleep

    def run(self, coro: Any) -> Any:
        return asyncio.run(coro)


@pytest.fixture
def harness():
    return Harness
