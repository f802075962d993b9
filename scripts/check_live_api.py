#!/usr/bin/env python3
"""Integration check: exercise every public Session method against a live wiki."""

from __future__ import annotations

import asyncio
import os
import sys
from contextlib import aclosing
from typing import Any, Awaitable, Callable

from mwaction import ApiErrors, MwActionError, Session

API_URL = os.getenv("MWACTION_API_URL", "test.wikipedia.org")
USER_AGENT = "mwaction-live-check/0.1.0"

passed: list[str] = []
failed: list[tuple[str, str]] = []
skipped: list[tuple[str, str]] = []


def ok(name: str, result: object = None) -> None:
    tag = type(result).__name__ if result is not None else "None"
    print(f"  PASS  {name}  -> {tag}")
    passed.append(name)


def fail(name: str, err: Exception) -> None:
    msg = str(err)[:200]
    print(f"  FAIL  {name}  -> {msg}")
    failed.append((name, msg))


def skip(name: str, reason: str) -> None:
    print(f"  SKIP  {name}  ({reason})")
    skipped.append((name, reason))


async def run(name: str, fn: Callable[[], Awaitable[Any]], *, allowed: set[str] | None = None) -> Any:
    """Await fn(), record pass/fail/expected API error code."""
    try:
        result = await fn()
        ok(name, result)
        return result
    except ApiErrors as e:
        if allowed and {error.get("code") for error in e.errors} & allowed:
            ok(name, e)
        else:
            fail(name, e)
        return None
    except MwActionError as e:
        fail(name, e)
        return None


async def collect(iterator: Any, limit: int) -> list[Any]:
    items = []
    async with aclosing(iterator) as source:
        async for item in source:
            items.append(item)
            if len(items) >= limit:
                break
    return items


async def main() -> None:
    async with Session(
        API_URL,
        {"formatversion": 2, "errorformat": "plaintext"},
        {"user_agent": USER_AGENT, "max_retries_seconds": 15},
        combine_requests=True,
    ) as session:
        print("\n=== request ===")
        await run("request siteinfo", lambda: session.request({"action": "query", "meta": "siteinfo"}))
        await run(
            "request unknown action",
            lambda: session.request({"action": "no-such-action"}),
            allowed={"badvalue"},
        )

        print("\n=== combining ===")
        results = await run(
            "concurrent siteinfo + allpages",
            lambda: asyncio.gather(
                session.request({"action": "query", "meta": {"siteinfo"}}),
                session.request({"action": "query", "list": "allpages", "aplimit": 1}),
            ),
        )
        if results:
            print(f"        combined={results[0] is results[1]}")

        print("\n=== continuation ===")
        await run(
            "request_and_continue allpages",
            lambda: collect(
                session.request_and_continue({"action": "query", "list": "allpages", "aplimit": 2}),
                3,
            ),
        )

        def reducer(titles: list[str], response: dict[str, Any]) -> list[str]:
            return titles + [page["title"] for page in response.get("query", {}).get("allpages", [])]

        await run(
            "request_and_continue_reducing_batch allpages",
            lambda: collect(
                session.request_and_continue_reducing_batch(
                    {"action": "query", "list": "allpages", "aplimit": 2},
                    {},
                    reducer,
                    list,
                ),
                2,
            ),
        )

        print("\n=== tokens ===")
        token = await run("get_token csrf", lambda: session.get_token("csrf"))
        if token is None:
            skip("get_token cached", "no token returned")
        else:
            await run("get_token cached", lambda: session.get_token("csrf"))
        await run("get_token unknown type", lambda: session.get_token("no-such-type"), allowed={"badvalue"})

    print("\n" + "=" * 60)
    print(f"PASSED: {len(passed)}   FAILED: {len(failed)}   SKIPPED: {len(skipped)}")
    if failed:
        print("\nFailed checks:")
        for name, err in failed:
            print(f"  - {name}: {err}")
    if skipped:
        print("\nSkipped checks:")
        for name, reason in skipped:
            print(f"  - {name}: {reason}")
    print("=" * 60)

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    asyncio.run(main())
