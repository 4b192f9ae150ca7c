"""
tests/test_identity.py — Unit Tests for the Cached Bot Identity
================================================================
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from fitboard.engine.identity import BotIdentity


def run_async(coro):
    return asyncio.run(coro)


class TestBotIdentity:
    def test_fetches_lazily(self):
        fetch = AsyncMock(return_value="B1")
        identity = BotIdentity(fetch)
        assert identity.cached is None
        fetch.assert_not_awaited()
        assert run_async(identity.get()) == "B1"
        assert identity.cached == "B1"

    def test_cached_after_first_fetch(self):
        fetch = AsyncMock(return_value="B1")
        identity = BotIdentity(fetch)
        run_async(identity.get())
        run_async(identity.get())
        fetch.assert_awaited_once()

    def test_concurrent_callers_share_one_fetch(self):
        calls = 0

        async def fetch() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return "B1"

        async def scenario():
            identity = BotIdentity(fetch)
            return await asyncio.gather(*(identity.get() for _ in range(5)))

        assert run_async(scenario()) == ["B1"] * 5
        assert calls == 1

    def test_invalidate_forces_refetch(self):
        fetch = AsyncMock(side_effect=["B1", "B2"])
        identity = BotIdentity(fetch)
        assert run_async(identity.get()) == "B1"
        identity.invalidate()
        assert identity.cached is None
        assert run_async(identity.get()) == "B2"

    def test_numeric_ids_become_strings(self):
        identity = BotIdentity(AsyncMock(return_value=1234))
        assert run_async(identity.get()) == "1234"

    def test_empty_result_is_an_error(self):
        identity = BotIdentity(AsyncMock(return_value=""))
        with pytest.raises(RuntimeError):
            run_async(identity.get())
        assert identity.cached is None
