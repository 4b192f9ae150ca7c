"""
fitboard.engine.identity — Cached Bot Account ID
=================================================

The check-in predicate needs the bot's own user id.  It is fetched once,
lazily, and shared by every cog.  :meth:`BotIdentity.invalidate` drops the
cached value so the next caller fetches again; the bot calls it whenever a
new gateway session starts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class BotIdentity:
    """Lazily initialized, process-wide bot user id."""

    def __init__(self, fetch: Callable[[], Awaitable[str]]) -> None:
        self._fetch = fetch
        self._user_id: str | None = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> str | None:
        return self._user_id

    async def get(self) -> str:
        if self._user_id is not None:
            return self._user_id
        async with self._lock:
            # Another caller may have filled it while we waited.
            if self._user_id is None:
                user_id = await self._fetch()
                if not user_id:
                    raise RuntimeError("Could not fetch bot user ID")
                self._user_id = str(user_id)
                logger.info("Bot user ID cached: %s", self._user_id)
        return self._user_id

    def invalidate(self) -> None:
        if self._user_id is not None:
            logger.info("Bot user ID cache invalidated (was %s)", self._user_id)
        self._user_id = None
