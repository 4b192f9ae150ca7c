"""
fitboard.services.announcement_service — Prompts & Leaderboard Posts
=====================================================================

The scheduled jobs and the ``/whiteboard`` text, written against the
:class:`ChatGateway` protocol so they never import Discord.  The bot
implements the gateway; tests pass an ``AsyncMock``.

Posting failures propagate to the caller (the scheduler logs them).  A
leaderboard window is only closed after its board was posted.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Protocol

from fitboard.constants import DAILY_PROMPTS, THREAD_NAME_FORMAT, WEEKEND_PROMPTS, pick
from fitboard.engine.leaderboard import build_leaderboard, format_leaderboard, format_whiteboard
from fitboard.storage.ledger import Ledger
from fitboard.storage.models import WindowKind

logger = logging.getLogger(__name__)


class ChatGateway(Protocol):
    """What the core needs from the chat platform."""

    async def post(self, text: str) -> None: ...

    async def post_thread(self, text: str, thread_name: str) -> None: ...

    async def resolve_display_name(self, user_id: str) -> str: ...


# ---------------------------------------------------------------------------
# Prompt threads
# ---------------------------------------------------------------------------
async def post_prompt_thread(gateway: ChatGateway, today: date, *, weekend: bool = False) -> str:
    """Open today's check-in thread; replies to it become check-ins."""
    text = pick(WEEKEND_PROMPTS if weekend else DAILY_PROMPTS)
    await gateway.post_thread(text, today.strftime(THREAD_NAME_FORMAT))
    logger.info("Posted %s prompt thread for %s", "weekend" if weekend else "daily", today)
    return text


# ---------------------------------------------------------------------------
# Leaderboards
# ---------------------------------------------------------------------------
async def _post_board(
    gateway: ChatGateway, ledger: Ledger, kind: WindowKind, reference: date
) -> str:
    snapshot = await ledger.query_all()
    result = await build_leaderboard(snapshot, kind, reference, gateway.resolve_display_name)
    text = format_leaderboard(result)
    await gateway.post(text)
    await ledger.reset_window(kind)
    logger.info(
        "Posted %s leaderboard (%s – %s, %d entries)",
        kind.value, result.start, result.end, len(result.entries) if result else 0,
    )
    return text


async def post_weekly_leaderboard(gateway: ChatGateway, ledger: Ledger, today: date) -> str:
    """Post the board for the week that ended yesterday, then close it."""
    return await _post_board(gateway, ledger, WindowKind.WEEKLY, today - timedelta(days=1))


async def post_monthly_leaderboard(gateway: ChatGateway, ledger: Ledger, today: date) -> str:
    """Post the board for the month containing *today*, then close it."""
    return await _post_board(gateway, ledger, WindowKind.MONTHLY, today)


async def whiteboard_text(gateway: ChatGateway, ledger: Ledger, today: date) -> str:
    """Current week and month together, as answered by ``/whiteboard``."""
    snapshot = await ledger.query_all()
    weekly = await build_leaderboard(snapshot, WindowKind.WEEKLY, today, gateway.resolve_display_name)
    monthly = await build_leaderboard(snapshot, WindowKind.MONTHLY, today, gateway.resolve_display_name)
    return format_whiteboard(weekly, monthly)
