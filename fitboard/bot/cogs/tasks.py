"""
fitboard.bot.cogs.tasks — Scheduled Posts
==========================================

Owns the :class:`CheckInScheduler` for the bot process:

- **Prompt threads** — weekdays 08:00 and Sundays 17:00 local.
- **Weekly leaderboard** — Mondays 08:00 local, for the week just ended.
- **Monthly leaderboard** — 17:00 local on the last day of the month.

Every job waits for the gateway connection before posting.  Failures are
logged by the scheduler; the next occurrence is the only retry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands

from fitboard.services.announcement_service import (
    post_monthly_leaderboard,
    post_prompt_thread,
    post_weekly_leaderboard,
)
from fitboard.services.scheduler import CheckInScheduler, schedule_all

if TYPE_CHECKING:
    from fitboard.bot.core import FitBoardBot

logger = logging.getLogger(__name__)


class ScheduledPosts(commands.Cog):
    """Cog for the recurring prompt and leaderboard jobs."""

    def __init__(self, bot: FitBoardBot) -> None:
        self.bot = bot
        self.scheduler = CheckInScheduler(bot.cfg.timezone)

    async def cog_load(self) -> None:
        """Register the jobs and start the scheduler when the cog is loaded."""
        schedule_all(
            self.scheduler,
            post_weekday_prompt=self._weekday_prompt,
            post_weekend_prompt=self._weekend_prompt,
            post_weekly_leaderboard=self._weekly_leaderboard,
            post_monthly_leaderboard=self._monthly_leaderboard,
        )
        self.scheduler.start()

    async def cog_unload(self) -> None:
        self.scheduler.shutdown()

    async def _weekday_prompt(self) -> None:
        await self.bot.wait_until_ready()
        await post_prompt_thread(self.bot, self.bot.local_today())

    async def _weekend_prompt(self) -> None:
        await self.bot.wait_until_ready()
        await post_prompt_thread(self.bot, self.bot.local_today(), weekend=True)

    async def _weekly_leaderboard(self) -> None:
        await self.bot.wait_until_ready()
        await post_weekly_leaderboard(self.bot, self.bot.ledger, self.bot.local_today())

    async def _monthly_leaderboard(self) -> None:
        await self.bot.wait_until_ready()
        await post_monthly_leaderboard(self.bot, self.bot.ledger, self.bot.local_today())


async def setup(bot: FitBoardBot) -> None:
    await bot.add_cog(ScheduledPosts(bot))
