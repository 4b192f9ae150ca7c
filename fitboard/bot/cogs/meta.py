"""
fitboard.bot.cogs.meta — Leaderboard Command
=============================================

- /whiteboard — this week's and this month's leaderboards together
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands

from fitboard.bot.core import chunk_text
from fitboard.services.announcement_service import whiteboard_text

if TYPE_CHECKING:
    from fitboard.bot.core import FitBoardBot

logger = logging.getLogger(__name__)


class Meta(commands.Cog, name="Meta"):
    """Member-facing leaderboard lookup."""

    def __init__(self, bot: FitBoardBot) -> None:
        self.bot = bot

    @commands.hybrid_command(  # type: ignore[arg-type]
        name="whiteboard",
        description="Show this week's and this month's check-in leaderboards.",
    )
    async def whiteboard(self, ctx: commands.Context) -> None:
        await ctx.defer()
        text = await whiteboard_text(self.bot, self.bot.ledger, self.bot.local_today())
        for chunk in chunk_text(text):
            await ctx.send(chunk)


async def setup(bot: FitBoardBot) -> None:
    await bot.add_cog(Meta(bot))
