"""
fitboard.bot.cogs.admin — Admin Slash Commands
===============================================

- /postthread — open today's check-in thread now, outside the schedule

Requires the configured ``admin_role_id``, or the Administrator
permission when no role is configured.  The admin sees an ephemeral
confirmation; the thread itself is posted to the tracked channel.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from fitboard.services.announcement_service import post_prompt_thread

if TYPE_CHECKING:
    from fitboard.bot.core import FitBoardBot

logger = logging.getLogger(__name__)


async def has_admin_access(interaction: discord.Interaction) -> bool:
    bot: FitBoardBot = interaction.client  # type: ignore[assignment]
    user = interaction.user
    if not user or not hasattr(user, "roles"):
        return False
    admin_role_id = bot.cfg.admin_role_id
    if admin_role_id:
        return any(role.id == admin_role_id for role in user.roles)
    return user.guild_permissions.administrator


def is_admin():
    """Decorator that checks if the user may run admin commands."""
    return app_commands.check(has_admin_access)


class Admin(commands.Cog, name="Admin"):
    """Manual recovery commands for the scheduled posts."""

    def __init__(self, bot: FitBoardBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # /postthread
    # -------------------------------------------------------------------
    @app_commands.command(name="postthread", description="Post today's check-in thread now.")
    @app_commands.describe(weekend="Use a weekend prompt instead of the daily one")
    @is_admin()
    async def postthread(self, interaction: discord.Interaction, weekend: bool = False) -> None:
        await interaction.response.defer(ephemeral=True)
        today = self.bot.local_today()
        try:
            text = await post_prompt_thread(self.bot, today, weekend=weekend)
        except Exception:
            logger.exception("Manual prompt thread failed (requested by %s)", interaction.user.id)
            await interaction.followup.send("❌ Could not post the check-in thread.", ephemeral=True)
            return

        logger.info("Manual prompt thread for %s posted by %s", today, interaction.user.id)
        await interaction.followup.send(f"✅ Check-in thread posted:\n> {text}", ephemeral=True)


async def setup(bot: FitBoardBot) -> None:
    await bot.add_cog(Admin(bot))
