"""
fitboard.bot.cogs.reactions — Reactions → Check-in Points
==========================================================

Listens for on_raw_reaction_add (raw, so reactions on uncached check-ins
still count) and credits them to the check-in they target.  The ledger
rejects self-reactions and reactions on posts that are not check-ins.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from fitboard.engine.events import InboundEvent, ReactionAdded, Unrecognized
from fitboard.services.checkin_service import handle_event

if TYPE_CHECKING:
    from fitboard.bot.core import FitBoardBot

logger = logging.getLogger(__name__)


def normalize_reaction(payload: discord.RawReactionActionEvent) -> InboundEvent:
    if payload.guild_id is None:
        return Unrecognized("direct message")
    if payload.member is not None and payload.member.bot:
        return Unrecognized("bot reactor")
    return ReactionAdded(
        post_ts=str(payload.message_id),
        reactor_id=str(payload.user_id),
        event_ts=discord.utils.utcnow().isoformat(),
    )


class Reactions(commands.Cog, name="Reactions"):
    """Adds reaction points to check-ins, capped per check-in."""

    def __init__(self, bot: FitBoardBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        """Fire when any reaction is added, even on uncached messages."""
        logger.debug(
            "Gateway event: REACTION_ADD from user %s on message %s in channel %s",
            payload.user_id, payload.message_id, payload.channel_id,
        )
        try:
            await self._handle_reaction(payload)
        except Exception:
            logger.exception(
                "Error processing reaction on message %s from user %s",
                payload.message_id, payload.user_id,
            )

    async def _handle_reaction(self, payload: discord.RawReactionActionEvent) -> None:
        event = normalize_reaction(payload)
        if isinstance(event, Unrecognized):
            return
        await handle_event(
            self.bot.ledger,
            event,
            tracked_channel_id=str(self.bot.cfg.channel_id),
            identity=self.bot.identity,
            zone=self.bot.cfg.zone,
        )


async def setup(bot: FitBoardBot) -> None:
    await bot.add_cog(Reactions(bot))
