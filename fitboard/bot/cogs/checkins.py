"""
fitboard.bot.cogs.checkins — Thread Replies → Check-ins
========================================================

Listens for on_message, normalizes thread replies into
:class:`ThreadReply` events and hands them to the check-in service.
Whether a reply qualifies (tracked channel, bot-authored root, no
mentions) is decided by :func:`fitboard.engine.events.qualifies`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from fitboard.engine.events import InboundEvent, ThreadReply, Unrecognized
from fitboard.services.checkin_service import handle_event

if TYPE_CHECKING:
    from fitboard.bot.core import FitBoardBot

logger = logging.getLogger(__name__)

MEDIA_PREFIXES = ("image/", "video/")


def has_media(message: discord.Message) -> bool:
    return any(
        (attachment.content_type or "").startswith(MEDIA_PREFIXES)
        for attachment in message.attachments
    )


async def _thread_root(thread: discord.Thread) -> discord.Message | None:
    """The message the thread was opened on, if it still exists."""
    if thread.starter_message is not None:
        return thread.starter_message
    parent = thread.parent
    if not isinstance(parent, discord.TextChannel):
        return None
    try:
        # Message threads share their id with the starter message.
        return await parent.fetch_message(thread.id)
    except (discord.NotFound, discord.Forbidden, discord.HTTPException):
        return None


async def normalize_message(
    message: discord.Message, tracked_channel_id: str | None = None
) -> InboundEvent:
    """Turn a gateway message into a :class:`ThreadReply` or :class:`Unrecognized`.

    With *tracked_channel_id*, threads of other channels are rejected before
    the thread root is looked up.
    """
    if message.author.bot:
        return Unrecognized("bot author")
    if message.guild is None:
        return Unrecognized("direct message")
    if not isinstance(message.channel, discord.Thread):
        return Unrecognized("not in a thread")

    thread = message.channel
    if tracked_channel_id is not None and str(thread.parent_id) != tracked_channel_id:
        return Unrecognized("untracked channel")
    root = await _thread_root(thread)
    return ThreadReply(
        actor_id=str(message.author.id),
        channel_id=str(thread.parent_id),
        thread_root_ts=str(thread.id),
        thread_root_at=root.created_at if root is not None else discord.utils.snowflake_time(thread.id),
        root_author_id=str(root.author.id) if root is not None else None,
        event_ts=str(message.id),
        raw_text=message.content,
        has_media=has_media(message),
        has_mentions=bool(message.mentions or message.role_mentions or message.mention_everyone),
    )


class CheckIns(commands.Cog, name="CheckIns"):
    """Records one check-in per member per day from prompt-thread replies."""

    def __init__(self, bot: FitBoardBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        try:
            await self._handle_message(message)
        except Exception:
            logger.exception(
                "Error processing message %s from user %s",
                message.id, message.author.id,
            )

    async def _handle_message(self, message: discord.Message) -> None:
        """Inner message handler (separated for error isolation)."""
        tracked_channel_id = str(self.bot.cfg.channel_id)
        event = await normalize_message(message, tracked_channel_id)
        if isinstance(event, Unrecognized):
            return

        outcome = await handle_event(
            self.bot.ledger,
            event,
            tracked_channel_id=tracked_channel_id,
            identity=self.bot.identity,
            zone=self.bot.cfg.zone,
        )
        if outcome is not None:
            logger.debug("Reply %s from %s → %s", message.id, message.author.id, outcome.value)


async def setup(bot: FitBoardBot) -> None:
    await bot.add_cog(CheckIns(bot))
