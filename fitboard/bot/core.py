"""
fitboard.bot.core — Bot Instance, Cog Loader & Chat Gateway
============================================================

Defines :class:`FitBoardBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``), the ledger (``bot.ledger``) and
   the cached bot identity (``bot.identity``) for every Cog.
2. Loads the ledger before connecting; a corrupt document stops startup.
3. Loads every Cog listed in :data:`EXTENSIONS`.
4. Implements the ``ChatGateway`` protocol used by the announcement
   service: posting to the tracked channel, opening prompt threads, and
   resolving display names.
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime

import discord
from discord.ext import commands

from fitboard.config import ConfigError, FitBoardConfig
from fitboard.engine.identity import BotIdentity
from fitboard.storage.ledger import Ledger

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "fitboard.bot.cogs.checkins",
    "fitboard.bot.cogs.reactions",
    "fitboard.bot.cogs.meta",
    "fitboard.bot.cogs.tasks",
    "fitboard.bot.cogs.admin",
]

MESSAGE_LIMIT = 2000  # Discord's per-message character cap


def chunk_text(text: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """Split *text* on line boundaries into pieces no longer than *limit*."""
    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


class FitBoardBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`FitBoardConfig` from ``config.yaml``.
    ledger:
        The check-in ledger; loaded in :meth:`setup_hook`.
    """

    def __init__(self, cfg: FitBoardConfig, ledger: Ledger) -> None:
        intents = discord.Intents.default()
        intents.message_content = True    # Privileged: mention markers in replies
        intents.members = True            # Privileged: display names from the member cache

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description=f"{cfg.community_name} daily check-ins",
        )

        self.cfg = cfg
        self.ledger = ledger
        self.identity = BotIdentity(self._fetch_bot_user_id)

    async def _fetch_bot_user_id(self) -> str:
        await self.wait_until_ready()
        if self.user is None:
            raise RuntimeError("Bot user is not available after ready")
        return str(self.user.id)

    def local_today(self) -> date:
        return datetime.now(self.cfg.zone).date()

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load the ledger, then every Cog extension.

        Ledger errors propagate and abort startup.  A Cog that fails to load
        is logged and skipped.
        """
        await self.ledger.load()

        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired on every new gateway session (including reconnects)."""
        assert self.user is not None
        self.identity.invalidate()
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

    # -----------------------------------------------------------------------
    # ChatGateway
    # -----------------------------------------------------------------------
    async def _tracked_channel(self) -> discord.TextChannel:
        channel = self.get_channel(self.cfg.channel_id)
        if channel is None:
            try:
                channel = await self.fetch_channel(self.cfg.channel_id)
            except discord.NotFound as exc:
                raise ConfigError(f"Check-in channel {self.cfg.channel_id} does not exist") from exc
        if not isinstance(channel, discord.TextChannel):
            raise ConfigError(f"Check-in channel {self.cfg.channel_id} is not a text channel")
        return channel

    async def post(self, text: str) -> None:
        channel = await self._tracked_channel()
        for chunk in chunk_text(text):
            await channel.send(chunk)

    async def post_thread(self, text: str, thread_name: str) -> None:
        channel = await self._tracked_channel()
        message = await channel.send(text)
        await message.create_thread(name=thread_name, auto_archive_duration=1440)

    async def resolve_display_name(self, user_id: str) -> str:
        try:
            uid = int(user_id)
        except ValueError:
            return user_id

        guild = self.get_guild(self.cfg.guild_id) if self.cfg.guild_id else None
        member = guild.get_member(uid) if guild else None
        if member is not None:
            return member.display_name

        user = self.get_user(uid)
        if user is None:
            try:
                user = await self.fetch_user(uid)
            except (discord.NotFound, discord.HTTPException):
                logger.debug("Could not resolve user %s", user_id)
                return user_id
        return user.display_name or user_id
