"""
tests/test_cogs.py — Unit Tests for the Discord Adapters
=========================================================

Gateway payload normalization, the check-in and reaction listeners, the
admin commands, and message chunking.  Discord objects are ``MagicMock``
stand-ins; no gateway connection is made.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import discord

from fitboard.bot.cogs.admin import Admin, has_admin_access
from fitboard.bot.cogs.checkins import CheckIns, has_media, normalize_message
from fitboard.bot.cogs.reactions import Reactions, normalize_reaction
from fitboard.bot.core import chunk_text
from fitboard.constants import DAILY_PROMPTS, WEEKEND_PROMPTS
from fitboard.engine.events import ReactionAdded, ThreadReply, Unrecognized
from fitboard.engine.identity import BotIdentity

CHANNEL_ID = 222
BOT_ID = 900
THREAD_ID = 1186000000000000000


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _attachment(content_type: str | None) -> MagicMock:
    att = MagicMock()
    att.content_type = content_type
    return att


def _make_root(author_id: int = BOT_ID) -> MagicMock:
    root = MagicMock(spec=discord.Message)
    root.author = MagicMock(id=author_id)
    root.created_at = datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc)
    return root


def _make_thread(root: MagicMock | None) -> MagicMock:
    thread = MagicMock(spec=discord.Thread)
    thread.id = THREAD_ID
    thread.parent_id = CHANNEL_ID
    thread.starter_message = root
    return thread


def _make_message(
    *,
    channel=None,
    author_id: int = 1,
    bot: bool = False,
    content: str = "ran 5k",
    attachments: list | None = None,
    mentions: list | None = None,
    message_id: int = 5000,
) -> MagicMock:
    msg = MagicMock(spec=discord.Message)
    msg.id = message_id
    msg.author = MagicMock(id=author_id, bot=bot)
    msg.guild = MagicMock()
    msg.channel = channel if channel is not None else _make_thread(_make_root())
    msg.content = content
    msg.attachments = attachments or []
    msg.mentions = mentions or []
    msg.role_mentions = []
    msg.mention_everyone = False
    return msg


def _make_bot(ledger) -> SimpleNamespace:
    return SimpleNamespace(
        ledger=ledger,
        cfg=SimpleNamespace(channel_id=CHANNEL_ID, zone=ZoneInfo("America/New_York")),
        identity=BotIdentity(AsyncMock(return_value=str(BOT_ID))),
    )


# ---------------------------------------------------------------------------
# Message normalization
# ---------------------------------------------------------------------------
class TestHasMedia:
    def test_image_and_video(self):
        assert has_media(_make_message(attachments=[_attachment("image/png")]))
        assert has_media(_make_message(attachments=[_attachment("video/mp4")]))

    def test_other_files(self):
        assert not has_media(_make_message(attachments=[_attachment("application/pdf")]))
        assert not has_media(_make_message(attachments=[_attachment(None)]))
        assert not has_media(_make_message())


class TestNormalizeMessage:
    def test_thread_reply(self):
        event = run_async(normalize_message(_make_message(attachments=[_attachment("image/jpeg")])))
        assert isinstance(event, ThreadReply)
        assert event.actor_id == "1"
        assert event.channel_id == str(CHANNEL_ID)
        assert event.thread_root_ts == str(THREAD_ID)
        assert event.root_author_id == str(BOT_ID)
        assert event.event_ts == "5000"
        assert event.has_media is True
        assert event.has_mentions is False

    def test_structured_mentions(self):
        event = run_async(normalize_message(_make_message(mentions=[MagicMock()])))
        assert event.has_mentions is True

    def test_bot_author(self):
        assert isinstance(run_async(normalize_message(_make_message(bot=True))), Unrecognized)

    def test_direct_message(self):
        msg = _make_message()
        msg.guild = None
        assert isinstance(run_async(normalize_message(msg)), Unrecognized)

    def test_outside_thread(self):
        msg = _make_message(channel=MagicMock(spec=discord.TextChannel))
        assert isinstance(run_async(normalize_message(msg)), Unrecognized)

    def test_root_fetched_from_parent(self):
        thread = _make_thread(None)
        parent = MagicMock(spec=discord.TextChannel)
        parent.fetch_message = AsyncMock(return_value=_make_root())
        thread.parent = parent
        event = run_async(normalize_message(_make_message(channel=thread)))
        parent.fetch_message.assert_awaited_once_with(THREAD_ID)
        assert event.root_author_id == str(BOT_ID)

    def test_deleted_root(self):
        thread = _make_thread(None)
        parent = MagicMock(spec=discord.TextChannel)
        parent.fetch_message = AsyncMock(
            side_effect=discord.HTTPException(MagicMock(status=500, reason="err"), "boom")
        )
        thread.parent = parent
        event = run_async(normalize_message(_make_message(channel=thread)))
        assert event.root_author_id is None
        assert event.thread_root_at == discord.utils.snowflake_time(THREAD_ID)

    def test_untracked_channel_skips_root_lookup(self):
        thread = _make_thread(None)
        parent = MagicMock(spec=discord.TextChannel)
        parent.fetch_message = AsyncMock(return_value=_make_root())
        thread.parent = parent
        event = run_async(normalize_message(_make_message(channel=thread), "999"))
        assert isinstance(event, Unrecognized)
        parent.fetch_message.assert_not_awaited()

    def test_tracked_channel_is_normalized(self):
        event = run_async(normalize_message(_make_message(), str(CHANNEL_ID)))
        assert isinstance(event, ThreadReply)


# ---------------------------------------------------------------------------
# Reaction normalization
# ---------------------------------------------------------------------------
def _make_payload(*, guild_id: int | None = 1, member_bot: bool = False, user_id: int = 2) -> MagicMock:
    payload = MagicMock(spec=discord.RawReactionActionEvent)
    payload.guild_id = guild_id
    payload.member = MagicMock(bot=member_bot)
    payload.user_id = user_id
    payload.message_id = 5000
    payload.channel_id = THREAD_ID
    return payload


class TestNormalizeReaction:
    def test_reaction(self):
        event = normalize_reaction(_make_payload())
        assert isinstance(event, ReactionAdded)
        assert event.post_ts == "5000"
        assert event.reactor_id == "2"
        assert event.event_ts

    def test_direct_message(self):
        assert isinstance(normalize_reaction(_make_payload(guild_id=None)), Unrecognized)

    def test_bot_reactor(self):
        assert isinstance(normalize_reaction(_make_payload(member_bot=True)), Unrecognized)


# ---------------------------------------------------------------------------
# Listeners
# ---------------------------------------------------------------------------
class TestListeners:
    def test_reply_then_reaction(self, ledger):
        bot = _make_bot(ledger)
        run_async(CheckIns(bot).on_message(_make_message(attachments=[_attachment("image/png")])))
        run_async(Reactions(bot).on_raw_reaction_add(_make_payload(user_id=2)))

        [record] = run_async(ledger.query_all()).check_ins
        assert record.user == "1"
        assert record.date == "2024-06-03"
        assert record.points == 11

    def test_handler_errors_are_logged(self, ledger, caplog):
        bot = _make_bot(ledger)
        bot.ledger = MagicMock()
        bot.ledger.record_check_in = AsyncMock(side_effect=OSError("disk full"))
        run_async(CheckIns(bot).on_message(_make_message()))
        assert "Error processing message 5000" in caplog.text

    def test_untracked_thread_costs_no_lookup(self, ledger):
        thread = _make_thread(None)
        thread.parent_id = 333
        parent = MagicMock(spec=discord.TextChannel)
        parent.fetch_message = AsyncMock(return_value=_make_root())
        thread.parent = parent
        run_async(CheckIns(_make_bot(ledger)).on_message(_make_message(channel=thread)))
        parent.fetch_message.assert_not_awaited()
        assert run_async(ledger.query_all()).check_ins == []


# ---------------------------------------------------------------------------
# Admin commands
# ---------------------------------------------------------------------------
def _make_interaction(*, admin_role_id: int = 77, role_ids: tuple[int, ...] = (), administrator: bool = False) -> MagicMock:
    interaction = MagicMock()
    interaction.client = SimpleNamespace(cfg=SimpleNamespace(admin_role_id=admin_role_id))
    interaction.user = MagicMock(id=42)
    interaction.user.roles = [MagicMock(id=rid) for rid in role_ids]
    interaction.user.guild_permissions.administrator = administrator
    interaction.response.defer = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


def _make_gateway_bot() -> SimpleNamespace:
    return SimpleNamespace(
        local_today=lambda: date(2024, 6, 3),
        post=AsyncMock(),
        post_thread=AsyncMock(),
        resolve_display_name=AsyncMock(side_effect=lambda uid: uid),
    )


class TestAdminAccess:
    def test_configured_role(self):
        assert run_async(has_admin_access(_make_interaction(role_ids=(1, 77))))

    def test_missing_role(self):
        assert not run_async(has_admin_access(_make_interaction(role_ids=(1,), administrator=True)))

    def test_administrator_when_no_role_configured(self):
        assert run_async(has_admin_access(_make_interaction(admin_role_id=0, administrator=True)))
        assert not run_async(has_admin_access(_make_interaction(admin_role_id=0)))

    def test_user_without_roles(self):
        interaction = _make_interaction()
        interaction.user = SimpleNamespace(id=42)
        assert not run_async(has_admin_access(interaction))


class TestPostThreadCommand:
    def test_posts_daily_thread(self):
        bot = _make_gateway_bot()
        interaction = _make_interaction()
        run_async(Admin.postthread.callback(Admin(bot), interaction))

        interaction.response.defer.assert_awaited_once_with(ephemeral=True)
        text, name = bot.post_thread.await_args.args
        assert text in DAILY_PROMPTS
        assert "Mon Jun 03" in name
        reply = interaction.followup.send.await_args
        assert reply.args[0].startswith("✅")
        assert reply.kwargs["ephemeral"] is True

    def test_weekend_prompt(self):
        bot = _make_gateway_bot()
        run_async(Admin.postthread.callback(Admin(bot), _make_interaction(), weekend=True))
        text, _ = bot.post_thread.await_args.args
        assert text in WEEKEND_PROMPTS

    def test_post_failure_is_reported(self, caplog):
        bot = _make_gateway_bot()
        bot.post_thread.side_effect = RuntimeError("channel gone")
        interaction = _make_interaction()
        run_async(Admin.postthread.callback(Admin(bot), interaction))

        assert interaction.followup.send.await_args.args[0].startswith("❌")
        assert "Manual prompt thread failed" in caplog.text


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------
class TestChunkText:
    def test_short_text_is_one_chunk(self):
        assert chunk_text("a\nb") == ["a\nb"]

    def test_splits_on_lines(self):
        chunks = chunk_text("aaaa\nbbbb\ncccc", limit=9)
        assert chunks == ["aaaa\nbbbb", "cccc"]

    def test_long_line_is_cut(self):
        chunks = chunk_text("x" * 25, limit=10)
        assert chunks == ["x" * 10, "x" * 10, "x" * 5]
        assert all(len(c) <= 10 for c in chunks)
