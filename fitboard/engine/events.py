"""
fitboard.engine.events — Normalized Inbound Events
===================================================

The Discord cogs translate gateway payloads into one of three variants
before anything touches the ledger:

* :class:`ThreadReply`   — a message posted inside a thread.
* :class:`ReactionAdded` — an emoji reaction on some message.
* :class:`Unrecognized`  — anything else; rejected first.

IDs are carried as strings so they round-trip through the JSON ledger
unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo

from fitboard.constants import contains_mention

__all__ = [
    "InboundEvent",
    "ReactionAdded",
    "ThreadReply",
    "Unrecognized",
    "check_in_date",
    "qualifies",
]


@dataclass(frozen=True, slots=True)
class ThreadReply:
    """A reply inside a thread, with what we know about the thread root."""

    actor_id: str
    channel_id: str        # parent channel of the thread
    thread_root_ts: str    # post key of the thread's starter message
    thread_root_at: datetime
    root_author_id: str | None
    event_ts: str          # post key of the reply itself
    raw_text: str
    has_media: bool = False
    has_mentions: bool = False


@dataclass(frozen=True, slots=True)
class ReactionAdded:
    post_ts: str
    reactor_id: str
    event_ts: str


@dataclass(frozen=True, slots=True)
class Unrecognized:
    reason: str


InboundEvent = ThreadReply | ReactionAdded | Unrecognized


def qualifies(reply: ThreadReply, tracked_channel_id: str, bot_user_id: str) -> bool:
    """True when *reply* counts as a check-in.

    It must sit in a thread of the tracked channel, mention nobody, and the
    thread must have been opened on a post by the bot.
    """
    if reply.channel_id != tracked_channel_id:
        return False
    if reply.has_mentions or contains_mention(reply.raw_text):
        return False
    return reply.root_author_id is not None and reply.root_author_id == bot_user_id


def check_in_date(reply: ThreadReply, zone: tzinfo) -> str:
    """Civil date (``YYYY-MM-DD``) of the thread root in *zone*."""
    return reply.thread_root_at.astimezone(zone).date().isoformat()
