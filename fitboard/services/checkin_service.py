"""
fitboard.services.checkin_service — Event → Ledger
===================================================

Applies a normalized inbound event to the ledger under the scoring rules.

Pipeline:
  InboundEvent → reject Unrecognized → qualify (replies only) → Ledger mutation

Policy rejections (duplicate check-in, self-reaction, reaction on a post
that is not a check-in) come back as outcome enums.  Storage faults raise.
"""

from __future__ import annotations

import logging
from datetime import tzinfo

from fitboard.engine.events import (
    InboundEvent,
    ReactionAdded,
    ThreadReply,
    Unrecognized,
    check_in_date,
    qualifies,
)
from fitboard.engine.identity import BotIdentity
from fitboard.storage.ledger import Ledger
from fitboard.storage.models import CheckInOutcome, ReactionOutcome

logger = logging.getLogger(__name__)


async def handle_event(
    ledger: Ledger,
    event: InboundEvent,
    *,
    tracked_channel_id: str,
    identity: BotIdentity,
    zone: tzinfo,
) -> CheckInOutcome | ReactionOutcome | None:
    """Apply *event*; ``None`` means it was not check-in activity at all."""
    if isinstance(event, Unrecognized):
        logger.debug("Ignoring unrecognized event: %s", event.reason)
        return None

    if isinstance(event, ReactionAdded):
        return await ledger.record_reaction(
            None, event.reactor_id, event.post_ts, event.event_ts,
        )

    if isinstance(event, ThreadReply):
        bot_user_id = await identity.get()
        if not qualifies(event, tracked_channel_id, bot_user_id):
            logger.debug("Reply %s from %s does not qualify", event.event_ts, event.actor_id)
            return None
        return await ledger.record_check_in(
            event.actor_id,
            check_in_date(event, zone),
            event.has_media,
            event.event_ts,
        )

    raise TypeError(f"Unsupported event type: {type(event).__name__}")
