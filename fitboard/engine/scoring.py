"""
fitboard.engine.scoring — Point Constants & Scoring Policy
===========================================================

Pure functions, no I/O.  The constants are fixed policy and are not read
from configuration.

A check-in is worth ``DAILY_CHECKIN_POINTS``, plus ``MEDIA_BONUS_POINTS``
when the reply carried a photo or video.  Every reaction a check-in receives
from someone else adds ``REACTION_POINT``, up to ``MAX_REACTION_POINTS``
reactions per check-in.
"""

from __future__ import annotations

from typing import Protocol

__all__ = [
    "DAILY_CHECKIN_POINTS",
    "MAX_REACTION_POINTS",
    "MEDIA_BONUS_POINTS",
    "REACTION_POINT",
    "check_in_points",
    "max_reaction_contribution",
    "reaction_contribution",
    "total_points",
]

DAILY_CHECKIN_POINTS = 5
MEDIA_BONUS_POINTS = 5
REACTION_POINT = 1
MAX_REACTION_POINTS = 5  # reactions counted per check-in


class Scorable(Protocol):
    has_media: bool
    reactions_received: int


def check_in_points(record: Scorable) -> int:
    return DAILY_CHECKIN_POINTS + (MEDIA_BONUS_POINTS if record.has_media else 0)


def reaction_contribution(reactions_received: int) -> int:
    """Points earned from *reactions_received*, capped per check-in."""
    return min(max(reactions_received, 0), MAX_REACTION_POINTS) * REACTION_POINT


def max_reaction_contribution() -> int:
    return MAX_REACTION_POINTS * REACTION_POINT


def total_points(record: Scorable) -> int:
    """Full value of one check-in record: base + media bonus + capped reactions."""
    return check_in_points(record) + reaction_contribution(record.reactions_received)
