"""
fitboard.constants — Shared Constants & Helpers
================================================

Single source of truth for presentation text: leaderboard badges, the
"no data" messages, and the prompt lines used for the daily threads.
"""

from __future__ import annotations

import random
import re

# ---------------------------------------------------------------------------
# Leaderboard presentation
# ---------------------------------------------------------------------------
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉

TROPHY = "\U0001f3c6"      # 🏆
HOURGLASS = "\u23f3"     # ⏳

NO_DATA_MESSAGE = (
    f"{HOURGLASS} No leaderboard data available. "
    "No check-ins or points have been recorded yet!"
)
NO_DATA_WHITEBOARD_MESSAGE = (
    f"{TROPHY} No leaderboard data available. "
    "No check-ins or points have been recorded yet!"
)


# ---------------------------------------------------------------------------
# Prompt lines for the scheduled threads
# ---------------------------------------------------------------------------
DAILY_PROMPTS: list[str] = [
    "Good morning! Reply in this thread with today's workout to check in.",
    "New day, new reps. Drop your check-in below — photos earn a bonus.",
    "What moved you today? Reply here to log your check-in.",
    "Walk, lift, stretch, swim — it all counts. Check in below!",
    "Show up for yourself. Reply with today's activity to check in.",
]

WEEKEND_PROMPTS: list[str] = [
    "Weekend check-in! Reply with anything active you did this weekend.",
    "Sunday reset: share your weekend movement below to check in.",
    "Hikes, rides, games, chores that made you sweat — check in here.",
]

THREAD_NAME_FORMAT = "Check-in — %a %b %d"


def pick(lines: list[str]) -> str:
    return random.choice(lines)


# ---------------------------------------------------------------------------
# Text processing helpers
# ---------------------------------------------------------------------------
_MENTION_REGEX = re.compile(r"<@[!&]?\d*")


def contains_mention(text: str | None) -> bool:
    """True when *text* carries a raw mention marker (``<@…>``)."""
    return bool(text) and _MENTION_REGEX.search(text) is not None
