"""
fitboard.engine.leaderboard — Window Ranking & Rendering
=========================================================

Derives leaderboards from a :class:`LedgerSnapshot`.  Nothing here is
stored: every query re-sums the check-ins whose ``date`` falls inside the
window.

Windows:
  * ``WEEKLY``  — Monday through Sunday of the reference date's ISO week.
  * ``MONTHLY`` — the reference date's calendar month.

Ordering is strictly by points, descending.  Ties keep the order in which
each user first appears in the ledger (Python's sort is stable), so the
same data always renders the same board.

An empty window yields :class:`NoData`, which is falsy and renders as the
"no data" message; it is never confused with a zero-entry ranking.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from fitboard.constants import NO_DATA_MESSAGE, NO_DATA_WHITEBOARD_MESSAGE, RANK_BADGES, TROPHY
from fitboard.engine.scoring import total_points
from fitboard.storage.models import CheckInRecord, LedgerSnapshot, WindowKind

logger = logging.getLogger(__name__)

NameResolver = Callable[[str], Awaitable[str]]

__all__ = [
    "Leaderboard",
    "LeaderboardEntry",
    "NoData",
    "build_leaderboard",
    "format_leaderboard",
    "format_whiteboard",
    "rank_check_ins",
    "window_bounds",
]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    id: str
    display_name: str
    points: int


@dataclass(frozen=True, slots=True)
class Leaderboard:
    """A non-empty ranking for one window."""

    window: WindowKind
    start: date
    end: date
    entries: tuple[LeaderboardEntry, ...]


@dataclass(frozen=True, slots=True)
class NoData:
    """No check-ins were recorded in the window."""

    window: WindowKind
    start: date
    end: date

    def __bool__(self) -> bool:
        return False


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------
def window_bounds(kind: WindowKind, reference: date) -> tuple[date, date]:
    """Inclusive ``(start, end)`` of the window containing *reference*."""
    if kind is WindowKind.WEEKLY:
        start = reference - timedelta(days=reference.weekday())
        return start, start + timedelta(days=6)
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    return reference.replace(day=1), reference.replace(day=last_day)


def _in_window(record: CheckInRecord, start: date, end: date) -> bool:
    try:
        day = date.fromisoformat(record.date)
    except ValueError:
        logger.debug("Skipping check-in %s with unparseable date %r", record.ts, record.date)
        return False
    return start <= day <= end


# ---------------------------------------------------------------------------
# Ranking (pure)
# ---------------------------------------------------------------------------
def rank_check_ins(
    records: Iterable[CheckInRecord], kind: WindowKind, reference: date
) -> list[tuple[str, int]]:
    """Return ``[(user_id, points), …]`` for the window, best first."""
    start, end = window_bounds(kind, reference)
    totals: dict[str, int] = {}  # insertion order == first-seen order
    for record in records:
        if not _in_window(record, start, end):
            continue
        totals[record.user] = totals.get(record.user, 0) + total_points(record)
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


async def _resolve(resolve_name: NameResolver | None, user_id: str) -> str:
    if resolve_name is None:
        return user_id
    try:
        name = await resolve_name(user_id)
    except Exception:
        logger.warning("Display name lookup failed for %s; using raw id", user_id, exc_info=True)
        return user_id
    return name or user_id


async def build_leaderboard(
    snapshot: LedgerSnapshot,
    kind: WindowKind,
    reference: date,
    resolve_name: NameResolver | None = None,
) -> Leaderboard | NoData:
    """Rank the window containing *reference* and attach display names."""
    start, end = window_bounds(kind, reference)
    ranked = rank_check_ins(snapshot.check_ins, kind, reference)
    if not ranked:
        return NoData(window=kind, start=start, end=end)

    entries: list[LeaderboardEntry] = []
    for user_id, points in ranked:
        name = await _resolve(resolve_name, user_id)
        entries.append(LeaderboardEntry(id=user_id, display_name=name, points=points))
    return Leaderboard(window=kind, start=start, end=end, entries=tuple(entries))


# ---------------------------------------------------------------------------
# Rendering (pure)
# ---------------------------------------------------------------------------
def format_leaderboard(result: Leaderboard | NoData) -> str:
    if isinstance(result, NoData):
        return NO_DATA_MESSAGE

    lines = [
        f"{TROPHY} **{result.window.label} Leaderboard** {TROPHY}",
        f"_{result.start:%b %d} – {result.end:%b %d, %Y}_",
    ]
    for i, entry in enumerate(result.entries, 1):
        medal = RANK_BADGES[i - 1] if i <= len(RANK_BADGES) else f"**{i}.**"
        unit = "point" if entry.points == 1 else "points"
        lines.append(f"{medal} **{entry.display_name}** — {entry.points} {unit}")
    return "\n".join(lines)


def format_whiteboard(weekly: Leaderboard | NoData, monthly: Leaderboard | NoData) -> str:
    """Weekly and monthly boards together, or one message if both are empty."""
    if not weekly and not monthly:
        return NO_DATA_WHITEBOARD_MESSAGE
    return format_leaderboard(weekly) + "\n\n" + format_leaderboard(monthly)
