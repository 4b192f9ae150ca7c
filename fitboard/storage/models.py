"""
fitboard.storage.models — Ledger Records & Outcome Enums
=========================================================

Plain dataclasses for everything the ledger persists, plus the enums used
to report policy outcomes.  The on-disk JSON keys (``camelCase``) are mapped
here so the rest of the codebase only sees Python attribute names.

Document layout::

    {
      "checkIns":  [{"user", "ts", "date", "hasMedia", "reactionsReceived", "points"}],
      "reactions": [{"user", "postTs", "reactor", "ts"}]
    }
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class WindowKind(str, enum.Enum):
    """Aggregation period for a leaderboard."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def label(self) -> str:
        return "Weekly" if self is WindowKind.WEEKLY else "Monthly"


class CheckInOutcome(str, enum.Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class ReactionOutcome(str, enum.Enum):
    APPLIED = "applied"
    SELF_REACTION = "self_reaction"
    NO_MATCHING_CHECK_IN = "no_matching_check_in"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class CheckInRecord:
    """One qualifying check-in per (user, date).

    ``ts`` is the platform key of the reply post; reactions target it.
    ``reactions_received`` is the raw count (not capped); ``points`` caches
    the scored total with the reaction cap applied.
    """

    user: str
    ts: str
    date: str
    has_media: bool = False
    reactions_received: int = 0
    points: int = 0

    def to_dict(self) -> dict:
        return {
            "user": self.user,
            "ts": self.ts,
            "date": self.date,
            "hasMedia": self.has_media,
            "reactionsReceived": self.reactions_received,
            "points": self.points,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> CheckInRecord:
        return cls(
            user=str(raw["user"]),
            ts=str(raw["ts"]),
            date=str(raw["date"]),
            has_media=bool(raw.get("hasMedia", False)),
            reactions_received=int(raw.get("reactionsReceived", 0)),
            points=int(raw.get("points", 0)),
        )


@dataclass(frozen=True, slots=True)
class ReactionEvent:
    """Append-only log entry: *reactor* reacted to *user*'s post at *post_ts*."""

    user: str
    post_ts: str
    reactor: str
    ts: str

    def to_dict(self) -> dict:
        return {
            "user": self.user,
            "postTs": self.post_ts,
            "reactor": self.reactor,
            "ts": self.ts,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> ReactionEvent:
        return cls(
            user=str(raw["user"]),
            post_ts=str(raw["postTs"]),
            reactor=str(raw["reactor"]),
            ts=str(raw["ts"]),
        )


@dataclass(slots=True)
class LedgerSnapshot:
    """Detached copy of the whole ledger document."""

    check_ins: list[CheckInRecord] = field(default_factory=list)
    reactions: list[ReactionEvent] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "checkIns": [c.to_dict() for c in self.check_ins],
            "reactions": [r.to_dict() for r in self.reactions],
        }

    @classmethod
    def from_dict(cls, raw: dict) -> LedgerSnapshot:
        return cls(
            check_ins=[CheckInRecord.from_dict(c) for c in raw.get("checkIns", [])],
            reactions=[ReactionEvent.from_dict(r) for r in raw.get("reactions", [])],
        )
