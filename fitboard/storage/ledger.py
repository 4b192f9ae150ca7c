"""
fitboard.storage.ledger — JSON-Document Ledger
===============================================

**Why this file exists:**
All persistent state (check-ins and the reaction log) lives in one JSON
document on disk.  Discord events arrive concurrently on the asyncio loop,
and every mutation is a read → modify → write cycle that suspends while the
file I/O runs on a worker thread.  That suspension point is exactly where a
check-in and a reaction could interleave and overwrite each other, so every
operation holds :attr:`Ledger._lock` for its whole cycle.

Writes go to a sibling ``.tmp`` file which is fsynced and then
``os.replace``-d over the document, so a reader never observes a partially
written file.

Usage::

    ledger = Ledger("ledger.json")
    await ledger.load()                          # create / migrate / validate
    await ledger.record_check_in("U1", "2024-06-03", True, "1247…")
    snapshot = await ledger.query_all()
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import ParamSpec, TypeVar

from fitboard.engine.scoring import total_points
from fitboard.storage.models import (
    CheckInOutcome,
    CheckInRecord,
    LedgerSnapshot,
    ReactionEvent,
    ReactionOutcome,
    WindowKind,
)

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

__all__ = [
    "Ledger",
    "LedgerCorruptError",
    "LedgerError",
    "migrate_document",
    "run_io",
]


class LedgerError(RuntimeError):
    """The ledger document could not be read or written."""


class LedgerCorruptError(LedgerError):
    """The on-disk document exists but is not a valid ledger."""


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_io(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** file operation on a background thread.

    Keeps the bot's event loop free while the document is read or flushed.
    """
    return await asyncio.to_thread(func, *args, **kwargs)


# ---------------------------------------------------------------------------
# Sync file helpers (run via run_io)
# ---------------------------------------------------------------------------
def _read_document(path: Path) -> dict | None:
    """Return the parsed document, or ``None`` if the file does not exist."""
    try:
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as exc:
        raise LedgerCorruptError(f"Ledger document {path} is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise LedgerCorruptError(
            f"Ledger document {path} must be a JSON object, got {type(raw).__name__}"
        )
    return raw


def _write_document(path: Path, data: dict) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


# ---------------------------------------------------------------------------
# Schema migration
# ---------------------------------------------------------------------------
def migrate_document(raw: dict) -> tuple[dict, bool]:
    """Convert the legacy per-user layout into check-in records.

    The legacy layout stored ``users: {id: {checkIns: [dates],
    mediaCheckIns: [dates], ...}}`` with no per-post data.  Each listed date
    becomes a :class:`CheckInRecord` with a synthetic ``ts`` (reactions can
    never target it) and zero reactions.  Existing ``checkIns`` win over
    legacy entries for the same ``(user, date)``.

    Returns ``(document, changed)``.
    """
    if "users" not in raw and "posts" not in raw:
        return raw, False

    check_ins = list(raw.get("checkIns") or [])
    seen = {(str(c.get("user")), str(c.get("date"))) for c in check_ins if isinstance(c, dict)}

    users = raw.get("users") or {}
    if not isinstance(users, dict):
        raise LedgerCorruptError("Legacy 'users' section must be an object")

    migrated = 0
    for user_id, user in users.items():
        if not isinstance(user, dict):
            continue
        media_dates = set(user.get("mediaCheckIns") or [])
        for day in user.get("checkIns") or []:
            key = (str(user_id), str(day))
            if key in seen:
                continue
            seen.add(key)
            record = CheckInRecord(
                user=str(user_id),
                ts=f"legacy-{user_id}-{day}",
                date=str(day),
                has_media=day in media_dates,
            )
            record.points = total_points(record)
            check_ins.append(record.to_dict())
            migrated += 1

    logger.info("Migrated legacy ledger layout: %d check-ins from %d users", migrated, len(users))
    return {"checkIns": check_ins, "reactions": list(raw.get("reactions") or [])}, True


def _parse(raw: dict, path: Path) -> LedgerSnapshot:
    if not isinstance(raw.get("checkIns", []), list) or not isinstance(raw.get("reactions", []), list):
        raise LedgerCorruptError(f"Ledger document {path} has non-list checkIns/reactions")
    try:
        return LedgerSnapshot.from_dict(raw)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise LedgerCorruptError(f"Ledger document {path} has a malformed record: {exc}") from exc


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
class Ledger:
    """Durable store of check-in records and reaction events.

    Parameters
    ----------
    path:
        Location of the JSON document.  Its parent directory must exist.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    async def load(self) -> LedgerSnapshot:
        """Validate the document at startup.

        A missing document is initialized empty and flushed.  A legacy
        document is migrated and rewritten.  Anything unparseable raises
        :class:`LedgerCorruptError`.
        """
        async with self._lock:
            raw = await run_io(_read_document, self.path)
            if raw is None:
                snapshot = LedgerSnapshot()
                await run_io(_write_document, self.path, snapshot.to_dict())
                logger.info("Initialized empty ledger at %s", self.path)
                return snapshot

            raw, changed = migrate_document(raw)
            snapshot = _parse(raw, self.path)
            if changed:
                await run_io(_write_document, self.path, snapshot.to_dict())
            logger.info(
                "Ledger loaded from %s: %d check-ins, %d reactions",
                self.path, len(snapshot.check_ins), len(snapshot.reactions),
            )
            return snapshot

    # -------------------------------------------------------------------
    # Internal read / flush (callers hold the lock)
    # -------------------------------------------------------------------
    async def _read(self) -> LedgerSnapshot:
        raw = await run_io(_read_document, self.path)
        if raw is None:
            raise LedgerError(f"Ledger document {self.path} is missing; was load() called?")
        raw, _ = migrate_document(raw)
        return _parse(raw, self.path)

    async def _flush(self, snapshot: LedgerSnapshot) -> None:
        await run_io(_write_document, self.path, snapshot.to_dict())

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    async def record_check_in(
        self, user: str, date: str, has_media: bool, timestamp: str
    ) -> CheckInOutcome:
        """Store the first check-in for ``(user, date)``; later ones are no-ops."""
        async with self._lock:
            snapshot = await self._read()
            if any(c.user == user and c.date == date for c in snapshot.check_ins):
                logger.debug("Check-in ignored: %s already checked in for %s", user, date)
                return CheckInOutcome.ALREADY_EXISTS

            record = CheckInRecord(user=user, ts=timestamp, date=date, has_media=has_media)
            record.points = total_points(record)
            snapshot.check_ins.append(record)
            await self._flush(snapshot)

        logger.info(
            "Check-in recorded: user=%s date=%s media=%s points=%d",
            user, date, has_media, record.points,
        )
        return CheckInOutcome.CREATED

    async def record_reaction(
        self,
        poster_user: str | None,
        reactor_user: str,
        target_post_ts: str,
        event_ts: str,
    ) -> ReactionOutcome:
        """Credit a reaction to the check-in keyed by *target_post_ts*.

        *poster_user* may be ``None`` when the caller only knows which post
        was reacted to; the check-in's own author is then used.
        """
        if poster_user is not None and poster_user == reactor_user:
            return ReactionOutcome.SELF_REACTION

        async with self._lock:
            snapshot = await self._read()
            record = next(
                (
                    c for c in snapshot.check_ins
                    if c.ts == target_post_ts and (poster_user is None or c.user == poster_user)
                ),
                None,
            )
            if record is None:
                logger.debug("Reaction ignored: no check-in for post %s", target_post_ts)
                return ReactionOutcome.NO_MATCHING_CHECK_IN
            if record.user == reactor_user:
                logger.debug("Reaction ignored: %s reacted to own check-in", reactor_user)
                return ReactionOutcome.SELF_REACTION

            record.reactions_received += 1
            record.points = total_points(record)
            snapshot.reactions.append(
                ReactionEvent(user=record.user, post_ts=target_post_ts, reactor=reactor_user, ts=event_ts)
            )
            await self._flush(snapshot)

        logger.info(
            "Reaction recorded: %s → %s (post %s, %d received)",
            reactor_user, record.user, target_post_ts, record.reactions_received,
        )
        return ReactionOutcome.APPLIED

    async def reset_window(self, kind: WindowKind) -> None:
        """Close an aggregation window.

        Records are kept: leaderboards select check-ins by date range, so
        there is no window counter to clear.  The boundary is only logged.
        """
        async with self._lock:
            snapshot = await self._read()
        logger.info(
            "%s window closed; %d check-ins retained",
            kind.label, len(snapshot.check_ins),
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    async def query_by_date(self, date: str) -> list[CheckInRecord]:
        async with self._lock:
            snapshot = await self._read()
        return [c for c in snapshot.check_ins if c.date == date]

    async def query_all(self) -> LedgerSnapshot:
        async with self._lock:
            return await self._read()
