"""
tests/test_scoring.py — Unit Tests for the Scoring Policy
==========================================================

Pure functions only; no I/O.
"""

from __future__ import annotations

from fitboard.engine.scoring import (
    DAILY_CHECKIN_POINTS,
    MAX_REACTION_POINTS,
    MEDIA_BONUS_POINTS,
    REACTION_POINT,
    check_in_points,
    max_reaction_contribution,
    reaction_contribution,
    total_points,
)
from fitboard.storage.models import CheckInRecord


def _record(*, media: bool = False, reactions: int = 0) -> CheckInRecord:
    return CheckInRecord(
        user="U1", ts="1", date="2024-06-03", has_media=media, reactions_received=reactions,
    )


class TestConstants:
    def test_policy_values(self):
        assert DAILY_CHECKIN_POINTS == 5
        assert MEDIA_BONUS_POINTS == 5
        assert REACTION_POINT == 1
        assert MAX_REACTION_POINTS == 5


class TestCheckInPoints:
    def test_plain_check_in(self):
        assert check_in_points(_record()) == 5

    def test_media_bonus(self):
        assert check_in_points(_record(media=True)) == 10

    def test_reactions_do_not_affect_base(self):
        assert check_in_points(_record(reactions=3)) == 5


class TestReactionContribution:
    def test_zero(self):
        assert reaction_contribution(0) == 0

    def test_below_cap(self):
        assert reaction_contribution(4) == 4

    def test_at_cap(self):
        assert reaction_contribution(5) == 5

    def test_never_exceeds_cap(self):
        for n in (6, 10, 250):
            assert reaction_contribution(n) == max_reaction_contribution()

    def test_negative_counts_as_zero(self):
        assert reaction_contribution(-2) == 0


class TestTotalPoints:
    def test_media_and_reactions(self):
        assert total_points(_record(media=True, reactions=4)) == 14

    def test_capped_total(self):
        assert total_points(_record(media=True, reactions=9)) == 15
        assert total_points(_record(media=False, reactions=9)) == 10

    def test_deterministic(self):
        record = _record(media=True, reactions=2)
        assert total_points(record) == total_points(record)
