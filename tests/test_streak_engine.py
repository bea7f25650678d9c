"""Unit tests for StreakEngine.

Tests streak counting over period history (most recent run first, no
backfill) and progress percentages.
"""

import copy

import pytest

from cadence import const
from cadence.const import TaskKind
from cadence.engines.streak_engine import StreakEngine, StreakInfo
from tests.helpers import make_entry, make_period, make_task, make_utc_dt

# =============================================================================
# Helper Functions
# =============================================================================


def daily_history(days_with_entries: list[bool]):
    """Build consecutive daily periods from 2024-01-01 with optional entries.

    Args:
        days_with_entries: One flag per day, oldest first; True adds one entry
            at 09:00 that day

    Returns:
        (periods, entries) tuple
    """
    periods = []
    entries = []
    for offset, has_entry in enumerate(days_with_entries):
        day = 1 + offset
        period_id = f"period-{day}"
        periods.append(
            make_period(
                make_utc_dt(2024, 1, day),
                end_date=make_utc_dt(2024, 1, day, 23, 59, 59),
                is_completed=has_entry,
                is_active=False,
                period_id=period_id,
            )
        )
        if has_entry:
            entries.append(make_entry(period_id, make_utc_dt(2024, 1, day, 9)))
    return periods, entries


# =============================================================================
# calculate_streak()
# =============================================================================


class TestCalculateStreak:
    """Tests for StreakEngine.calculate_streak()."""

    def test_empty_history(self) -> None:
        """No periods: all zeros."""
        info = StreakEngine.calculate_streak(
            make_task(kind=TaskKind.HABIT), [], [], make_utc_dt(2024, 1, 3)
        )
        assert info == StreakInfo()

    def test_three_consecutive_periods(self) -> None:
        """Three periods with one entry each: current 3, longest 3."""
        periods, entries = daily_history([True, True, True])

        info = StreakEngine.calculate_streak(
            make_task(kind=TaskKind.HABIT), periods, entries, make_utc_dt(2024, 1, 3, 12)
        )

        assert info.current_streak == 3
        assert info.longest_streak == 3
        assert info.last_completed_date == make_utc_dt(2024, 1, 3, 9)
        assert info.is_active_today is True

    def test_empty_middle_period_breaks_streak(self) -> None:
        """Middle period without entries: current 1, longest 1."""
        periods, entries = daily_history([True, False, True])

        info = StreakEngine.calculate_streak(
            make_task(kind=TaskKind.HABIT), periods, entries, make_utc_dt(2024, 1, 3, 12)
        )

        assert info.current_streak == 1
        assert info.longest_streak == 1

    def test_latest_closed_period_empty(self) -> None:
        """A missed newest window resets the current streak."""
        periods, entries = daily_history([True, True, False])

        info = StreakEngine.calculate_streak(
            make_task(kind=TaskKind.HABIT), periods, entries, make_utc_dt(2024, 1, 4, 12)
        )

        assert info.current_streak == 0
        assert info.longest_streak == 2
        assert info.is_active_today is False

    def test_open_active_period_does_not_break_streak(self) -> None:
        """Today's still-open period without entries is pending, not missed."""
        periods, entries = daily_history([True, True])
        periods.append(
            make_period(make_utc_dt(2024, 1, 3), period_id="period-3")
        )

        info = StreakEngine.calculate_streak(
            make_task(kind=TaskKind.HABIT), periods, entries, make_utc_dt(2024, 1, 3, 8)
        )

        assert info.current_streak == 2
        assert info.longest_streak == 2

    def test_longest_run_in_the_past(self) -> None:
        """Longest streak keeps an older, longer run."""
        periods, entries = daily_history([True, True, True, False, True])

        info = StreakEngine.calculate_streak(
            make_task(kind=TaskKind.HABIT), periods, entries, make_utc_dt(2024, 1, 5, 12)
        )

        assert info.current_streak == 1
        assert info.longest_streak == 3

    def test_input_order_irrelevant_and_not_mutated(self) -> None:
        """Periods are sorted on a copy; the caller's list is untouched."""
        periods, entries = daily_history([True, False, True, True])
        shuffled = [periods[2], periods[0], periods[3], periods[1]]
        before = copy.deepcopy(shuffled)
        now = make_utc_dt(2024, 1, 4, 12)
        task = make_task(kind=TaskKind.HABIT)

        ordered = StreakEngine.calculate_streak(task, periods, entries, now)
        unordered = StreakEngine.calculate_streak(task, shuffled, entries, now)

        assert ordered == unordered
        assert shuffled == before

    def test_last_completed_date_is_latest_entry(self) -> None:
        """Several entries in one period: the latest timestamp wins."""
        period = make_period(make_utc_dt(2024, 1, 1), period_id="p1")
        entries = [
            make_entry("p1", make_utc_dt(2024, 1, 1, 7)),
            make_entry("p1", make_utc_dt(2024, 1, 1, 21)),
            make_entry("p1", make_utc_dt(2024, 1, 1, 12)),
        ]

        info = StreakEngine.calculate_streak(
            make_task(kind=TaskKind.HABIT), [period], entries, make_utc_dt(2024, 1, 2)
        )

        assert info.current_streak == 1
        assert info.last_completed_date == make_utc_dt(2024, 1, 1, 21)
        assert info.is_active_today is False


# =============================================================================
# progress()
# =============================================================================


class TestProgress:
    """Tests for StreakEngine.progress()."""

    @pytest.mark.parametrize(
        ("count", "target", "expected"),
        [
            (2, 4, 50.0),
            (7, 5, 100.0),
            (0, 5, 0.0),
            (3, None, 0.0),
        ],
    )
    def test_progress(self, count: int, target: int | None, expected: float) -> None:
        """Percentage toward target, capped at 100 and 0 without a target."""
        period = make_period(make_utc_dt(2024, 1, 1), count=count, target=target)
        assert StreakEngine.progress(period) == expected

    def test_progress_is_not_rounded(self) -> None:
        """One of three is an exact third of 100."""
        period = make_period(make_utc_dt(2024, 1, 1), count=1, target=3)
        assert StreakEngine.progress(period) == pytest.approx(100 / 3)
        assert StreakEngine.progress(period) != 33.33

    def test_progress_reads_only_count_and_target(self) -> None:
        """Progress does not depend on completion flags."""
        period = make_period(make_utc_dt(2024, 1, 1), count=1, target=2)
        period[const.DATA_PERIOD_IS_COMPLETED] = True
        assert StreakEngine.progress(period) == 50.0
