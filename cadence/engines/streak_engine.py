"""Streak Engine - streak counting and period progress for habits.

Counts consecutive periods with activity, most recent first. A period counts
as "with activity" when at least one entry references it. The current streak
is the run that starts at the newest period; an active period that is still
open and has no entries yet is skipped rather than counted as a miss.

Design Principles:
    - Stateless: static methods over materialized periods and entries
    - Explicit clock: `now` only drives the is_active_today flag
    - No backfill: a window with no period record is invisible, so a missing
      record neither breaks nor extends a streak
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import dt_same_local_day
from ..utils.math_utils import clamp

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from ..type_defs import EntryData, PeriodData, PeriodId, TaskData


@dataclass
class StreakInfo:
    """Streak summary for one task.

    Attributes:
        current_streak: Length of the most recent run of periods with entries
        longest_streak: Longest run seen in the history (>= current_streak)
        last_completed_date: Latest entry timestamp inside a counted period
        is_active_today: Any entry logged on `now`'s local calendar day
    """

    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: datetime | None = None
    is_active_today: bool = False


class StreakEngine:
    """Pure streak and progress calculations."""

    @staticmethod
    def group_entries(
        entries: Iterable[EntryData],
    ) -> dict[PeriodId, list[EntryData]]:
        """Group entries by the period they were logged in."""
        grouped: dict[PeriodId, list[EntryData]] = defaultdict(list)
        for entry in entries:
            grouped[entry[const.DATA_ENTRY_PERIOD_ID]].append(entry)
        return grouped

    @classmethod
    def calculate_streak(
        cls,
        task: TaskData,
        periods: Sequence[PeriodData],
        entries: Sequence[EntryData],
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> StreakInfo:
        """Compute current/longest streak for a task's period history.

        Args:
            task: Task the history belongs to (used for logging only)
            periods: All periods of the task, any order; not mutated
            entries: All entries of the task
            now: Reference instant for is_active_today
            tz: Optional timezone override for calendar-day comparison

        Returns:
            StreakInfo. An empty history yields all zeros.

        Example:
            Three consecutive periods with one entry each → current=3,
            longest=3. Empty middle period → current=1, longest=1.
        """
        info = StreakInfo(
            is_active_today=any(
                dt_same_local_day(entry[const.DATA_ENTRY_TIMESTAMP], now, tz)
                for entry in entries
            )
        )
        if not periods:
            return info

        ordered = sorted(
            periods,
            key=lambda period: period[const.DATA_PERIOD_START_DATE],
            reverse=True,
        )
        entries_by_period = cls.group_entries(entries)

        # The open window is still pending, not a miss
        newest = ordered[0]
        if (
            newest.get(const.DATA_PERIOD_IS_ACTIVE)
            and not newest.get(const.DATA_PERIOD_IS_COMPLETED)
            and not entries_by_period.get(newest.get(const.DATA_ID, ""))
        ):
            ordered = ordered[1:]

        longest = 0
        temp = 0
        current: int | None = None
        for period in ordered:
            period_entries = entries_by_period.get(period.get(const.DATA_ID, ""), [])
            if not period_entries:
                if current is None:
                    current = temp
                longest = max(longest, temp)
                temp = 0
                continue

            temp += 1
            latest = max(
                entry[const.DATA_ENTRY_TIMESTAMP] for entry in period_entries
            )
            if info.last_completed_date is None or latest > info.last_completed_date:
                info.last_completed_date = latest

        info.current_streak = temp if current is None else current
        info.longest_streak = max(longest, temp)

        const.LOGGER.debug(
            "Streak for task %s: current=%s longest=%s",
            task.get(const.DATA_ID),
            info.current_streak,
            info.longest_streak,
        )
        return info

    @staticmethod
    def progress(period: PeriodData) -> float:
        """Return progress toward the period target as a 0-100 percentage.

        Periods without a target report 0.0.

        Examples:
            count=2, target=4 → 50.0
            count=1, target=3 → 33.333... (unrounded)
            count=7, target=5 → 100.0
            count=3, target=None → 0.0
        """
        target = period.get(const.DATA_PERIOD_TARGET)
        if not target or target <= 0:
            return 0.0
        count = period.get(const.DATA_PERIOD_COUNT, 0)
        return clamp(count / target * 100, 0.0, const.PROGRESS_MAX_PERCENT)
