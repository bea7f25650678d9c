"""Availability Engine - partitions recurring tasks into dashboard buckets.

For each task and its current active period (or none) the engine decides
whether the task is:

- AVAILABLE: can be completed now
- COMPLETED_TODAY: its period was started and completed today; carries the
  instant at which it reopens
- DORMANT: completed earlier in a window that has not elapsed yet, or
  anchored in the future; shown in neither list

ARCHITECTURE: Pure and read-only. Inputs are never mutated, so calling
resolve() twice on the same snapshot yields identical results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .. import const
from ..const import Availability
from ..utils.dt_utils import as_utc, dt_same_local_day
from .period_engine import PeriodCalculator

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from ..type_defs import AvailableTaskData, PeriodData, TaskData, TaskId


@dataclass
class TaskAvailability:
    """Classification of a single task.

    Attributes:
        task_id: The classified task
        availability: Bucket the task falls into
        next_available_at: Reopening instant (COMPLETED_TODAY only)
    """

    task_id: str
    availability: Availability
    next_available_at: datetime | None = None


@dataclass
class AvailabilityResult:
    """Partition of a user's recurring tasks.

    Dormant tasks appear in neither list; their ids are kept in
    `dormant_ids` for diagnostics. `total_count` counts every input task.
    """

    available: list[TaskData] = field(default_factory=list)
    completed_today: list[AvailableTaskData] = field(default_factory=list)
    total_count: int = 0
    dormant_ids: list[TaskId] = field(default_factory=list)


class AvailabilityEngine:
    """Classify recurring tasks against their active periods."""

    @staticmethod
    def next_available_at(
        task: TaskData,
        period: PeriodData,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> datetime:
        """Return the instant a completed period's task reopens.

        A stamped end_date is the inclusive close of the window, so the task
        reopens one WINDOW_CLOSE_OFFSET later. Without an end_date the next
        boundary after `now` is used.
        """
        now = as_utc(now)
        end_date = period.get(const.DATA_PERIOD_END_DATE)
        if end_date is not None:
            return end_date + const.WINDOW_CLOSE_OFFSET

        _unit, frequency = PeriodCalculator.resolve_recurrence(
            task[const.DATA_TASK_RECURRENCE]
        )
        return PeriodCalculator.next_period_start(
            period[const.DATA_PERIOD_UNIT], frequency, now, tz
        )

    @classmethod
    def classify(
        cls,
        task: TaskData,
        period: PeriodData | None,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> TaskAvailability:
        """Classify one task.

        Rules, in order:
            0. Anchor start_date in the future → DORMANT (not started yet)
            1. No active period → AVAILABLE (first-ever evaluation)
            2. Active period not completed → AVAILABLE
            3. Completed, period started today → COMPLETED_TODAY
            4. Completed, not today, now >= end_date (or no end_date)
               → AVAILABLE (window elapsed)
            5. Completed, not today, now < end_date → DORMANT
        """
        now = as_utc(now)
        task_id = task[const.DATA_ID]

        start_date = task.get(const.DATA_TASK_START_DATE)
        if start_date is not None and start_date > now:
            return TaskAvailability(task_id, Availability.DORMANT)

        if period is None:
            return TaskAvailability(task_id, Availability.AVAILABLE)

        if not period.get(const.DATA_PERIOD_IS_COMPLETED, False):
            return TaskAvailability(task_id, Availability.AVAILABLE)

        if dt_same_local_day(period[const.DATA_PERIOD_START_DATE], now, tz):
            return TaskAvailability(
                task_id,
                Availability.COMPLETED_TODAY,
                cls.next_available_at(task, period, now, tz),
            )

        end_date = period.get(const.DATA_PERIOD_END_DATE)
        if end_date is None or now >= end_date:
            return TaskAvailability(task_id, Availability.AVAILABLE)

        # Completed mid-window on an earlier day: hidden until the window
        # rolls over. Kept as-is pending a product decision.
        return TaskAvailability(task_id, Availability.DORMANT)

    @classmethod
    def resolve(
        cls,
        tasks: Iterable[TaskData],
        active_periods: Mapping[TaskId, PeriodData | None],
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> AvailabilityResult:
        """Partition `tasks` into available / completed-today / dormant.

        Args:
            tasks: The user's recurring tasks
            active_periods: Active period per task id; missing ids mean no
                active period
            now: Reference instant (naive input is read as UTC)
            tz: Optional timezone override for calendar-day comparisons

        Returns:
            AvailabilityResult. Every task is counted in exactly one bucket.
        """
        now = as_utc(now)
        result = AvailabilityResult()

        for task in tasks:
            result.total_count += 1
            task_id = task[const.DATA_ID]
            decision = cls.classify(task, active_periods.get(task_id), now, tz)

            if decision.availability == Availability.AVAILABLE:
                result.available.append(task)
            elif decision.availability == Availability.COMPLETED_TODAY:
                completed: AvailableTaskData = {
                    **task,
                    const.DATA_TASK_NEXT_AVAILABLE_AT: decision.next_available_at,
                }  # type: ignore[typeddict-item]
                result.completed_today.append(completed)
            else:
                result.dormant_ids.append(task_id)

            const.LOGGER.debug(
                "Task %s classified as %s", task_id, decision.availability
            )

        return result
