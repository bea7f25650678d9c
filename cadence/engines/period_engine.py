"""Period Engine - boundary arithmetic and period lifecycle for recurring tasks.

Two stateless engines live here:

- PeriodCalculator: pure calendar arithmetic. Given a recurrence unit, a
  frequency and a reference instant it returns window boundaries.
  `dateutil.relativedelta` does the month/year stepping.
- PeriodLifecycleEngine: decides when a Period must be finalized, completes
  periods and plans the successor window. It transforms the records it is
  handed; persisting them is the caller's job (see TaskManager).

ARCHITECTURE: No store access and no clock reads. Every method receives `now`
explicitly so identical inputs always produce identical outputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from dateutil.relativedelta import relativedelta

from .. import const
from ..const import RecurrenceUnit
from ..exceptions import InvalidRecurrenceError, PeriodAlreadyCompletedError
from ..utils.dt_utils import as_local, as_utc, start_of_local_day

if TYPE_CHECKING:
    from datetime import datetime, timedelta
    from zoneinfo import ZoneInfo

    from ..type_defs import EntryData, PeriodData, RecurrenceSpec, TaskData


# Units whose step has a fixed length and can be fast-forwarded arithmetically
_FIXED_STEP_UNITS: frozenset[RecurrenceUnit] = frozenset(
    {RecurrenceUnit.DAY, RecurrenceUnit.WEEK}
)


# =============================================================================
# RESULT DATA STRUCTURES
# =============================================================================


@dataclass
class CompletionPlan:
    """Outcome of completing a recurring task's active period.

    Attributes:
        completed_period: The active period, now marked completed. Still
            active until its window elapses.
        next_period: Descriptor (no id) for the period that becomes active
            once `completed_period` rolls over.
        next_available_at: When the task becomes available again.
        created_active: True when no active period existed and
            `completed_period` was synthesized (caller must create it).
    """

    completed_period: PeriodData
    next_period: PeriodData
    next_available_at: datetime
    created_active: bool = False


@dataclass
class EntryPlan:
    """Outcome of registering one habit occurrence.

    Attributes:
        period: The active period with its count incremented
        entry: Entry descriptor; `period_id` is empty when the period was
            synthesized and still needs an id from the store
        created_active: True when `period` was synthesized
        reached_target: True when this entry completed the period
    """

    period: PeriodData
    entry: EntryData
    created_active: bool = False
    reached_target: bool = False


# =============================================================================
# PERIOD CALCULATOR
# =============================================================================


class PeriodCalculator:
    """Window boundary arithmetic for recurrence specs.

    All boundaries are local midnights (see dt_utils.as_local). Month
    boundaries always land on day 1 and year boundaries on January 1,
    regardless of the reference date's day of month.
    """

    @staticmethod
    def coerce_unit(unit: RecurrenceUnit | str) -> RecurrenceUnit:
        """Return `unit` as a RecurrenceUnit.

        Raises:
            InvalidRecurrenceError: If `unit` is not one of the known units.
        """
        if isinstance(unit, RecurrenceUnit):
            return unit
        try:
            return RecurrenceUnit(unit)
        except ValueError as err:
            raise InvalidRecurrenceError(unit) from err

    @staticmethod
    def validate_frequency(frequency: int) -> int:
        """Return `frequency` if it is an int >= 1.

        Raises:
            InvalidRecurrenceError: For bools, non-ints and values below 1.
        """
        if (
            isinstance(frequency, bool)
            or not isinstance(frequency, int)
            or frequency < const.MIN_FREQUENCY
        ):
            raise InvalidRecurrenceError(frequency, "frequency must be an int >= 1")
        return frequency

    @classmethod
    def resolve_recurrence(cls, spec: RecurrenceSpec) -> tuple[RecurrenceUnit, int]:
        """Validate a recurrence spec and return `(unit, frequency)`."""
        unit = cls.coerce_unit(spec[const.DATA_RECURRENCE_UNIT])
        frequency = cls.validate_frequency(
            spec.get(const.DATA_RECURRENCE_FREQUENCY, const.DEFAULT_FREQUENCY)
        )
        return unit, frequency

    @classmethod
    def next_period_start(
        cls,
        unit: RecurrenceUnit | str,
        frequency: int,
        from_date: datetime,
        tz: ZoneInfo | None = None,
    ) -> datetime:
        """Calculate the start of the next period after `from_date`.

        Args:
            unit: Recurrence unit
            frequency: Every N units (>= 1)
            from_date: Reference instant (completion time or period start)
            tz: Optional timezone override for calendar arithmetic

        Returns:
            Local midnight strictly after `from_date` (naive input is read
            as UTC).

        Examples:
            DAY, 1, 2024-01-01T15:00 → 2024-01-02T00:00
            WEEK, 1, 2024-01-03T09:00 → 2024-01-10T00:00
            MONTH, 1, 2024-01-31T10:00 → 2024-02-01T00:00
            YEAR, 2, 2024-06-15T10:00 → 2026-01-01T00:00

        Raises:
            InvalidRecurrenceError: Unknown unit or frequency below 1.
        """
        unit = cls.coerce_unit(unit)
        frequency = cls.validate_frequency(frequency)
        local = as_local(from_date, tz)

        if unit == RecurrenceUnit.DAY:
            result = local + relativedelta(days=frequency)
        elif unit == RecurrenceUnit.WEEK:
            result = local + relativedelta(days=frequency * const.DAYS_PER_WEEK)
        elif unit == RecurrenceUnit.MONTH:
            result = local + relativedelta(months=frequency, day=1)
        else:
            result = local + relativedelta(years=frequency, month=1, day=1)

        return start_of_local_day(result, tz)

    @classmethod
    def period_end(
        cls,
        unit: RecurrenceUnit | str,
        frequency: int,
        start_date: datetime,
        tz: ZoneInfo | None = None,
    ) -> datetime:
        """Return the inclusive closing instant of the window starting at `start_date`.

        Example:
            WEEK, 1, 2024-01-08T00:00 → 2024-01-14T23:59:59
        """
        return (
            cls.next_period_start(unit, frequency, start_date, tz)
            - const.WINDOW_CLOSE_OFFSET
        )

    @classmethod
    def boundaries_around(
        cls,
        unit: RecurrenceUnit | str,
        frequency: int,
        anchor: datetime,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> tuple[datetime | None, datetime]:
        """Walk the boundaries derived from `anchor` until one passes `now`.

        Returns:
            `(previous, upcoming)`: the last boundary at or before `now` (None
            if the first boundary after `anchor` is already in the future)
            and the first boundary strictly after `now`.
        """
        unit = cls.coerce_unit(unit)
        now = as_utc(now)
        boundary = cls.next_period_start(unit, frequency, anchor, tz)
        previous: datetime | None = None

        # Fixed-length steps jump straight to the neighbourhood of `now`
        if boundary <= now and unit in _FIXED_STEP_UNITS:
            step_days = frequency * (
                const.DAYS_PER_WEEK if unit == RecurrenceUnit.WEEK else 1
            )
            skip = (as_local(now, tz) - boundary).days // step_days
            if skip > 0:
                boundary = boundary + relativedelta(days=skip * step_days)

        iteration = 0
        while boundary <= now and iteration < const.MAX_DATE_CALCULATION_ITERATIONS:
            iteration += 1
            previous = boundary
            boundary = cls.next_period_start(unit, frequency, boundary, tz)

        if iteration >= const.MAX_DATE_CALCULATION_ITERATIONS:
            const.LOGGER.warning(
                "PeriodCalculator: Max iterations reached walking %s x%s from %s",
                unit,
                frequency,
                anchor,
            )

        return previous, boundary

    @classmethod
    def next_window_after(
        cls,
        unit: RecurrenceUnit | str,
        frequency: int,
        anchor: datetime,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> datetime:
        """Return the first boundary derived from `anchor` that is after `now`."""
        return cls.boundaries_around(unit, frequency, anchor, now, tz)[1]


# =============================================================================
# PERIOD LIFECYCLE ENGINE
# =============================================================================


class PeriodLifecycleEngine:
    """State transitions of a single Period record.

    open (active, not completed)
        → completed (active, completed, end_date = window close)
        → finalized (inactive) → successor period created by the caller

    A finalized period is never reopened.
    """

    @staticmethod
    def build_period(
        task: TaskData,
        start_date: datetime,
        end_date: datetime | None,
        now: datetime,
    ) -> PeriodData:
        """Build an active, open period descriptor for `task` (no id yet)."""
        unit, _frequency = PeriodCalculator.resolve_recurrence(
            task[const.DATA_TASK_RECURRENCE]
        )
        return {
            const.DATA_PERIOD_TASK_ID: task[const.DATA_ID],
            const.DATA_PERIOD_UNIT: unit,
            const.DATA_PERIOD_START_DATE: start_date,
            const.DATA_PERIOD_END_DATE: end_date,
            const.DATA_PERIOD_IS_COMPLETED: False,
            const.DATA_PERIOD_IS_ACTIVE: True,
            const.DATA_PERIOD_COUNT: 0,
            const.DATA_PERIOD_TARGET: task.get(const.DATA_TASK_TARGET),
            const.DATA_CREATED_AT: now,
            const.DATA_UPDATED_AT: now,
        }  # type: ignore[typeddict-item]

    @staticmethod
    def should_finalize(
        period: PeriodData,
        now: datetime,
        thresholds: dict[RecurrenceUnit, timedelta] | None = None,
        frequency: int = const.DEFAULT_FREQUENCY,
    ) -> bool:
        """Check whether the period outlived its nominal window length.

        Uses flat durations (1/7/30/365 days by default per unit, times the
        recurrence frequency), not calendar boundaries: a monthly period
        started on Jan 15 finalizes after Feb 14, an every-3-days period
        after 3 days.

        Args:
            period: Period to check
            now: Reference instant (naive input is read as UTC)
            thresholds: Optional per-unit override of const.FINALIZE_THRESHOLDS
            frequency: Every N units of the owning task's recurrence

        Returns:
            True if the period is active and `now - start_date` exceeds the
            threshold for its unit.
        """
        if not period.get(const.DATA_PERIOD_IS_ACTIVE, False):
            return False

        unit = PeriodCalculator.coerce_unit(period[const.DATA_PERIOD_UNIT])
        frequency = PeriodCalculator.validate_frequency(frequency)
        limits = thresholds or const.FINALIZE_THRESHOLDS
        elapsed = as_utc(now) - period[const.DATA_PERIOD_START_DATE]
        return elapsed > limits[unit] * frequency

    @staticmethod
    def is_window_elapsed(period: PeriodData, now: datetime) -> bool:
        """True when the period has a closing instant and `now` is past it.

        end_date is the inclusive close of the window, so the window is over
        once `now` reaches the next boundary one WINDOW_CLOSE_OFFSET later.
        """
        end_date = period.get(const.DATA_PERIOD_END_DATE)
        return (
            end_date is not None
            and as_utc(now) >= end_date + const.WINDOW_CLOSE_OFFSET
        )

    @staticmethod
    def window_close(
        period: PeriodData, frequency: int, tz: ZoneInfo | None = None
    ) -> datetime:
        """Return the first anchored boundary after the period's start."""
        return PeriodCalculator.next_period_start(
            period[const.DATA_PERIOD_UNIT],
            frequency,
            period[const.DATA_PERIOD_START_DATE],
            tz,
        )

    @classmethod
    def needs_rollover(
        cls,
        period: PeriodData,
        now: datetime,
        thresholds: dict[RecurrenceUnit, timedelta] | None = None,
        frequency: int = const.DEFAULT_FREQUENCY,
        tz: ZoneInfo | None = None,
    ) -> bool:
        """Decide whether an active period must be finalized and replaced.

        Completed periods roll over when their window elapsed. Open periods
        roll over once should_finalize() says they expired and `now` has also
        left their own anchored window, so a rollover never lands mid-window.
        """
        if not period.get(const.DATA_PERIOD_IS_ACTIVE, False):
            return False
        now = as_utc(now)
        if period.get(const.DATA_PERIOD_IS_COMPLETED, False):
            return cls.is_window_elapsed(period, now)
        return cls.should_finalize(
            period, now, thresholds, frequency
        ) and now >= cls.window_close(period, frequency, tz)

    @staticmethod
    def finalize_period(period: PeriodData, end_date: datetime) -> PeriodData:
        """Close a period in place.

        Sets is_active=False, is_completed=True and stamps end_date. The
        record is returned for convenience; persisting it is up to the caller.
        """
        period[const.DATA_PERIOD_IS_ACTIVE] = False
        period[const.DATA_PERIOD_IS_COMPLETED] = True
        period[const.DATA_PERIOD_END_DATE] = end_date
        period[const.DATA_UPDATED_AT] = end_date
        return period

    @classmethod
    def _close_window(
        cls,
        task: TaskData,
        period: PeriodData,
        now: datetime,
        tz: ZoneInfo | None,
    ) -> datetime:
        """Mark `period` completed and return the next window start."""
        _unit, frequency = PeriodCalculator.resolve_recurrence(
            task[const.DATA_TASK_RECURRENCE]
        )
        next_start = PeriodCalculator.next_window_after(
            period[const.DATA_PERIOD_UNIT],
            frequency,
            period[const.DATA_PERIOD_START_DATE],
            now,
            tz,
        )
        period[const.DATA_PERIOD_IS_COMPLETED] = True
        period[const.DATA_PERIOD_END_DATE] = next_start - const.WINDOW_CLOSE_OFFSET
        period[const.DATA_UPDATED_AT] = now
        return next_start

    @classmethod
    def complete_and_create_next(
        cls,
        task: TaskData,
        active_period: PeriodData | None,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> CompletionPlan:
        """Complete the active period and plan the next window.

        The next window is anchored on the active period's start and rolled
        forward past `now`. Without an active period a window starting at
        `now` is synthesized first, so a first-ever completion still yields a
        valid next_available_at.

        Args:
            task: Task being completed
            active_period: Current active period, or None
            now: Completion instant
            tz: Optional timezone override

        Returns:
            CompletionPlan with the completed period and the successor
            descriptor.

        Raises:
            PeriodAlreadyCompletedError: The active period is already
                completed (callers roll over elapsed periods first).
        """
        now = as_utc(now)
        created_active = active_period is None
        if active_period is None:
            active_period = cls.build_period(task, now, None, now)
        elif active_period.get(const.DATA_PERIOD_IS_COMPLETED, False):
            raise PeriodAlreadyCompletedError(
                task[const.DATA_ID], active_period.get(const.DATA_ID)
            )

        next_start = cls._close_window(task, active_period, now, tz)
        next_period = cls.build_period(
            task,
            next_start,
            cls._period_end_for(task, next_start, tz),
            now,
        )

        const.LOGGER.debug(
            "Completed period of task %s; next window starts %s",
            task[const.DATA_ID],
            next_start,
        )
        return CompletionPlan(
            completed_period=active_period,
            next_period=next_period,
            next_available_at=next_start,
            created_active=created_active,
        )

    @classmethod
    def build_successor(
        cls,
        task: TaskData,
        period: PeriodData,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> PeriodData:
        """Plan the active period that replaces `period` after rollover.

        The successor covers the anchored window containing `now`. Windows
        skipped in between get no record. If `now` is still inside the
        period's own window, the successor opens when that window closes.
        """
        now = as_utc(now)
        _unit, frequency = PeriodCalculator.resolve_recurrence(
            task[const.DATA_TASK_RECURRENCE]
        )
        previous, upcoming = PeriodCalculator.boundaries_around(
            period[const.DATA_PERIOD_UNIT],
            frequency,
            period[const.DATA_PERIOD_START_DATE],
            now,
            tz,
        )
        start = previous if previous is not None else upcoming
        return cls.build_period(task, start, cls._period_end_for(task, start, tz), now)

    @classmethod
    def build_initial_period(
        cls,
        task: TaskData,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> PeriodData:
        """Plan a task's first active period from its anchor date.

        The period covers the anchored window containing `now`. A task whose
        anchor is still in the future gets a period starting at `now`.
        """
        now = as_utc(now)
        anchor = task.get(const.DATA_TASK_START_DATE)
        if anchor is None or anchor > now:
            return cls.build_period(task, now, None, now)

        unit, frequency = PeriodCalculator.resolve_recurrence(
            task[const.DATA_TASK_RECURRENCE]
        )
        previous, _upcoming = PeriodCalculator.boundaries_around(
            unit, frequency, anchor, now, tz
        )
        start = previous or anchor
        return cls.build_period(task, start, cls._period_end_for(task, start, tz), now)

    @classmethod
    def register_entry(
        cls,
        task: TaskData,
        active_period: PeriodData | None,
        now: datetime,
        note: str | None = None,
        tz: ZoneInfo | None = None,
    ) -> EntryPlan:
        """Count one habit occurrence inside the active period.

        The period completes once its count reaches the target, or on the
        first entry when it has no target. Entries past the target are still
        counted.
        """
        now = as_utc(now)
        created_active = active_period is None
        if active_period is None:
            active_period = cls.build_period(task, now, None, now)

        active_period[const.DATA_PERIOD_COUNT] = (
            active_period.get(const.DATA_PERIOD_COUNT, 0) + 1
        )
        active_period[const.DATA_UPDATED_AT] = now

        reached_target = False
        if not active_period.get(const.DATA_PERIOD_IS_COMPLETED, False):
            target = active_period.get(const.DATA_PERIOD_TARGET)
            if not target or active_period[const.DATA_PERIOD_COUNT] >= target:
                cls._close_window(task, active_period, now, tz)
                reached_target = True

        entry: EntryData = {
            const.DATA_ENTRY_PERIOD_ID: active_period.get(const.DATA_ID, ""),
            const.DATA_ENTRY_TASK_ID: task[const.DATA_ID],
            const.DATA_ENTRY_TIMESTAMP: now,
            const.DATA_ENTRY_NOTE: note,
            const.DATA_CREATED_AT: now,
        }  # type: ignore[typeddict-item]
        return EntryPlan(
            period=active_period,
            entry=entry,
            created_active=created_active,
            reached_target=reached_target,
        )

    @staticmethod
    def _period_end_for(
        task: TaskData, start_date: datetime, tz: ZoneInfo | None
    ) -> datetime:
        unit, frequency = PeriodCalculator.resolve_recurrence(
            task[const.DATA_TASK_RECURRENCE]
        )
        return PeriodCalculator.period_end(unit, frequency, start_date, tz)
