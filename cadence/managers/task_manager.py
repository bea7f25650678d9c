"""Task Manager - recurring task workflows over the store collaborators.

This manager handles every operation that reads or writes records:
- Listing a user's tasks split into available / completed-today
- Completing a task and stamping its period
- Logging habit entries against the active period
- Rolling elapsed periods over to their successors
- Loading period history for streaks
- Deleting a task together with its entries

ARCHITECTURE:
- TaskManager = STATEFUL orchestration (stores, config, per-task locks)
- PeriodCalculator / PeriodLifecycleEngine / AvailabilityEngine /
  StreakEngine = pure logic (STATELESS)

The manager never reads the wall clock; every operation takes `now`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
from typing import TYPE_CHECKING, Any

from .. import const
from ..const import TaskKind
from ..engines.availability_engine import AvailabilityEngine
from ..engines.period_engine import PeriodCalculator, PeriodLifecycleEngine
from ..engines.streak_engine import StreakEngine
from ..exceptions import EntityValidationError, NotFoundError
from ..utils.dt_utils import as_utc
from ..utils.math_utils import round_value
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from ..const import RecurrenceUnit
    from ..engines.availability_engine import AvailabilityResult
    from ..engines.streak_engine import StreakInfo
    from ..store import InMemoryStore
    from ..type_defs import (
        EntryData,
        OwnerId,
        PeriodData,
        TaskData,
        TaskId,
        TrackerConfig,
    )


__all__ = ["CompletionResult", "HabitEntryResult", "RolloverResult", "TaskManager"]


@dataclass
class CompletionResult:
    """Outcome of TaskManager.complete_task().

    Attributes:
        task: The task with last_completed_date stamped
        next_available_at: When the task can be completed again
        period: The persisted, completed active period
        next_period: Descriptor of the period that opens at next_available_at
    """

    task: TaskData
    next_available_at: datetime
    period: PeriodData
    next_period: PeriodData


@dataclass
class HabitEntryResult:
    """Outcome of TaskManager.register_habit_entry().

    `progress` is StreakEngine.progress() rounded to two decimals.
    """

    entry: EntryData
    period: PeriodData
    progress: float
    reached_target: bool = False


@dataclass
class RolloverResult:
    """Periods touched by one TaskManager.roll_over_periods() sweep."""

    finalized: list[PeriodData] = field(default_factory=list)
    created: list[PeriodData] = field(default_factory=list)


class TaskManager(BaseManager):
    """Manager for recurring task completion, habits and period rollover.

    Completion and entry registration for one task are serialized with a
    per-task lock so that two callers cannot both open an active period.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Initialize the task manager (see BaseManager for arguments)."""
        super().__init__(*args, **kwargs)
        self._task_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_config(
        cls, store: InMemoryStore, config: TrackerConfig | None = None
    ) -> TaskManager:
        """Create a manager over a store bundle exposing tasks/periods/entries."""
        return cls(store.tasks, store.periods, store.entries, config)

    # =========================================================================
    # Read operations
    # =========================================================================

    def get_available_tasks(
        self, owner_id: OwnerId, now: datetime
    ) -> AvailabilityResult:
        """Split an owner's recurring tasks into available and completed today.

        Read-only: elapsed periods are reported as available but not rolled
        over here (see roll_over_periods()).
        """
        now = as_utc(now)
        tasks = self.tasks.list_by_owner(owner_id)
        active_periods = {
            task[const.DATA_ID]: self.periods.find_active_by_task_id(
                task[const.DATA_ID]
            )
            for task in tasks
        }
        result = AvailabilityEngine.resolve(tasks, active_periods, now, self.timezone)
        const.LOGGER.debug(
            "Owner %s: %s available, %s completed today, %s dormant",
            owner_id,
            len(result.available),
            len(result.completed_today),
            len(result.dormant_ids),
        )
        return result

    def next_period_start(
        self, unit: RecurrenceUnit | str, frequency: int, from_date: datetime
    ) -> datetime:
        """Next window boundary after `from_date` in the configured timezone."""
        return PeriodCalculator.next_period_start(
            unit, frequency, as_utc(from_date), self.timezone
        )

    def calculate_streak(
        self,
        task: TaskData,
        periods: Sequence[PeriodData],
        entries: Sequence[EntryData],
        now: datetime,
    ) -> StreakInfo:
        """Streak over already-loaded history."""
        return StreakEngine.calculate_streak(
            task, periods, entries, as_utc(now), self.timezone
        )

    def get_streak(self, task_id: TaskId, now: datetime) -> StreakInfo:
        """Load a task's periods and entries and compute its streak.

        Raises:
            NotFoundError: The task does not exist.
        """
        task = self._get_task(task_id)
        return self.calculate_streak(
            task,
            self.periods.list_by_task_id(task_id),
            self.entries.find_by_task_id(task_id),
            now,
        )

    # =========================================================================
    # Write operations
    # =========================================================================

    def complete_task(self, task_id: TaskId, now: datetime) -> CompletionResult:
        """Complete a recurring task at `now`.

        An elapsed active period is rolled over first, so completing a task
        whose previous window closed completes the fresh window instead.

        Raises:
            NotFoundError: The task does not exist.
            PeriodAlreadyCompletedError: The current window is already
                completed.
        """
        now = as_utc(now)
        with self._get_lock(task_id):
            task = self._get_task(task_id)
            active = self._current_period(task, now)

            plan = PeriodLifecycleEngine.complete_and_create_next(
                task, active, now, self.timezone
            )
            period = self._persist_period(plan.completed_period)
            task = self.tasks.mark_complete(task_id, now)

        const.LOGGER.info(
            "Task %s completed; available again at %s",
            task_id,
            plan.next_available_at,
        )
        self.emit(
            const.SIGNAL_SUFFIX_TASK_COMPLETED,
            task_id=task_id,
            period_id=period[const.DATA_ID],
            next_available_at=plan.next_available_at,
        )
        return CompletionResult(
            task=task,
            next_available_at=plan.next_available_at,
            period=period,
            next_period=plan.next_period,
        )

    def register_habit_entry(
        self, task_id: TaskId, now: datetime, note: str | None = None
    ) -> HabitEntryResult:
        """Log one occurrence of a habit inside its current period.

        Raises:
            NotFoundError: The task does not exist.
            EntityValidationError: The task is not a habit.
        """
        now = as_utc(now)
        with self._get_lock(task_id):
            task = self._get_task(task_id)
            if task.get(const.DATA_TASK_KIND) != TaskKind.HABIT:
                raise EntityValidationError(
                    const.DATA_TASK_KIND, "entries can only be logged for habits"
                )
            active = self._current_period(task, now)

            plan = PeriodLifecycleEngine.register_entry(
                task, active, now, note, self.timezone
            )
            period = self._persist_period(plan.period)

            plan.entry[const.DATA_ENTRY_PERIOD_ID] = period[const.DATA_ID]
            entry = self.entries.create(plan.entry)
            if plan.reached_target:
                self.tasks.mark_complete(task_id, now)

        progress = round_value(StreakEngine.progress(period))
        const.LOGGER.info(
            "Habit %s: entry logged (count=%s, progress=%s%%)",
            task_id,
            period[const.DATA_PERIOD_COUNT],
            progress,
        )
        self.emit(
            const.SIGNAL_SUFFIX_HABIT_ENTRY_REGISTERED,
            task_id=task_id,
            period_id=period[const.DATA_ID],
            entry_id=entry[const.DATA_ID],
            reached_target=plan.reached_target,
        )
        return HabitEntryResult(
            entry=entry,
            period=period,
            progress=progress,
            reached_target=plan.reached_target,
        )

    def roll_over_periods(self, owner_id: OwnerId, now: datetime) -> RolloverResult:
        """Finalize every elapsed active period of an owner and open successors.

        Completed periods roll over once their window is over; open periods
        once they outlive the finalize threshold (scaled by frequency) and
        `now` has left their anchored window.
        """
        now = as_utc(now)
        result = RolloverResult()
        for task in self.tasks.list_by_owner(owner_id):
            task_id = task[const.DATA_ID]
            with self._get_lock(task_id):
                active = self.periods.find_active_by_task_id(task_id)
                if active is None or not self._needs_rollover(task, active, now):
                    continue
                finalized, created = self._roll_over(task, active, now)
            result.finalized.append(finalized)
            result.created.append(created)

        if result.finalized:
            const.LOGGER.info(
                "Rolled over %s period(s) for owner %s",
                len(result.finalized),
                owner_id,
            )
        return result

    def delete_task(self, task_id: TaskId) -> int:
        """Delete a task, its periods and its entries.

        Returns:
            Number of entries removed.

        Raises:
            NotFoundError: The task does not exist.
        """
        with self._get_lock(task_id):
            self._get_task(task_id)
            removed = self.entries.delete_by_task_id(task_id)
            self.tasks.delete(task_id)

        with self._locks_guard:
            self._task_locks.pop(task_id, None)

        const.LOGGER.info("Deleted task %s and %s entries", task_id, removed)
        self.emit(const.SIGNAL_SUFFIX_TASK_DELETED, task_id=task_id)
        return removed

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_task(self, task_id: TaskId) -> TaskData:
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFoundError(const.ENTITY_TASK, task_id)
        return task

    def _get_lock(self, task_id: TaskId) -> threading.Lock:
        """Get or create the lock serializing writes for one task."""
        with self._locks_guard:
            if task_id not in self._task_locks:
                self._task_locks[task_id] = threading.Lock()
            return self._task_locks[task_id]

    def _current_period(self, task: TaskData, now: datetime) -> PeriodData:
        """Return the period a write at `now` applies to.

        An elapsed active period is rolled over first. A task without an
        active period gets an unsaved first period on its anchored window.
        """
        active = self.periods.find_active_by_task_id(task[const.DATA_ID])
        if active is None:
            return PeriodLifecycleEngine.build_initial_period(task, now, self.timezone)
        if self._needs_rollover(task, active, now):
            _finalized, active = self._roll_over(task, active, now)
        return active

    def _needs_rollover(
        self, task: TaskData, period: PeriodData, now: datetime
    ) -> bool:
        _unit, frequency = PeriodCalculator.resolve_recurrence(
            task[const.DATA_TASK_RECURRENCE]
        )
        return PeriodLifecycleEngine.needs_rollover(
            period, now, self.finalize_thresholds, frequency, self.timezone
        )

    def _persist_period(self, period: PeriodData) -> PeriodData:
        """Create an unsaved period or write lifecycle changes of a stored one."""
        if const.DATA_ID not in period:
            return self.periods.create(period)
        return self.periods.update(
            period[const.DATA_ID], self._lifecycle_changes(period)
        )

    def _roll_over(
        self, task: TaskData, period: PeriodData, now: datetime
    ) -> tuple[PeriodData, PeriodData]:
        """Finalize `period` and persist its successor.

        Completed periods keep their stamped window close as end_date; open
        periods are closed at `now`.
        """
        end_date = period.get(const.DATA_PERIOD_END_DATE)
        if not period.get(const.DATA_PERIOD_IS_COMPLETED) or end_date is None:
            end_date = now
        finalized = self.periods.finalize(period[const.DATA_ID], end_date)

        successor = PeriodLifecycleEngine.build_successor(
            task, period, now, self.timezone
        )
        created = self.periods.create(successor)

        const.LOGGER.info(
            "Task %s: period %s finalized, period %s opened at %s",
            task[const.DATA_ID],
            finalized[const.DATA_ID],
            created[const.DATA_ID],
            created[const.DATA_PERIOD_START_DATE],
        )
        self.emit(
            const.SIGNAL_SUFFIX_PERIOD_ROLLED_OVER,
            task_id=task[const.DATA_ID],
            finalized_id=finalized[const.DATA_ID],
            created_id=created[const.DATA_ID],
        )
        return finalized, created

    @staticmethod
    def _lifecycle_changes(period: PeriodData) -> dict[str, Any]:
        """Fields an engine transition may have changed on an active period."""
        return {
            const.DATA_PERIOD_IS_COMPLETED: period[const.DATA_PERIOD_IS_COMPLETED],
            const.DATA_PERIOD_END_DATE: period.get(const.DATA_PERIOD_END_DATE),
            const.DATA_PERIOD_COUNT: period.get(const.DATA_PERIOD_COUNT, 0),
            const.DATA_UPDATED_AT: period[const.DATA_UPDATED_AT],
        }
