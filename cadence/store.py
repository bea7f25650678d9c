# File: store.py
"""Storage contracts consumed by the Cadence managers.

Engines never touch storage. TaskManager talks to three collaborators:

- TaskStore: recurring tasks per owner
- PeriodStore: period rows per task, at most one active
- EntryStore: habit entries per task

InMemoryStore implements all three on plain dicts. It returns copies, so
records handed out can be transformed by engines without touching stored
state until they are written back. It also enforces the one-active-period
invariant the way a uniqueness constraint on (task_id, is_active) would.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import copy
from typing import TYPE_CHECKING, Any

from . import const
from .data_builders import build_entry, build_period
from .engines.period_engine import PeriodLifecycleEngine
from .exceptions import ActivePeriodConflictError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from .type_defs import EntryData, OwnerId, PeriodData, PeriodId, TaskData, TaskId

# Bucket keys of the in-memory structure
_TASKS = "tasks"
_PERIODS = "periods"
_ENTRIES = "entries"


# =============================================================================
# Contracts
# =============================================================================


class TaskStore(ABC):
    """Access to recurring tasks."""

    @abstractmethod
    def list_by_owner(self, owner_id: OwnerId) -> list[TaskData]:
        """Return all tasks owned by `owner_id`."""

    @abstractmethod
    def get(self, task_id: TaskId) -> TaskData | None:
        """Return a task, or None when it does not exist."""

    @abstractmethod
    def mark_complete(self, task_id: TaskId, completed_at: datetime) -> TaskData:
        """Stamp last_completed_date on a task and return it.

        Raises:
            NotFoundError: The task does not exist.
        """

    @abstractmethod
    def delete(self, task_id: TaskId) -> None:
        """Delete a task together with its periods."""


class PeriodStore(ABC):
    """Access to period rows."""

    @abstractmethod
    def find_active_by_task_id(self, task_id: TaskId) -> PeriodData | None:
        """Return the task's active period, if any."""

    @abstractmethod
    def list_by_task_id(self, task_id: TaskId) -> list[PeriodData]:
        """Return every period of a task, active or closed."""

    @abstractmethod
    def create(self, data: PeriodData) -> PeriodData:
        """Persist a period descriptor and return it with its id.

        Raises:
            ActivePeriodConflictError: `data` is active and the task already
                has an active period.
        """

    @abstractmethod
    def update(self, period_id: PeriodId, changes: Mapping[str, Any]) -> PeriodData:
        """Apply field changes to a period and return it."""

    @abstractmethod
    def finalize(self, period_id: PeriodId, end_date: datetime) -> PeriodData:
        """Close a period at `end_date` and return it."""


class EntryStore(ABC):
    """Access to habit entries."""

    @abstractmethod
    def find_by_task_id(self, task_id: TaskId) -> list[EntryData]:
        """Return every entry logged for a task."""

    @abstractmethod
    def create(self, data: EntryData) -> EntryData:
        """Persist an entry and return it with its id."""

    @abstractmethod
    def delete_by_task_id(self, task_id: TaskId) -> int:
        """Delete a task's entries and return how many were removed."""


# =============================================================================
# In-memory implementation
# =============================================================================


class InMemoryTaskStore(TaskStore):
    """Dict-backed TaskStore sharing its buckets with the sibling stores."""

    def __init__(self, data: dict[str, dict[str, Any]]) -> None:
        """Initialize on a shared data structure (see InMemoryStore)."""
        self._data = data

    def add(self, task: TaskData) -> TaskData:
        """Insert or replace a fully built task."""
        self._data[_TASKS][task[const.DATA_ID]] = copy.deepcopy(task)
        return copy.deepcopy(task)

    def list_by_owner(self, owner_id: OwnerId) -> list[TaskData]:
        return [
            copy.deepcopy(task)
            for task in self._data[_TASKS].values()
            if task[const.DATA_TASK_OWNER_ID] == owner_id
        ]

    def get(self, task_id: TaskId) -> TaskData | None:
        task = self._data[_TASKS].get(task_id)
        return copy.deepcopy(task) if task is not None else None

    def mark_complete(self, task_id: TaskId, completed_at: datetime) -> TaskData:
        task = self._data[_TASKS].get(task_id)
        if task is None:
            raise NotFoundError(const.ENTITY_TASK, task_id)
        task[const.DATA_TASK_LAST_COMPLETED_DATE] = completed_at
        task[const.DATA_UPDATED_AT] = completed_at
        return copy.deepcopy(task)

    def delete(self, task_id: TaskId) -> None:
        if self._data[_TASKS].pop(task_id, None) is None:
            raise NotFoundError(const.ENTITY_TASK, task_id)
        periods = self._data[_PERIODS]
        for period_id in [
            pid
            for pid, period in periods.items()
            if period[const.DATA_PERIOD_TASK_ID] == task_id
        ]:
            del periods[period_id]


class InMemoryPeriodStore(PeriodStore):
    """Dict-backed PeriodStore enforcing one active period per task."""

    def __init__(self, data: dict[str, dict[str, Any]]) -> None:
        """Initialize on a shared data structure (see InMemoryStore)."""
        self._data = data

    def _get_raw(self, period_id: PeriodId) -> PeriodData:
        period = self._data[_PERIODS].get(period_id)
        if period is None:
            raise NotFoundError(const.ENTITY_PERIOD, period_id)
        return period

    def _active_raw(self, task_id: TaskId) -> PeriodData | None:
        for period in self._data[_PERIODS].values():
            if period[const.DATA_PERIOD_TASK_ID] == task_id and period.get(
                const.DATA_PERIOD_IS_ACTIVE
            ):
                return period
        return None

    def find_active_by_task_id(self, task_id: TaskId) -> PeriodData | None:
        period = self._active_raw(task_id)
        return copy.deepcopy(period) if period is not None else None

    def list_by_task_id(self, task_id: TaskId) -> list[PeriodData]:
        return [
            copy.deepcopy(period)
            for period in self._data[_PERIODS].values()
            if period[const.DATA_PERIOD_TASK_ID] == task_id
        ]

    def create(self, data: PeriodData) -> PeriodData:
        now = data.get(const.DATA_CREATED_AT) or data[const.DATA_PERIOD_START_DATE]
        period = build_period(data, now)
        task_id = period[const.DATA_PERIOD_TASK_ID]
        if period[const.DATA_PERIOD_IS_ACTIVE] and self._active_raw(task_id):
            raise ActivePeriodConflictError(task_id)
        self._data[_PERIODS][period[const.DATA_ID]] = period
        return copy.deepcopy(period)

    def update(self, period_id: PeriodId, changes: Mapping[str, Any]) -> PeriodData:
        period = self._get_raw(period_id)
        if changes.get(const.DATA_PERIOD_IS_ACTIVE) and not period.get(
            const.DATA_PERIOD_IS_ACTIVE
        ):
            # Closed periods are never reopened
            raise ActivePeriodConflictError(period[const.DATA_PERIOD_TASK_ID])
        for key, value in changes.items():
            if key in (const.DATA_ID, const.DATA_PERIOD_TASK_ID, const.DATA_PERIOD_UNIT):
                continue
            period[key] = value  # type: ignore[literal-required]
        return copy.deepcopy(period)

    def finalize(self, period_id: PeriodId, end_date: datetime) -> PeriodData:
        period = self._get_raw(period_id)
        PeriodLifecycleEngine.finalize_period(period, end_date)
        return copy.deepcopy(period)


class InMemoryEntryStore(EntryStore):
    """Dict-backed EntryStore."""

    def __init__(self, data: dict[str, dict[str, Any]]) -> None:
        """Initialize on a shared data structure (see InMemoryStore)."""
        self._data = data

    def find_by_task_id(self, task_id: TaskId) -> list[EntryData]:
        return [
            copy.deepcopy(entry)
            for entry in self._data[_ENTRIES].values()
            if entry[const.DATA_ENTRY_TASK_ID] == task_id
        ]

    def create(self, data: EntryData) -> EntryData:
        now = data.get(const.DATA_CREATED_AT) or data[const.DATA_ENTRY_TIMESTAMP]
        entry = build_entry(data, now)
        self._data[_ENTRIES][entry[const.DATA_ID]] = entry
        return copy.deepcopy(entry)

    def delete_by_task_id(self, task_id: TaskId) -> int:
        entries = self._data[_ENTRIES]
        doomed = [
            entry_id
            for entry_id, entry in entries.items()
            if entry[const.DATA_ENTRY_TASK_ID] == task_id
        ]
        for entry_id in doomed:
            del entries[entry_id]
        return len(doomed)


class InMemoryStore:
    """Bundle of the three in-memory stores over one data structure."""

    def __init__(self) -> None:
        """Initialize empty buckets and the per-record stores."""
        self._data: dict[str, dict[str, Any]] = self.get_default_structure()
        self.tasks = InMemoryTaskStore(self._data)
        self.periods = InMemoryPeriodStore(self._data)
        self.entries = InMemoryEntryStore(self._data)

    @staticmethod
    def get_default_structure() -> dict[str, dict[str, Any]]:
        """Return the canonical empty data structure."""
        return {_TASKS: {}, _PERIODS: {}, _ENTRIES: {}}
