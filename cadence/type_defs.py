"""Type definitions for Cadence data structures.

Stored records (tasks, periods, entries) are plain dicts described by
TypedDicts so they can be handed to any persistence layer unchanged. Engine
results that never leave the process are dataclasses declared next to the
engine that produces them.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Records are normalized at runtime by
data_builders.py; engines read them with .get() where a field is optional.

IMPORTANT: This file must only import from const.py and typing so that every
other module can depend on it without cycles.
"""

from datetime import datetime
from typing import NotRequired, TypedDict

from .const import RecurrenceUnit, TaskKind

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

TaskId = str  # UUID string
PeriodId = str  # UUID string
EntryId = str  # UUID string
OwnerId = str


# =============================================================================
# Recurrence
# =============================================================================


class RecurrenceSpec(TypedDict):
    """Every `frequency` `unit`s (e.g. every 3 days)."""

    unit: RecurrenceUnit
    frequency: int


# =============================================================================
# Stored Records
# =============================================================================


class TaskData(TypedDict):
    """A recurring task (simple daily or habit)."""

    id: TaskId
    owner_id: OwnerId
    title: str
    kind: TaskKind
    recurrence: RecurrenceSpec
    start_date: datetime  # Anchor date
    last_completed_date: datetime | None
    target: NotRequired[int | None]  # Habits only
    created_at: datetime
    updated_at: datetime


class PeriodData(TypedDict):
    """One time window of a recurring task.

    `unit` is copied from the task at creation and never changes afterwards.
    `id` is absent on descriptors that have not been persisted yet.
    """

    id: NotRequired[PeriodId]
    task_id: TaskId
    unit: RecurrenceUnit
    start_date: datetime
    end_date: datetime | None
    is_completed: bool
    is_active: bool
    count: int
    target: int | None
    created_at: datetime
    updated_at: datetime


class EntryData(TypedDict):
    """A single logged habit occurrence inside a period."""

    id: NotRequired[EntryId]
    period_id: PeriodId
    task_id: TaskId
    timestamp: datetime
    note: str | None
    created_at: datetime


class AvailableTaskData(TaskData):
    """Task copy returned in the completed-today bucket."""

    next_available_at: datetime


# =============================================================================
# Configuration
# =============================================================================


class TrackerConfig(TypedDict, total=False):
    """Validated engine configuration (see data_builders.CONFIG_SCHEMA)."""

    timezone: str
    finalize_thresholds: dict[str, int]  # unit -> days
