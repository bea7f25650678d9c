# File: __init__.py
"""Cadence: period, availability and streak engine for recurring tasks.

Key Features:
- Window boundaries for daily/weekly/monthly/yearly recurrences.
- Period lifecycle (complete, finalize, roll over) over plain dict records.
- Available / completed-today partitioning of a user's recurring tasks.
- Current and longest streaks over period history.
"""

from __future__ import annotations

from .const import Availability, RecurrenceUnit, TaskKind
from .engines import (
    AvailabilityEngine,
    AvailabilityResult,
    PeriodCalculator,
    PeriodLifecycleEngine,
    StreakEngine,
    StreakInfo,
)
from .exceptions import (
    ActivePeriodConflictError,
    CadenceError,
    EntityValidationError,
    InvalidRecurrenceError,
    NotFoundError,
    PeriodAlreadyCompletedError,
)
from .managers import CompletionResult, HabitEntryResult, RolloverResult, TaskManager
from .store import InMemoryStore

__version__ = "0.1.0"

__all__ = [
    "ActivePeriodConflictError",
    "Availability",
    "AvailabilityEngine",
    "AvailabilityResult",
    "CadenceError",
    "CompletionResult",
    "EntityValidationError",
    "HabitEntryResult",
    "InMemoryStore",
    "InvalidRecurrenceError",
    "NotFoundError",
    "PeriodAlreadyCompletedError",
    "PeriodCalculator",
    "PeriodLifecycleEngine",
    "RecurrenceUnit",
    "RolloverResult",
    "StreakEngine",
    "StreakInfo",
    "TaskKind",
    "TaskManager",
]
