# File: const.py
"""Constants for the Cadence period and streak engine.

This file centralizes data keys, recurrence units, lifecycle thresholds and
logger setup so that engines, managers and builders agree on a single set of
names.
"""

from datetime import timedelta
from enum import StrEnum
import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# Default timezone name used when no configuration is supplied
DEFAULT_TIME_ZONE_NAME = "UTC"


# ------------------------------------------------------------------------------------------------
# Recurrence
# ------------------------------------------------------------------------------------------------


class RecurrenceUnit(StrEnum):
    """Closed set of units a recurring task can repeat on."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class TaskKind(StrEnum):
    """Concrete recurring task kinds sharing the period machinery."""

    DAILY = "daily"
    HABIT = "habit"


class Availability(StrEnum):
    """Bucket a recurring task falls into for a given instant."""

    AVAILABLE = "available"
    COMPLETED_TODAY = "completed_today"
    DORMANT = "dormant"


# Legacy labels accepted by data_builders.parse_recurrence()
RECURRENCE_LABELS: dict[str, RecurrenceUnit] = {
    "day": RecurrenceUnit.DAY,
    "days": RecurrenceUnit.DAY,
    "daily": RecurrenceUnit.DAY,
    "diariamente": RecurrenceUnit.DAY,
    "week": RecurrenceUnit.WEEK,
    "weeks": RecurrenceUnit.WEEK,
    "weekly": RecurrenceUnit.WEEK,
    "semanalmente": RecurrenceUnit.WEEK,
    "month": RecurrenceUnit.MONTH,
    "months": RecurrenceUnit.MONTH,
    "monthly": RecurrenceUnit.MONTH,
    "mensalmente": RecurrenceUnit.MONTH,
    "year": RecurrenceUnit.YEAR,
    "years": RecurrenceUnit.YEAR,
    "yearly": RecurrenceUnit.YEAR,
    "anualmente": RecurrenceUnit.YEAR,
}

DEFAULT_FREQUENCY = 1
MIN_FREQUENCY = 1

DAYS_PER_WEEK = 7

# Nominal window lengths used by PeriodLifecycleEngine.should_finalize().
# MONTH is a flat 30-day approximation, unrelated to the day-1 snapping done
# by PeriodCalculator.next_period_start().
FINALIZE_THRESHOLDS: dict[RecurrenceUnit, timedelta] = {
    RecurrenceUnit.DAY: timedelta(days=1),
    RecurrenceUnit.WEEK: timedelta(days=7),
    RecurrenceUnit.MONTH: timedelta(days=30),
    RecurrenceUnit.YEAR: timedelta(days=365),
}

# A window closes one second before the next window opens (23:59:59)
WINDOW_CLOSE_OFFSET = timedelta(seconds=1)

# Safety limit for roll-forward loops
MAX_DATE_CALCULATION_ITERATIONS = 1000

# Upper bound of progress percentages
PROGRESS_MAX_PERCENT = 100.0


# ------------------------------------------------------------------------------------------------
# Data Keys
# ------------------------------------------------------------------------------------------------

# Common
DATA_ID = "id"
DATA_CREATED_AT = "created_at"
DATA_UPDATED_AT = "updated_at"

# Recurrence spec
DATA_RECURRENCE_UNIT = "unit"
DATA_RECURRENCE_FREQUENCY = "frequency"

# Tasks
DATA_TASK_OWNER_ID = "owner_id"
DATA_TASK_TITLE = "title"
DATA_TASK_KIND = "kind"
DATA_TASK_RECURRENCE = "recurrence"
DATA_TASK_START_DATE = "start_date"
DATA_TASK_LAST_COMPLETED_DATE = "last_completed_date"
DATA_TASK_TARGET = "target"
DATA_TASK_NEXT_AVAILABLE_AT = "next_available_at"

# Periods
DATA_PERIOD_TASK_ID = "task_id"
DATA_PERIOD_UNIT = "unit"
DATA_PERIOD_START_DATE = "start_date"
DATA_PERIOD_END_DATE = "end_date"
DATA_PERIOD_IS_COMPLETED = "is_completed"
DATA_PERIOD_IS_ACTIVE = "is_active"
DATA_PERIOD_COUNT = "count"
DATA_PERIOD_TARGET = "target"

# Entries
DATA_ENTRY_PERIOD_ID = "period_id"
DATA_ENTRY_TASK_ID = "task_id"
DATA_ENTRY_TIMESTAMP = "timestamp"
DATA_ENTRY_NOTE = "note"

# Configuration
CONF_TIMEZONE = "timezone"
CONF_FINALIZE_THRESHOLDS = "finalize_thresholds"

# Entity labels used in error messages
ENTITY_TASK = "task"
ENTITY_PERIOD = "period"


# ------------------------------------------------------------------------------------------------
# Manager Events
# ------------------------------------------------------------------------------------------------
# Suffixes emitted by managers through BaseManager.emit()
SIGNAL_SUFFIX_TASK_COMPLETED = "task_completed"
SIGNAL_SUFFIX_HABIT_ENTRY_REGISTERED = "habit_entry_registered"
SIGNAL_SUFFIX_PERIOD_ROLLED_OVER = "period_rolled_over"
SIGNAL_SUFFIX_TASK_DELETED = "task_deleted"
