"""Record building and validation for tasks, periods, entries and config.

This module is the SINGLE SOURCE OF TRUTH for:
- Record field defaults
- Raw input validation (voluptuous schemas)
- Complete record structure building (ids, timestamps, normalized datetimes)

### Build Functions
Each record type has a `build_<record>()` function that:
- Takes raw data (DATA_* keys, ISO strings or datetimes)
- Generates an id (UUID) when none is supplied
- Sets created_at/updated_at from the caller's `now`
- Applies field defaults
- Returns a complete record ready for a store

Errors:
- Unknown recurrence units raise InvalidRecurrenceError (never defaulted)
- Any other schema failure raises EntityValidationError with the field path

See Also:
- type_defs.py: TypedDict definitions for the returned records
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import TYPE_CHECKING, Any, cast
import uuid

import voluptuous as vol

from . import const
from .const import RecurrenceUnit, TaskKind
from .exceptions import EntityValidationError, InvalidRecurrenceError
from .utils.dt_utils import HELPER_RETURN_DATETIME_UTC, dt_parse, get_timezone

if TYPE_CHECKING:
    from datetime import datetime

    from .type_defs import EntryData, PeriodData, RecurrenceSpec, TaskData, TrackerConfig


# ==============================================================================
# FIELD VALIDATORS
# ==============================================================================


def parse_recurrence_unit(value: Any) -> RecurrenceUnit:
    """Map a unit value or legacy label onto RecurrenceUnit.

    Accepts enum members, their values and the labels in
    const.RECURRENCE_LABELS ("daily", "Semanalmente", ...), case-insensitive.

    Raises:
        InvalidRecurrenceError: For anything else.
    """
    if isinstance(value, RecurrenceUnit):
        return value
    if isinstance(value, str):
        unit = const.RECURRENCE_LABELS.get(value.strip().lower())
        if unit is not None:
            return unit
    raise InvalidRecurrenceError(value)


def _datetime_value(value: Any) -> datetime:
    """Voluptuous validator: ISO string/date/datetime → aware UTC datetime."""
    parsed = dt_parse(value, return_type=HELPER_RETURN_DATETIME_UTC)
    if parsed is None:
        raise vol.Invalid(f"invalid datetime: {value!r}")
    return parsed


def _timezone_name(value: Any) -> str:
    """Voluptuous validator: known IANA timezone name."""
    if not isinstance(value, str) or get_timezone(value) is None:
        raise vol.Invalid(f"unknown timezone: {value!r}")
    return value


_POSITIVE_INT = vol.All(vol.Coerce(int), vol.Range(min=1))
_NON_NEGATIVE_INT = vol.All(vol.Coerce(int), vol.Range(min=0))
_OPTIONAL_DATETIME = vol.Any(None, _datetime_value)


# ==============================================================================
# SCHEMAS
# ==============================================================================

RECURRENCE_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_RECURRENCE_UNIT): parse_recurrence_unit,
        vol.Optional(
            const.DATA_RECURRENCE_FREQUENCY, default=const.DEFAULT_FREQUENCY
        ): _POSITIVE_INT,
    },
    extra=vol.REMOVE_EXTRA,
)

TASK_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_ID): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_TASK_OWNER_ID): vol.All(str, vol.Length(min=1)),
        vol.Optional(const.DATA_TASK_TITLE, default=""): str,
        vol.Optional(const.DATA_TASK_KIND, default=TaskKind.DAILY): vol.Coerce(
            TaskKind
        ),
        vol.Required(const.DATA_TASK_RECURRENCE): RECURRENCE_SCHEMA,
        vol.Required(const.DATA_TASK_START_DATE): _datetime_value,
        vol.Optional(const.DATA_TASK_LAST_COMPLETED_DATE, default=None): (
            _OPTIONAL_DATETIME
        ),
        vol.Optional(const.DATA_TASK_TARGET, default=None): vol.Any(
            None, _POSITIVE_INT
        ),
        vol.Optional(const.DATA_CREATED_AT): _datetime_value,
        vol.Optional(const.DATA_UPDATED_AT): _datetime_value,
    },
    extra=vol.REMOVE_EXTRA,
)

PERIOD_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_ID): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_PERIOD_TASK_ID): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_PERIOD_UNIT): parse_recurrence_unit,
        vol.Required(const.DATA_PERIOD_START_DATE): _datetime_value,
        vol.Optional(const.DATA_PERIOD_END_DATE, default=None): _OPTIONAL_DATETIME,
        vol.Optional(const.DATA_PERIOD_IS_COMPLETED, default=False): bool,
        vol.Optional(const.DATA_PERIOD_IS_ACTIVE, default=True): bool,
        vol.Optional(const.DATA_PERIOD_COUNT, default=0): _NON_NEGATIVE_INT,
        vol.Optional(const.DATA_PERIOD_TARGET, default=None): vol.Any(
            None, _POSITIVE_INT
        ),
        vol.Optional(const.DATA_CREATED_AT): _datetime_value,
        vol.Optional(const.DATA_UPDATED_AT): _datetime_value,
    },
    extra=vol.REMOVE_EXTRA,
)

ENTRY_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_ID): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_ENTRY_PERIOD_ID): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_ENTRY_TASK_ID): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_ENTRY_TIMESTAMP): _datetime_value,
        vol.Optional(const.DATA_ENTRY_NOTE, default=None): vol.Any(None, str),
        vol.Optional(const.DATA_CREATED_AT): _datetime_value,
    },
    extra=vol.REMOVE_EXTRA,
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.CONF_TIMEZONE, default=const.DEFAULT_TIME_ZONE_NAME
        ): _timezone_name,
        vol.Optional(const.CONF_FINALIZE_THRESHOLDS, default=dict): {
            vol.In([unit.value for unit in RecurrenceUnit]): _POSITIVE_INT,
        },
    }
)


# ==============================================================================
# HELPERS
# ==============================================================================


def _validate(schema: vol.Schema, data: Any) -> dict[str, Any]:
    """Run a schema and translate voluptuous errors to EntityValidationError."""
    try:
        return schema(data)
    except vol.Invalid as err:
        field = ".".join(str(part) for part in err.path) or None
        raise EntityValidationError(field, err.msg) from err


def _new_id() -> str:
    return str(uuid.uuid4())


# ==============================================================================
# RECURRENCE
# ==============================================================================


def parse_recurrence(raw: Mapping[str, Any] | str) -> RecurrenceSpec:
    """Normalize a recurrence spec.

    A bare label means "every 1 unit".

    Examples:
        parse_recurrence("weekly") → {"unit": WEEK, "frequency": 1}
        parse_recurrence({"unit": "Diariamente", "frequency": 3})
            → {"unit": DAY, "frequency": 3}
    """
    if isinstance(raw, str):
        raw = {const.DATA_RECURRENCE_UNIT: raw}
    return cast("RecurrenceSpec", _validate(RECURRENCE_SCHEMA, dict(raw)))


# ==============================================================================
# TASKS
# ==============================================================================


def build_task(
    user_input: Mapping[str, Any],
    now: datetime,
    existing: TaskData | None = None,
) -> TaskData:
    """Build task data for create or update operations.

    Args:
        user_input: Data with DATA_* keys (may have missing fields on update)
        now: Timestamp for created_at/updated_at
        existing: None for create, existing TaskData for update

    Returns:
        Complete TaskData ready for storage

    Raises:
        EntityValidationError: A field failed validation
        InvalidRecurrenceError: The recurrence unit is unknown

    Examples:
        task = build_task(
            {"owner_id": "u1", "recurrence": "daily", "start_date": "2024-01-01"},
            now,
        )
    """
    merged: dict[str, Any] = dict(existing or {})
    merged.update(user_input)
    recurrence = merged.get(const.DATA_TASK_RECURRENCE)
    if isinstance(recurrence, str):
        merged[const.DATA_TASK_RECURRENCE] = {const.DATA_RECURRENCE_UNIT: recurrence}

    data = _validate(TASK_SCHEMA, merged)
    data.setdefault(const.DATA_ID, _new_id())
    data.setdefault(const.DATA_CREATED_AT, now)
    data[const.DATA_UPDATED_AT] = now
    return cast("TaskData", data)


# ==============================================================================
# PERIODS
# ==============================================================================


def build_period(raw: Mapping[str, Any], now: datetime) -> PeriodData:
    """Build a complete period record (assigning an id when missing).

    Raises:
        EntityValidationError: A field failed validation
        InvalidRecurrenceError: The period unit is unknown
    """
    data = _validate(PERIOD_SCHEMA, dict(raw))
    data.setdefault(const.DATA_ID, _new_id())
    data.setdefault(const.DATA_CREATED_AT, now)
    data.setdefault(const.DATA_UPDATED_AT, now)
    return cast("PeriodData", data)


# ==============================================================================
# ENTRIES
# ==============================================================================


def build_entry(raw: Mapping[str, Any], now: datetime) -> EntryData:
    """Build a complete entry record (assigning an id when missing)."""
    data = _validate(ENTRY_SCHEMA, dict(raw))
    data.setdefault(const.DATA_ID, _new_id())
    data.setdefault(const.DATA_CREATED_AT, now)
    return cast("EntryData", data)


# ==============================================================================
# CONFIGURATION
# ==============================================================================


def build_config(raw: Mapping[str, Any] | None = None) -> TrackerConfig:
    """Validate tracker configuration, filling defaults."""
    return cast("TrackerConfig", _validate(CONFIG_SCHEMA, dict(raw or {})))


def thresholds_from_config(config: TrackerConfig) -> dict[RecurrenceUnit, timedelta]:
    """Merge configured finalize thresholds (in days) over the defaults."""
    thresholds = dict(const.FINALIZE_THRESHOLDS)
    for unit, days in config.get(const.CONF_FINALIZE_THRESHOLDS, {}).items():
        thresholds[RecurrenceUnit(unit)] = timedelta(days=days)
    return thresholds
