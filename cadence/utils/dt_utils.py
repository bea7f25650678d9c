# File: utils/dt_utils.py
"""Date and time utilities for Cadence.

Pure Python date/time functions. Nothing here reads the wall clock: callers
always pass the instant they are reasoning about.

Functions:
    - set_default_timezone / get_default_timezone: Module timezone config
    - get_timezone: Resolve an IANA timezone name
    - as_utc / as_local: Timezone conversion (naive input is treated as UTC)
    - start_of_local_day: Local midnight for a datetime
    - dt_same_local_day: Calendar-day equality in the local timezone
    - dt_parse_date: Parse date strings
    - dt_parse: Normalize str/date/datetime inputs to aware datetimes
"""

from __future__ import annotations

from datetime import UTC, date, datetime
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# Return type constants
HELPER_RETURN_DATETIME = "datetime"
HELPER_RETURN_DATETIME_UTC = "datetime_utc"


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this once during setup to configure the user's timezone. Managers
    pass their configured timezone explicitly instead.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


def get_timezone(name: str) -> ZoneInfo | None:
    """Resolve an IANA timezone name.

    Args:
        name: Timezone name such as "America/Sao_Paulo"

    Returns:
        ZoneInfo for the name, or None if the name is unknown.
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        _LOGGER.warning("Unknown timezone '%s'", name)
        return None


# ==============================================================================
# Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC (naive input is assumed to already be UTC)."""
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Args:
        dt_obj: Datetime object (naive values are assumed to be UTC)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Get the start of day (00:00:00) for a datetime in local timezone.

    Args:
        dt_obj: Datetime object (can be in any timezone)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime at 00:00:00 in local timezone (timezone-aware)
    """
    local_dt = as_local(dt_obj, tz)
    return local_dt.replace(hour=0, minute=0, second=0, microsecond=0)


def dt_same_local_day(
    first: datetime, second: datetime, tz: ZoneInfo | None = None
) -> bool:
    """Return True when both datetimes fall on the same local calendar day.

    Example:
        2024-01-01T00:05-03:00 and 2024-01-01T23:50-03:00 → True
    """
    return as_local(first, tz).date() == as_local(second, tz).date()


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts "2025-04-07" style ISO dates. Returns None for empty or
    malformed input.
    """
    if not date_str:
        return None
    try:
        return date.fromisoformat(date_str.strip())
    except ValueError:
        _LOGGER.debug("Could not parse date string '%s'", date_str)
        return None


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: ZoneInfo | None = None,
    return_type: str = HELPER_RETURN_DATETIME,
) -> datetime | None:
    """Normalize string, date or datetime input to an aware datetime.

    Naive input gets `default_tzinfo` (or DEFAULT_TIME_ZONE) attached; it is
    not shifted.

    Args:
        dt_input: String, date or datetime to normalize, or None
        default_tzinfo: Timezone to attach when the input is naive
        return_type: HELPER_RETURN_DATETIME keeps the parsed offset,
            HELPER_RETURN_DATETIME_UTC converts to UTC.

    Returns:
        Aware datetime, or None if the input could not be parsed.

    Example:
        >>> dt_parse("2025-04-15")
        datetime.datetime(2025, 4, 15, 0, 0, tzinfo=zoneinfo.ZoneInfo(key='UTC'))
    """
    if not dt_input:
        return None

    tz_info = default_tzinfo or DEFAULT_TIME_ZONE
    result: datetime | None = None

    if isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())
    elif isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input.strip())
        except ValueError:
            parsed_date = dt_parse_date(dt_input)
            if parsed_date is None:
                return None
            result = datetime.combine(parsed_date, datetime.min.time())
    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)

    if return_type == HELPER_RETURN_DATETIME_UTC:
        return as_utc(result)
    return result
