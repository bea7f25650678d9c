"""Exceptions raised by the Cadence engines, builders and managers.

The error surface is narrow: engines compute over already-fetched data, so the
only failures are missing records, programming errors in recurrence
configuration, invalid raw input and lifecycle misuse. Store I/O errors are
never caught here.
"""

from __future__ import annotations


class CadenceError(Exception):
    """Base class for all Cadence errors."""


class NotFoundError(CadenceError):
    """Raised when a referenced record does not exist in the supplied data.

    Attributes:
        entity: Kind of record that was looked up (task, period, entry)
        entity_id: Identifier that could not be resolved
    """

    def __init__(self, entity: str, entity_id: str) -> None:
        """Initialize NotFoundError.

        Args:
            entity: Kind of record that was looked up
            entity_id: Identifier that could not be resolved
        """
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class InvalidRecurrenceError(CadenceError):
    """Raised for an unknown recurrence unit or a frequency below 1.

    This is a programming error: callers must never receive a silently
    defaulted schedule.
    """

    def __init__(self, value: object, reason: str = "unknown recurrence unit") -> None:
        """Initialize InvalidRecurrenceError.

        Args:
            value: The offending unit or frequency
            reason: Short description of what was wrong with it
        """
        self.value = value
        self.reason = reason
        super().__init__(f"{reason}: {value!r}")


class PeriodAlreadyCompletedError(CadenceError):
    """Raised when completing a period that is already completed and still open."""

    def __init__(self, task_id: str, period_id: str | None) -> None:
        """Initialize PeriodAlreadyCompletedError.

        Args:
            task_id: Task whose active period was already completed
            period_id: The completed period
        """
        self.task_id = task_id
        self.period_id = period_id
        super().__init__(
            f"task '{task_id}' already completed in period '{period_id}'"
        )


class ActivePeriodConflictError(CadenceError):
    """Raised by a store asked to open a second active period for one task."""

    def __init__(self, task_id: str) -> None:
        """Initialize ActivePeriodConflictError."""
        self.task_id = task_id
        super().__init__(f"task '{task_id}' already has an active period")


class EntityValidationError(CadenceError):
    """Validation error with field-specific information.

    Raised by data_builders when a raw record fails its schema.

    Attributes:
        field: Name of the field that failed validation (or None when the
            failure is not tied to a single field)
        message: Human-readable validation message
    """

    def __init__(self, field: str | None, message: str) -> None:
        """Initialize EntityValidationError.

        Args:
            field: Name of the failing field, if known
            message: Validation message
        """
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}" if field else message)
