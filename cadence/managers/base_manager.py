"""Base manager class for Cadence managers."""

from __future__ import annotations

from abc import ABC
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import build_config, thresholds_from_config
from ..utils.dt_utils import get_default_timezone, get_timezone

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import timedelta
    from zoneinfo import ZoneInfo

    from ..const import RecurrenceUnit
    from ..store import EntryStore, PeriodStore, TaskStore
    from ..type_defs import TrackerConfig


class BaseManager(ABC):
    """Base class for Cadence managers with scoped event support.

    Provides:
    - Store references (tasks, periods, entries)
    - Resolved configuration (timezone, finalize thresholds)
    - Instance-scoped event emitting (emit) and listening (listen)

    Engines stay pure; managers are the only place records are read from and
    written back to the stores.
    """

    def __init__(
        self,
        tasks: TaskStore,
        periods: PeriodStore,
        entries: EntryStore,
        config: TrackerConfig | None = None,
    ) -> None:
        """Initialize manager.

        Args:
            tasks: Task collaborator
            periods: Period collaborator
            entries: Entry collaborator
            config: Optional raw configuration, validated through
                data_builders.build_config()
        """
        self.tasks = tasks
        self.periods = periods
        self.entries = entries
        self.config: TrackerConfig = build_config(config)
        self._listeners: dict[str, list[Callable[[dict[str, Any]], Any]]] = (
            defaultdict(list)
        )

    @property
    def timezone(self) -> ZoneInfo:
        """Timezone used for calendar-day arithmetic."""
        name = self.config.get(const.CONF_TIMEZONE)
        return (get_timezone(name) if name else None) or get_default_timezone()

    @property
    def finalize_thresholds(self) -> dict[RecurrenceUnit, timedelta]:
        """Per-unit finalize thresholds with configured overrides applied."""
        return thresholds_from_config(self.config)

    def emit(self, suffix: str, **payload: Any) -> None:
        """Emit an instance-scoped event to registered listeners.

        Args:
            suffix: Signal suffix constant (e.g., const.SIGNAL_SUFFIX_TASK_COMPLETED)
            **payload: Event data dict passed to listeners

        Example:
            self.emit(
                const.SIGNAL_SUFFIX_TASK_COMPLETED,
                task_id=task_id,
                next_available_at=plan.next_available_at,
            )
        """
        const.LOGGER.debug(
            "Emitting event '%s' from %s with payload keys: %s",
            suffix,
            self.__class__.__name__,
            list(payload.keys()),
        )
        for callback in list(self._listeners.get(suffix, ())):
            callback(payload)

    def listen(
        self, suffix: str, callback: Callable[[dict[str, Any]], Any]
    ) -> Callable[[], None]:
        """Subscribe to an instance-scoped event.

        Args:
            suffix: Signal suffix constant to listen for
            callback: Function called with the payload dict when the event fires

        Returns:
            Function that removes the subscription.
        """
        self._listeners[suffix].append(callback)
        const.LOGGER.debug(
            "Manager %s listening to event '%s'",
            self.__class__.__name__,
            suffix,
        )

        def _unsubscribe() -> None:
            if callback in self._listeners[suffix]:
                self._listeners[suffix].remove(callback)

        return _unsubscribe
