"""Engine modules for Cadence.

Contains the pure computation engines:
- period_engine: Window boundaries and the Period lifecycle
- availability_engine: available / completed-today / dormant partitioning
- streak_engine: Streak counting and period progress
"""

from .availability_engine import AvailabilityEngine, AvailabilityResult, TaskAvailability
from .period_engine import (
    CompletionPlan,
    EntryPlan,
    PeriodCalculator,
    PeriodLifecycleEngine,
)
from .streak_engine import StreakEngine, StreakInfo

__all__ = [
    "AvailabilityEngine",
    "AvailabilityResult",
    "CompletionPlan",
    "EntryPlan",
    "PeriodCalculator",
    "PeriodLifecycleEngine",
    "StreakEngine",
    "StreakInfo",
    "TaskAvailability",
]
