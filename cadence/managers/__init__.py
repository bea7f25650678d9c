"""Manager modules for Cadence.

Managers orchestrate workflows over the store collaborators and delegate
every decision to the pure engines.
"""

from .base_manager import BaseManager
from .task_manager import (
    CompletionResult,
    HabitEntryResult,
    RolloverResult,
    TaskManager,
)

__all__ = [
    "BaseManager",
    "CompletionResult",
    "HabitEntryResult",
    "RolloverResult",
    "TaskManager",
]
