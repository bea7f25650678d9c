"""Shared fixtures for Cadence tests."""

from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

import pytest

from cadence import const
from cadence.data_builders import build_task
from cadence.managers import TaskManager
from cadence.store import InMemoryStore
from cadence.type_defs import TaskData
from cadence.utils import dt_utils

OWNER_ID = "user-1"


@pytest.fixture(autouse=True)
def restore_default_timezone() -> Iterator[None]:
    """Reset the module default timezone after every test."""
    original = dt_utils.get_default_timezone()
    yield
    dt_utils.set_default_timezone(original)


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def manager(store: InMemoryStore) -> TaskManager:
    """TaskManager over the in-memory store with default (UTC) config."""
    return TaskManager.from_config(store)


@pytest.fixture
def add_task(store: InMemoryStore) -> Any:
    """Factory fixture: build a task from keyword overrides and store it."""

    def _add_task(**overrides: Any) -> TaskData:
        user_input: dict[str, Any] = {
            const.DATA_TASK_OWNER_ID: OWNER_ID,
            const.DATA_TASK_TITLE: "Drink water",
            const.DATA_TASK_RECURRENCE: "daily",
            const.DATA_TASK_START_DATE: "2024-01-01T08:00:00+00:00",
        }
        user_input.update(overrides)
        created_at = overrides.get(
            const.DATA_CREATED_AT, datetime(2024, 1, 1, tzinfo=UTC)
        )
        return store.tasks.add(build_task(user_input, created_at))

    return _add_task
