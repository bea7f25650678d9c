"""Test helpers for Cadence tests.

    from tests.helpers import SetupResult, setup_from_yaml, make_utc_dt

See individual modules for full documentation:
- setup.py: Declarative store/manager setup from dicts or YAML scenarios
- builders.py: Record factories for engine-level tests
"""

from tests.helpers.builders import make_entry, make_period, make_task, make_utc_dt
from tests.helpers.setup import (
    SCENARIO_DIR,
    SetupResult,
    load_scenario,
    parse_instant,
    setup_from_yaml,
    setup_scenario,
)

__all__ = [
    "SCENARIO_DIR",
    "SetupResult",
    "load_scenario",
    "make_entry",
    "make_period",
    "make_task",
    "make_utc_dt",
    "parse_instant",
    "setup_from_yaml",
    "setup_scenario",
]
