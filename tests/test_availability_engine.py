"""Unit tests for AvailabilityEngine.

Tests the available / completed-today / dormant classification rules and the
partition returned by resolve(), including the daily, weekly and every-3-days
dashboard scenarios.
"""

import copy
from datetime import datetime
from zoneinfo import ZoneInfo

from cadence import const
from cadence.const import Availability, RecurrenceUnit
from cadence.engines.availability_engine import AvailabilityEngine
from tests.helpers import make_period, make_task, make_utc_dt


def completed_daily_period(task_id: str = "task-1", period_id: str = "period-1"):
    """Daily period started and completed on 2024-01-01."""
    return make_period(
        make_utc_dt(2024, 1, 1),
        end_date=make_utc_dt(2024, 1, 1, 23, 59, 59),
        is_completed=True,
        period_id=period_id,
        task_id=task_id,
    )


# =============================================================================
# classify()
# =============================================================================


class TestClassify:
    """Tests for AvailabilityEngine.classify() rules."""

    def test_no_active_period_is_available(self) -> None:
        """First-ever evaluation: no period yet."""
        decision = AvailabilityEngine.classify(make_task(), None, make_utc_dt(2024, 1, 1, 9))
        assert decision.availability == Availability.AVAILABLE
        assert decision.next_available_at is None

    def test_open_period_is_available(self) -> None:
        """Active, not completed: can be done now."""
        period = make_period(make_utc_dt(2024, 1, 1))
        decision = AvailabilityEngine.classify(make_task(), period, make_utc_dt(2024, 1, 1, 9))
        assert decision.availability == Availability.AVAILABLE

    def test_completed_today(self) -> None:
        """Completed in a period started today: reopens at the next midnight."""
        decision = AvailabilityEngine.classify(
            make_task(), completed_daily_period(), make_utc_dt(2024, 1, 1, 20)
        )
        assert decision.availability == Availability.COMPLETED_TODAY
        assert decision.next_available_at == make_utc_dt(2024, 1, 2)

    def test_completed_yesterday_window_elapsed(self) -> None:
        """Next day, now >= end_date: available again."""
        decision = AvailabilityEngine.classify(
            make_task(), completed_daily_period(), make_utc_dt(2024, 1, 2, 0, 0, 1)
        )
        assert decision.availability == Availability.AVAILABLE

    def test_completed_today_without_end_date(self) -> None:
        """Without an end_date the next boundary after now is used."""
        period = make_period(make_utc_dt(2024, 1, 1, 10), is_completed=True)
        decision = AvailabilityEngine.classify(
            make_task(), period, make_utc_dt(2024, 1, 1, 20)
        )
        assert decision.availability == Availability.COMPLETED_TODAY
        assert decision.next_available_at == make_utc_dt(2024, 1, 2)

    def test_completed_today_every_three_days(self) -> None:
        """Stamped window close drives next_available_at for frequency > 1."""
        period = make_period(
            make_utc_dt(2024, 1, 1, 10),
            end_date=make_utc_dt(2024, 1, 3, 23, 59, 59),
            is_completed=True,
        )
        decision = AvailabilityEngine.classify(
            make_task(frequency=3), period, make_utc_dt(2024, 1, 1, 18)
        )
        assert decision.next_available_at == make_utc_dt(2024, 1, 4)

    def test_weekly_inside_window_is_dormant(self) -> None:
        """Weekly period completed Jan 1, viewed Jan 2: hidden until Jan 8."""
        task = make_task(unit=RecurrenceUnit.WEEK, start_date=make_utc_dt(2024, 1, 1))
        period = make_period(
            make_utc_dt(2024, 1, 1),
            unit=RecurrenceUnit.WEEK,
            end_date=make_utc_dt(2024, 1, 7, 23, 59, 59),
            is_completed=True,
        )

        dormant = AvailabilityEngine.classify(task, period, make_utc_dt(2024, 1, 2, 10))
        reopened = AvailabilityEngine.classify(task, period, make_utc_dt(2024, 1, 8))

        assert dormant.availability == Availability.DORMANT
        assert reopened.availability == Availability.AVAILABLE

    def test_completed_earlier_without_end_date_is_available(self) -> None:
        """A completed period with no end_date counts as elapsed."""
        period = make_period(make_utc_dt(2024, 1, 1, 10), is_completed=True)
        decision = AvailabilityEngine.classify(
            make_task(), period, make_utc_dt(2024, 1, 3, 10)
        )
        assert decision.availability == Availability.AVAILABLE

    def test_future_anchor_is_dormant(self) -> None:
        """Tasks scheduled to start later are not shown yet."""
        task = make_task(start_date=make_utc_dt(2024, 2, 1))
        decision = AvailabilityEngine.classify(task, None, make_utc_dt(2024, 1, 15))
        assert decision.availability == Availability.DORMANT

    def test_today_is_local_calendar_day(self) -> None:
        """Same-day comparison uses the supplied timezone."""
        sao_paulo = ZoneInfo("America/Sao_Paulo")
        # Started 20:00 and viewed 22:00 local on Jan 1 (different UTC days)
        period = make_period(
            make_utc_dt(2024, 1, 1, 23),
            end_date=make_utc_dt(2024, 1, 2, 2, 59, 59),
            is_completed=True,
        )
        now = make_utc_dt(2024, 1, 2, 1)

        local = AvailabilityEngine.classify(make_task(), period, now, sao_paulo)
        utc = AvailabilityEngine.classify(make_task(), period, now)

        assert local.availability == Availability.COMPLETED_TODAY
        assert local.next_available_at == make_utc_dt(2024, 1, 2, 3)
        assert utc.availability == Availability.DORMANT

    def test_naive_now_is_read_as_utc(self) -> None:
        """Naive instants compare against aware period dates."""
        completed = AvailabilityEngine.classify(
            make_task(), completed_daily_period(), datetime(2024, 1, 1, 20)
        )
        reopened = AvailabilityEngine.classify(
            make_task(), completed_daily_period(), datetime(2024, 1, 2, 8)
        )

        assert completed.availability == Availability.COMPLETED_TODAY
        assert completed.next_available_at == make_utc_dt(2024, 1, 2)
        assert reopened.availability == Availability.AVAILABLE


# =============================================================================
# resolve()
# =============================================================================


class TestResolve:
    """Tests for AvailabilityEngine.resolve()."""

    def test_every_three_days_timeline(self) -> None:
        """Available day 1, hidden days 2-3, available again day 4."""
        task = make_task(frequency=3, start_date=make_utc_dt(2024, 1, 1))
        period = make_period(
            make_utc_dt(2024, 1, 1, 10),
            end_date=make_utc_dt(2024, 1, 3, 23, 59, 59),
            is_completed=True,
        )
        periods = {task[const.DATA_ID]: period}

        before = AvailabilityEngine.resolve([task], {}, make_utc_dt(2024, 1, 1, 9))
        day1 = AvailabilityEngine.resolve([task], periods, make_utc_dt(2024, 1, 1, 18))
        day2 = AvailabilityEngine.resolve([task], periods, make_utc_dt(2024, 1, 2, 9))
        day3 = AvailabilityEngine.resolve([task], periods, make_utc_dt(2024, 1, 3, 9))
        day4 = AvailabilityEngine.resolve([task], periods, make_utc_dt(2024, 1, 4, 9))

        assert before.available == [task]
        assert len(day1.completed_today) == 1
        for hidden in (day2, day3):
            assert hidden.available == []
            assert hidden.completed_today == []
            assert hidden.dormant_ids == [task[const.DATA_ID]]
        assert day4.available == [task]

    def test_each_task_lands_in_exactly_one_bucket(self) -> None:
        """Partition covers every task once and counts them all."""
        fresh = make_task(task_id="fresh")
        open_task = make_task(task_id="open")
        done_today = make_task(task_id="done")
        weekly = make_task(
            unit=RecurrenceUnit.WEEK, start_date=make_utc_dt(2024, 1, 1), task_id="weekly"
        )
        periods = {
            "open": make_period(make_utc_dt(2024, 1, 2), task_id="open"),
            "done": make_period(
                make_utc_dt(2024, 1, 2),
                end_date=make_utc_dt(2024, 1, 2, 23, 59, 59),
                is_completed=True,
                task_id="done",
            ),
            "weekly": make_period(
                make_utc_dt(2024, 1, 1),
                unit=RecurrenceUnit.WEEK,
                end_date=make_utc_dt(2024, 1, 7, 23, 59, 59),
                is_completed=True,
                task_id="weekly",
            ),
        }

        result = AvailabilityEngine.resolve(
            [fresh, open_task, done_today, weekly], periods, make_utc_dt(2024, 1, 2, 12)
        )

        assert result.total_count == 4
        assert [t[const.DATA_ID] for t in result.available] == ["fresh", "open"]
        assert [t[const.DATA_ID] for t in result.completed_today] == ["done"]
        assert result.dormant_ids == ["weekly"]
        assert (
            len(result.available) + len(result.completed_today) + len(result.dormant_ids)
            == result.total_count
        )

    def test_completed_today_is_annotated_copy(self) -> None:
        """next_available_at is attached to a copy, not the input task."""
        task = make_task()
        result = AvailabilityEngine.resolve(
            [task], {"task-1": completed_daily_period()}, make_utc_dt(2024, 1, 1, 20)
        )

        completed = result.completed_today[0]
        assert completed[const.DATA_TASK_NEXT_AVAILABLE_AT] == make_utc_dt(2024, 1, 2)
        assert const.DATA_TASK_NEXT_AVAILABLE_AT not in task

    def test_inputs_untouched_and_idempotent(self) -> None:
        """Resolving twice yields identical output and never mutates inputs."""
        tasks = [make_task(task_id="a"), make_task(task_id="b")]
        periods = {"a": completed_daily_period(task_id="a")}
        tasks_before = copy.deepcopy(tasks)
        periods_before = copy.deepcopy(periods)
        now = make_utc_dt(2024, 1, 1, 20)

        first = AvailabilityEngine.resolve(tasks, periods, now)
        second = AvailabilityEngine.resolve(tasks, periods, now)

        assert first == second
        assert tasks == tasks_before
        assert periods == periods_before

    def test_empty_input(self) -> None:
        """No tasks: empty result."""
        result = AvailabilityEngine.resolve([], {}, make_utc_dt(2024, 1, 1))
        assert result.total_count == 0
        assert result.available == []
        assert result.completed_today == []

    def test_naive_now(self) -> None:
        """resolve() accepts naive instants like classify()."""
        task = make_task(start_date=make_utc_dt(2024, 2, 1))
        result = AvailabilityEngine.resolve(
            [task, make_task(task_id="b")], {}, datetime(2024, 1, 15, 9)
        )
        assert result.total_count == 2
        assert result.dormant_ids == ["task-1"]
        assert [t[const.DATA_ID] for t in result.available] == ["b"]
