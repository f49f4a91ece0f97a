from datetime import datetime, timedelta, timezone

import pytest

from gym_admin.domain.retention import CronSchedule, DeletionOk, RetentionPolicy


def test_every_seventh_day_keeps_multiples_of_seven():
    schedule = CronSchedule.parse("0 0 */7 * *")

    assert schedule.minutes == frozenset({0})
    assert schedule.hours == frozenset({0})
    assert schedule.days_of_month == frozenset({7, 14, 21, 28})
    assert schedule.months == frozenset(range(1, 13))
    assert schedule.days_of_week == frozenset(range(7))


def test_next_after_fires_at_midnight_on_anchor_days():
    schedule = CronSchedule.parse("0 0 */7 * *")

    assert schedule.next_after(datetime(2024, 1, 2, 9, 30)) == datetime(2024, 1, 7, 0, 0)
    assert schedule.next_after(datetime(2024, 1, 7, 0, 0)) == datetime(2024, 1, 14, 0, 0)
    assert schedule.next_after(datetime(2024, 1, 6, 23, 59, 59)) == datetime(2024, 1, 7, 0, 0)


def test_month_boundary_produces_long_gap():
    schedule = CronSchedule.parse("0 0 */7 * *")

    after_28th = schedule.next_after(datetime(2024, 1, 28, 0, 0))
    assert after_28th == datetime(2024, 2, 7, 0, 0)
    assert after_28th - datetime(2024, 1, 28) == timedelta(days=10)

    # February 2023 ends on the 28th, which still fires.
    assert schedule.next_after(datetime(2023, 2, 21, 0, 0)) == datetime(2023, 2, 28, 0, 0)
    assert schedule.next_after(datetime(2023, 2, 28, 0, 0)) == datetime(2023, 3, 7, 0, 0)


@pytest.mark.parametrize(
    "expression, field, expected",
    [
        ("*/15 * * * *", "minutes", {0, 15, 30, 45}),
        ("0 */5 * * *", "hours", {0, 5, 10, 15, 20}),
        ("0 0 * */3 *", "months", {3, 6, 9, 12}),
        ("0 0 10-20/4 * *", "days_of_month", {12, 16, 20}),
        ("0 0 5/10 * *", "days_of_month", {5, 15, 25}),
    ],
)
def test_step_values(expression, field, expected):
    assert getattr(CronSchedule.parse(expression), field) == frozenset(expected)


def test_next_after_keeps_timezone():
    moment = datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert CronSchedule.parse("0 0 */7 * *").next_after(moment).tzinfo is timezone.utc


@pytest.mark.parametrize(
    "expression, moment, expected",
    [
        ("*/15 * * * *", datetime(2024, 1, 1, 10, 7), datetime(2024, 1, 1, 10, 15)),
        ("30 2 * * 1-5", datetime(2024, 1, 6, 12, 0), datetime(2024, 1, 8, 2, 30)),
        ("0 12 1 1,7 *", datetime(2024, 2, 1), datetime(2024, 7, 1, 12, 0)),
        ("0 0 * * 7", datetime(2024, 1, 1), datetime(2024, 1, 7, 0, 0)),
        ("0 0 29 2 *", datetime(2023, 3, 1), datetime(2024, 2, 29, 0, 0)),
    ],
)
def test_next_after_supports_common_field_syntax(expression, moment, expected):
    assert CronSchedule.parse(expression).next_after(moment) == expected


@pytest.mark.parametrize(
    "expression",
    ["", "0 0 */7 *", "0 0 */7 * * *", "60 0 * * *", "0 24 * * *", "0 0 0 * *", "0 0 */0 * *", "0 0 5-1 * *", "0 0 1-5/7 * *", "a b c d e"],
)
def test_parse_rejects_invalid_expressions(expression):
    with pytest.raises(ValueError):
        CronSchedule.parse(expression)


def test_impossible_schedule_reports_error():
    schedule = CronSchedule.parse("0 0 31 2 *")

    with pytest.raises(ValueError):
        schedule.next_after(datetime(2024, 1, 1))


def test_policy_defaults_and_cutoff():
    policy = RetentionPolicy()

    assert policy.max_age_days == 7
    assert policy.schedule == "0 0 */7 * *"
    assert policy.cutoff(datetime(2024, 1, 15, 12, 0)) == datetime(2024, 1, 8, 12, 0)
    assert policy.next_run_after(datetime(2024, 1, 15, 12, 0)) == datetime(2024, 1, 21, 0, 0)


def test_policy_is_immutable():
    policy = RetentionPolicy()

    with pytest.raises(AttributeError):
        policy.max_age_days = 30  # type: ignore[misc]


@pytest.mark.parametrize("days", [0, -1])
def test_policy_rejects_non_positive_age(days):
    with pytest.raises(ValueError):
        RetentionPolicy(max_age_days=days)


def test_deletion_ok_rejects_negative_count():
    with pytest.raises(ValueError):
        DeletionOk(deleted_count=-1)
