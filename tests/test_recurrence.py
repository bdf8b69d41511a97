from datetime import date

import pytest

from flowshare.models import Task
from flowshare.schedule.dates import parse_date_key
from flowshare.schedule.recurrence import (
    expand,
    expand_range,
    normalize_interval,
    occurs_on,
    parse_byweekday,
)


def _task(**fields):
    base = {"id": 1, "title": "Task", "recurrence": "none", "interval": 1}
    base.update(fields)
    return base


def test_expand_is_idempotent():
    task = _task(recurrence="weekly", byweekday="[1,3,5]", bucket_date="2024-01-01")
    first = expand(task, "month", date(2024, 2, 10))
    second = expand(task, "month", date(2024, 2, 10))
    assert first == second
    assert first == sorted(first)


@pytest.mark.parametrize("view", ["day", "week", "month"])
def test_non_recurring_task_never_expands(view):
    task = _task(bucket_type="day", bucket_date="2024-06-03")
    assert expand(task, view, date(2024, 6, 3)) == []


def test_daily_interval_steps_are_exact():
    task = _task(recurrence="daily", interval=3, bucket_date="2024-01-01")
    keys = expand(task, "month", date(2024, 1, 15))
    assert keys[0] == "2024-01-01"
    assert keys[-1] == "2024-01-31"
    days = [parse_date_key(k) for k in keys]
    assert all((b - a).days == 3 for a, b in zip(days, days[1:]))


def test_daily_fast_forwards_old_anchor():
    anchor = date(2000, 1, 1)
    task = _task(recurrence="daily", interval=7, bucket_date="2000-01-01")
    keys = expand(task, "month", date(2024, 6, 1))
    assert 4 <= len(keys) <= 5
    for key in keys:
        day = parse_date_key(key)
        assert date(2024, 6, 1) <= day < date(2024, 7, 1)
        assert (day - anchor).days % 7 == 0


def test_daily_anchor_before_window():
    task = _task(recurrence="daily", interval=2, bucket_date="2024-05-30")
    assert expand_range(task, date(2024, 6, 1), date(2024, 6, 5)) == ["2024-06-01", "2024-06-03"]


def test_weekly_day_set_in_week_view():
    task = _task(recurrence="weekly", byweekday="[1,3]", bucket_date="2024-01-01")
    assert expand(task, "week", date(2024, 1, 3)) == ["2024-01-01", "2024-01-03"]


def test_weekly_month_scenario():
    task = _task(recurrence="weekly", byweekday="[1,5]", bucket_date="2024-06-03")
    assert expand(task, "month", date(2024, 6, 15)) == [
        "2024-06-03",
        "2024-06-07",
        "2024-06-10",
        "2024-06-14",
        "2024-06-17",
        "2024-06-21",
        "2024-06-24",
        "2024-06-28",
    ]


def test_weekly_accepts_list_byweekday():
    task = _task(recurrence="weekly", byweekday=[5, 1], bucket_date="2024-06-03")
    assert expand(task, "week", date(2024, 6, 3)) == ["2024-06-03", "2024-06-07"]


def test_weekly_empty_day_set_uses_anchor_weekday():
    task = _task(recurrence="weekly", byweekday="[]", bucket_date="2024-01-03")
    assert expand_range(task, date(2024, 1, 1), date(2024, 1, 15)) == ["2024-01-03", "2024-01-10"]


def test_weekly_sunday_maps_to_end_of_week():
    task = _task(recurrence="weekly", byweekday="[0]", bucket_date="2024-01-01")
    assert expand(task, "week", date(2024, 1, 3)) == ["2024-01-07"]


def test_weekly_interval_steps_from_window_week():
    task = _task(recurrence="weekly", interval=2, byweekday="[1]", bucket_date="2024-01-01")
    assert expand(task, "month", date(2024, 1, 1)) == ["2024-01-01", "2024-01-15", "2024-01-29"]
    assert expand(task, "week", date(2024, 1, 8)) == ["2024-01-08"]

    # June 2024 starts on a Saturday; weeks are walked from Monday 2024-05-27.
    later = _task(recurrence="weekly", interval=2, byweekday="[1]", bucket_date="2024-05-06")
    assert expand(later, "month", date(2024, 6, 1)) == ["2024-06-10", "2024-06-24"]


def test_weekly_keeps_days_of_the_anchor_week():
    task = _task(recurrence="weekly", byweekday="[1,3]", bucket_date="2024-01-03")
    assert expand(task, "week", date(2024, 1, 3)) == ["2024-01-01", "2024-01-03"]


def test_expand_accepts_date_key_anchor():
    task = _task(id=1, recurrence="weekly", interval=1, byweekday=[1, 5], bucket_date="2024-06-03")
    assert expand(task, "month", "2024-06-15") == [
        "2024-06-03",
        "2024-06-07",
        "2024-06-10",
        "2024-06-14",
        "2024-06-17",
        "2024-06-21",
        "2024-06-24",
        "2024-06-28",
    ]
    assert expand(task, "month", "2024-06-15") == expand(task, "month", date(2024, 6, 15))


def test_expand_rejects_unreadable_anchor():
    task = _task(recurrence="daily", bucket_date="2024-06-03")
    with pytest.raises(ValueError):
        expand(task, "month", "15.06.2024")


def test_until_is_inclusive_for_daily():
    task = _task(recurrence="daily", bucket_date="2024-01-01", until="2024-01-05")
    keys = expand_range(task, date(2024, 1, 1), date(2024, 1, 11))
    assert "2024-01-05" in keys
    assert "2024-01-06" not in keys
    assert keys == ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05"]


def test_until_applies_to_weekly():
    task = _task(
        recurrence="weekly",
        byweekday="[1,5]",
        bucket_date="2024-06-03",
        until="2024-06-14",
    )
    assert expand(task, "month", date(2024, 6, 1)) == [
        "2024-06-03",
        "2024-06-07",
        "2024-06-10",
        "2024-06-14",
    ]


def test_monthly_day_31_clamps_to_month_end():
    task = _task(recurrence="monthly", bucket_date="2024-01-31")
    assert expand(task, "month", date(2024, 2, 10)) == ["2024-02-29"]
    assert expand(task, "month", date(2024, 3, 10)) == ["2024-03-31"]
    assert expand(task, "month", date(2024, 4, 10)) == ["2024-04-30"]


def test_monthly_keeps_anchor_day_after_short_month():
    task = _task(recurrence="monthly", bucket_date="2024-01-31")
    assert expand_range(task, date(2024, 1, 1), date(2024, 6, 1)) == [
        "2024-01-31",
        "2024-02-29",
        "2024-03-31",
        "2024-04-30",
        "2024-05-31",
    ]


def test_monthly_interval():
    task = _task(recurrence="monthly", interval=2, bucket_date="2024-01-15")
    assert expand_range(task, date(2024, 1, 1), date(2024, 7, 1)) == [
        "2024-01-15",
        "2024-03-15",
        "2024-05-15",
    ]
    assert expand(task, "month", date(2024, 4, 1)) == []


def test_monthly_anchor_after_window():
    task = _task(recurrence="monthly", bucket_date="2024-08-10")
    assert expand(task, "month", date(2024, 6, 1)) == []


def test_malformed_byweekday_yields_nothing():
    for raw in ("not json", '{"mon": 1}', "3"):
        task = _task(recurrence="weekly", byweekday=raw, bucket_date="2024-01-01")
        assert expand(task, "month", date(2024, 1, 1)) == []


def test_negative_interval_is_treated_as_one():
    task = _task(recurrence="daily", interval=-3, bucket_date="2024-01-01")
    assert expand_range(task, date(2024, 1, 1), date(2024, 1, 4)) == [
        "2024-01-01",
        "2024-01-02",
        "2024-01-03",
    ]


def test_invalid_dates_exclude_the_task():
    bad_anchor = _task(recurrence="daily", bucket_date="2024-13-01")
    bad_until = _task(recurrence="daily", bucket_date="2024-01-01", until="someday")
    assert expand(bad_anchor, "month", date(2024, 1, 1)) == []
    assert expand(bad_until, "month", date(2024, 1, 1)) == []


def test_missing_anchor_falls_back_to_window_start():
    daily = _task(recurrence="daily")
    weekly = _task(recurrence="weekly")
    assert expand_range(daily, date(2024, 6, 1), date(2024, 6, 4)) == [
        "2024-06-01",
        "2024-06-02",
        "2024-06-03",
    ]
    assert expand(weekly, "week", date(2024, 6, 5)) == ["2024-06-03"]


def test_unknown_recurrence_and_empty_window():
    assert expand(_task(recurrence="yearly", bucket_date="2024-01-01"), "month", date(2024, 1, 1)) == []
    daily = _task(recurrence="daily", bucket_date="2024-01-01")
    assert expand_range(daily, date(2024, 1, 5), date(2024, 1, 5)) == []


def test_expand_reads_orm_rows():
    row = Task(id=3, title="Water plants", recurrence="daily", interval=2, bucket_date="2024-06-01")
    assert expand(row, "week", date(2024, 6, 3)) == ["2024-06-03", "2024-06-05", "2024-06-07", "2024-06-09"]


def test_occurs_on():
    task = _task(recurrence="weekly", byweekday="[1,5]", bucket_date="2024-06-03")
    assert occurs_on(task, date(2024, 6, 7))
    assert not occurs_on(task, date(2024, 6, 8))


def test_parse_byweekday():
    assert parse_byweekday('[5, 1, 1, 9, "x", true]') == [1, 5]
    assert parse_byweekday([0, 6]) == [0, 6]
    assert parse_byweekday("") == []
    assert parse_byweekday(None) == []
    assert parse_byweekday("nope") is None
    assert parse_byweekday("3") is None


@pytest.mark.parametrize(
    "raw, expected",
    [("2", 2), (3, 3), (0, 1), (-5, 1), (True, 1), (None, 1), ("x", 1)],
)
def test_normalize_interval(raw, expected):
    assert normalize_interval(raw) == expected
