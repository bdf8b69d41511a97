from datetime import date, datetime, time, timedelta, timezone

from flowshare.helpers.datetime_utils import parse_date_input, parse_time_input
from flowshare.utils.datetime_utils import ensure_utc, to_rfc3339_utc


def test_parse_date_input_formats():
    assert parse_date_input("2023-12-01") == date(2023, 12, 1)
    assert parse_date_input("01.12.2023") == date(2023, 12, 1)
    assert parse_date_input("05.03", base=date(2030, 1, 1)) == date(2030, 3, 5)
    assert parse_date_input("31.02", base=date(2030, 1, 1)) is None
    assert parse_date_input("soon") is None
    assert parse_date_input("") is None


def test_parse_time_input_formats():
    assert parse_time_input("09:30") == time(9, 30)
    assert parse_time_input("9.05") == time(9, 5)
    assert parse_time_input("930") == time(9, 30)
    assert parse_time_input("9am") == time(9, 0)
    assert parse_time_input("5:30 PM") == time(17, 30)
    assert parse_time_input("12am") == time(0, 0)
    assert parse_time_input("13pm") is None
    assert parse_time_input("2460") is None
    assert parse_time_input(None) is None


def test_rfc3339_serialisation_in_utc():
    aware = datetime(2024, 6, 3, 12, 0, 30, 500, tzinfo=timezone(timedelta(hours=2)))
    assert to_rfc3339_utc(aware) == "2024-06-03T10:00:30Z"
    assert to_rfc3339_utc(datetime(2024, 6, 3, 8, 0)) == "2024-06-03T08:00:00Z"
    assert to_rfc3339_utc(None) is None
    assert ensure_utc(datetime(2024, 6, 3, 8, 0)).tzinfo == timezone.utc
