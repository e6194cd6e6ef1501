"""Tests for date parsing, day/slot iteration and calendar weeks."""

from datetime import date, datetime

import pytest

from berichtsheft import InvalidDateRangeError
from berichtsheft.berichtsheft import (
    calendar_week,
    format_day_heading,
    hour_slots,
    iter_days,
    parse_date,
    parse_date_range,
    week_label,
)


def test_parse_date():
    assert parse_date(" 2024-05-06 ") == date(2024, 5, 6)


@pytest.mark.parametrize("text", ["06.05.2024", "2024-02-30", "", "morgen"])
def test_parse_date_invalid(text):
    with pytest.raises(InvalidDateRangeError):
        parse_date(text)


def test_parse_date_range_same_day():
    assert parse_date_range("2024-05-06", "2024-05-06") == (
        date(2024, 5, 6),
        date(2024, 5, 6),
    )


def test_parse_date_range_reversed():
    with pytest.raises(InvalidDateRangeError, match="Start date"):
        parse_date_range("2024-05-10", "2024-05-06")


def test_parse_date_range_accepts_dates():
    assert parse_date_range(date(2024, 5, 6), "2024-05-07")[1] == date(2024, 5, 7)


def test_iter_days_crosses_month_end():
    days = list(iter_days(date(2024, 2, 28), date(2024, 3, 1)))
    assert days == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]


def test_hour_slots():
    slots = list(hour_slots(date(2024, 5, 6)))
    assert len(slots) == 12
    assert slots[0] == (datetime(2024, 5, 6, 7), datetime(2024, 5, 6, 8))
    assert slots[-1] == (datetime(2024, 5, 6, 18), datetime(2024, 5, 6, 19))


# --- Calendar week tests ---


@pytest.mark.parametrize(
    "d, expected",
    [
        (date(2024, 5, 6), (2024, 19)),
        (date(2024, 12, 29), (2024, 52)),
        (date(2024, 12, 30), (2025, 1)),
        (date(2025, 1, 1), (2025, 1)),
        (date(2020, 12, 31), (2020, 53)),
        (date(2021, 1, 3), (2020, 53)),
        (date(2021, 1, 4), (2021, 1)),
    ],
)
def test_calendar_week_boundaries(d, expected):
    assert calendar_week(d) == expected


def test_week_label_uses_week_year():
    """Dec 30, 2024 belongs to the first week of 2025."""
    assert week_label(date(2024, 12, 30)) == "KW1/2025"
    assert week_label(date(2024, 5, 6)) == "KW19/2024"


def test_format_day_heading():
    assert format_day_heading(date(2024, 5, 6)) == "Montag, 6. Mai 2024:"
    assert format_day_heading(date(2024, 3, 31)) == "Sonntag, 31. März 2024:"
