"""Tests for interval parsing, ordering and the overlap rule."""

from datetime import date

import pytest

from venue_scheduler.errors import FormatError, OrderError
from venue_scheduler.intervals import overlaps, parse_minutes, validate_interval


def test_valid_interval_is_normalized():
    interval = validate_interval("2024-06-01", "09:00", "10:30")
    assert interval.date == date(2024, 6, 1)
    assert interval.start == 540
    assert interval.end == 630
    assert interval.start_time == "09:00"
    assert interval.end_time == "10:30"


@pytest.mark.parametrize("bad_date", ["2024-6-1", "01-06-2024", "2024/06/01", "2024-02-30", "", "2024-06-01 "])
def test_bad_date_is_format_error(bad_date):
    with pytest.raises(FormatError) as exc:
        validate_interval(bad_date, "09:00", "10:00")
    assert exc.value.field == "date"


@pytest.mark.parametrize("bad_time", ["9:00", "24:00", "12:60", "0900", "09:00:00", "9am", ""])
def test_bad_start_time_is_format_error(bad_time):
    with pytest.raises(FormatError) as exc:
        validate_interval("2024-06-01", bad_time, "23:00")
    assert exc.value.field == "startTime"


def test_bad_end_time_names_end_field():
    with pytest.raises(FormatError) as exc:
        validate_interval("2024-06-01", "09:00", "25:00")
    assert exc.value.field == "endTime"


@pytest.mark.parametrize("start,end", [("10:00", "10:00"), ("11:00", "10:00"), ("23:59", "00:00")])
def test_start_not_before_end_is_order_error(start, end):
    with pytest.raises(OrderError):
        validate_interval("2024-06-01", start, end)


def test_parse_minutes_bounds():
    assert parse_minutes("00:00", "startTime") == 0
    assert parse_minutes("23:59", "endTime") == 23 * 60 + 59


def test_touching_intervals_do_not_overlap():
    assert not overlaps(540, 600, 600, 660)
    assert not overlaps(600, 660, 540, 600)


def test_partial_overlap_is_symmetric():
    assert overlaps(540, 600, 570, 630)
    assert overlaps(570, 630, 540, 600)


def test_engulfing_overlap_both_ways():
    assert overlaps(540, 660, 570, 630)
    assert overlaps(570, 630, 540, 660)


def test_identical_intervals_overlap():
    assert overlaps(540, 600, 540, 600)
