"""Date/time parsing and the half-open interval overlap rule."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime

from .errors import FormatError, OrderError

DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
TIME_RE = re.compile(r"(?P<h>[01]\d|2[0-3]):(?P<m>[0-5]\d)", re.ASCII)


@dataclass(frozen=True)
class Interval:
    """A validated booking slot: one calendar date, [start, end) in minutes-of-day."""
    date: date
    start: int
    end: int

    @property
    def start_time(self) -> str:
        return format_minutes(self.start)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end)


def parse_date(value: str, field: str = "date") -> date:
    """Parse a strict YYYY-MM-DD string into a date."""
    if not isinstance(value, str) or not DATE_RE.fullmatch(value):
        raise FormatError(field, "Invalid date format. Please use YYYY-MM-DD.")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        # right shape, impossible day (e.g. 2024-02-30)
        raise FormatError(field, f"Invalid calendar date: {value}.") from None


def parse_minutes(value: str, field: str) -> int:
    """Parse a strict 24-hour HH:MM string into minutes after midnight."""
    m = TIME_RE.fullmatch(value) if isinstance(value, str) else None
    if not m:
        raise FormatError(field, f"Invalid time format for {field}. Please use HH:mm.")
    return int(m.group("h")) * 60 + int(m.group("m"))


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """
    Half-open overlap: [a_start, a_end) and [b_start, b_end) share time.

    Covers partial overlap on either side and full containment either way;
    touching endpoints (a_end == b_start) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def validate_interval(day: str, start_time: str, end_time: str) -> Interval:
    """Check formats and ordering; return the normalized interval."""
    parsed_date = parse_date(day)
    start = parse_minutes(start_time, "startTime")
    end = parse_minutes(end_time, "endTime")
    if start >= end:
        raise OrderError("Start time must be before end time.")
    return Interval(date=parsed_date, start=start, end=end)
