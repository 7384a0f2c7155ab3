"""Canonical string forms for calendar dates and wall-clock times.

Dates are stored and compared as ``YYYY-MM-DD`` and times as ``HH:MM``;
both sort correctly as plain strings, which the appointment ordering
relies on.
"""
from datetime import date, datetime, time, timedelta
from typing import Literal

DateFormat = Literal["iso", "month_day", "long"]

# Sunday-first, matching the calendar grid
DAY_LABELS = ["日", "月", "火", "水", "木", "金", "土"]


def format_date(d: date, fmt: DateFormat = "iso") -> str:
    if fmt == "month_day":
        return f"{d.month:02d}/{d.day:02d}"
    if fmt == "long":
        return f"{d.year}年{d.month}月{d.day}日"
    return d.isoformat()


def parse_date(value: str) -> date:
    return date.fromisoformat(value)


def format_time(t: time) -> str:
    return f"{t.hour:02d}:{t.minute:02d}"


def truncate_to_minute(dt: datetime) -> datetime:
    return dt.replace(second=0, microsecond=0)


def start_of_week(d: date) -> date:
    """Sunday on or before ``d``."""
    # date.weekday(): Monday == 0 ... Sunday == 6
    return d - timedelta(days=(d.weekday() + 1) % 7)


def first_of_month(d: date) -> date:
    return d.replace(day=1)


def add_months(d: date, months: int) -> date:
    """First day of the month ``months`` away from ``d``'s month."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def weekday_label(d: date) -> str:
    return DAY_LABELS[(d.weekday() + 1) % 7]


def sort_key(d: date, t: time) -> str:
    return f"{format_date(d)}T{format_time(t)}"
