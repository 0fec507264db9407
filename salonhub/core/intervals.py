"""Primitive operations on half-open [start, end) intervals.

Anything exposing ``start`` and ``end`` datetime attributes is accepted,
so both ``BusyInterval`` models and ad-hoc ``Interval`` tuples work.
"""
from datetime import datetime, timedelta
from typing import NamedTuple


class Interval(NamedTuple):
    start: datetime
    end: datetime


def overlaps(a, b) -> bool:
    # Touching endpoints are not an overlap: 10:00-11:00 and 11:00-12:00 are both bookable.
    return a.start < b.end and b.start < a.end


def contains(outer, inner) -> bool:
    return outer.start <= inner.start and inner.end <= outer.end


def add_minutes(t: datetime, minutes: int) -> datetime:
    return t + timedelta(minutes=minutes)


def duration_minutes(interval) -> int:
    return int((interval.end - interval.start).total_seconds() // 60)


def difference_in_days(later: datetime, earlier: datetime) -> int:
    """Whole days between two timestamps, truncated toward zero."""
    return int((later - earlier).total_seconds() / 86400)
