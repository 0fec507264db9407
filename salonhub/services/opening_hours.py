from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Sequence, Union

from salonhub.schemas.salon import DaySchedule, TimeRange

def default_opening_hours() -> List[DaySchedule]:
    """
    Week given to every new salon: closed on Sunday, split shift on weekdays
    and a short Saturday.
    """
    split_shift = [TimeRange(start="09:00", end="12:00"), TimeRange(start="13:00", end="18:00")]
    hours = [DaySchedule(day_of_week=0, is_open=False, slots=[])]
    for weekday in range(1, 6):
        hours.append(DaySchedule(day_of_week=weekday, is_open=True, slots=list(split_shift)))
    hours.append(DaySchedule(day_of_week=6, is_open=True, slots=[TimeRange(start="09:00", end="14:00")]))
    return hours

def coerce_opening_hours(raw: Sequence[Union[DaySchedule, Dict[str, Any]]]) -> List[DaySchedule]:
    """Accept stored dicts or models and return DaySchedule models."""
    return [d if isinstance(d, DaySchedule) else DaySchedule.model_validate(d) for d in (raw or [])]

def weekday_of(day: Union[date, datetime]) -> int:
    """Sunday-based weekday: 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7

def get_day_schedule(hours: Sequence[DaySchedule], weekday: int) -> Optional[DaySchedule]:
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be between 0 and 6, got {weekday}")
    for schedule in hours:
        if schedule.day_of_week == weekday:
            return schedule
    return None

def is_open_on(hours: Sequence[DaySchedule], day: Union[date, datetime]) -> bool:
    schedule = get_day_schedule(hours, weekday_of(day))
    return bool(schedule and schedule.is_open)

def parse_hhmm(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))

def at_time(day: Union[date, datetime], hhmm: str) -> datetime:
    """Combine a calendar day with an "HH:MM" wall-clock time."""
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, parse_hhmm(hhmm))
