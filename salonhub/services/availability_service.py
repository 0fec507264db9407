from calendar import monthrange
from datetime import date, datetime
from typing import Iterator, List, Optional, Sequence, Tuple
import logging

from salonhub.core.config import settings
from salonhub.core.exceptions import NotFound
from salonhub.core.intervals import Interval, add_minutes, overlaps
from salonhub.db.gateway import PersistenceGateway
from salonhub.schemas.salon import DaySchedule
from salonhub.schemas.schedule import BusyInterval, SlotInfo, SlotReason
from salonhub.services.busy_time_service import get_busy_intervals
from salonhub.services.opening_hours import (
    at_time, coerce_opening_hours, get_day_schedule, is_open_on, weekday_of
)

logger = logging.getLogger(__name__)

def _walk_day(
    duration_min: int,
    day: date,
    opening_hours: Sequence[DaySchedule],
    step_minutes: int,
) -> Iterator[Tuple[datetime, datetime]]:
    """
    Yield every (start, end) on the step grid that fits entirely inside one
    open sub-range of the day.

    Sub-ranges are walked one by one and never merged, so a service cannot
    straddle a lunch break. A start whose end would pass the range end is
    skipped, not truncated.
    """
    schedule = get_day_schedule(opening_hours, weekday_of(day))
    if schedule is None or not schedule.is_open:
        return

    for time_range in schedule.slots:
        cursor = at_time(day, time_range.start)
        range_end = at_time(day, time_range.end)

        # end <= start never enters the loop
        while cursor < range_end:
            candidate_end = add_minutes(cursor, duration_min)
            if candidate_end <= range_end:
                yield cursor, candidate_end
            cursor = add_minutes(cursor, step_minutes)

def generate_slots(
    duration_min: int,
    day: date,
    opening_hours: Sequence[DaySchedule],
    busy: Sequence[BusyInterval],
    now: datetime,
    step_minutes: Optional[int] = None,
) -> List[datetime]:
    """
    Bookable start times for a service on a given day.

    A candidate is accepted when it fits inside an open sub-range, overlaps
    no busy interval and does not start before ``now``. Candidates sit on a
    fixed grid (30 minutes by default) anchored at each sub-range start,
    whatever the service duration.
    """
    step = step_minutes or settings.SLOT_STEP_MINUTES
    accepted = set()
    for start, end in _walk_day(duration_min, day, opening_hours, step):
        candidate = Interval(start, end)
        if any(overlaps(candidate, b) for b in busy):
            continue
        if start < now:
            continue
        accepted.add(start)
    # Overlapping sub-ranges could offer the same start twice
    return sorted(accepted)

def describe_slots(
    duration_min: int,
    day: date,
    opening_hours: Sequence[DaySchedule],
    busy: Sequence[BusyInterval],
    now: datetime,
    step_minutes: Optional[int] = None,
) -> List[SlotInfo]:
    """Every grid position that fits, flagged free, busy or past."""
    step = step_minutes or settings.SLOT_STEP_MINUTES
    seen = {}
    for start, end in _walk_day(duration_min, day, opening_hours, step):
        if start in seen:
            continue
        candidate = Interval(start, end)
        if any(overlaps(candidate, b) for b in busy):
            reason = SlotReason.BUSY
        elif start < now:
            reason = SlotReason.PAST
        else:
            reason = SlotReason.FREE
        seen[start] = SlotInfo(time=start, is_available=reason == SlotReason.FREE, reason=reason)
    return [seen[start] for start in sorted(seen)]

async def _load_salon_and_service(gateway: PersistenceGateway, salon_id: str, service_id: str):
    salon = await gateway.get_salon(salon_id)
    if not salon:
        raise NotFound("Salon not found")
    service = await gateway.get_service(service_id)
    if not service or service.get("salon_id") != salon_id:
        raise NotFound("Service not found")
    return salon, service

async def get_available_slots(
    gateway: PersistenceGateway,
    salon_id: str,
    service_id: str,
    day: date,
    now: datetime,
) -> Tuple[dict, List[datetime]]:
    """
    Read path of the booking flow: load the salon's hours and the service,
    fetch busy intervals for the day and generate bookable starts.

    Returns:
        The service document and the sorted list of bookable start times
    """
    salon, service = await _load_salon_and_service(gateway, salon_id, service_id)
    busy = await get_busy_intervals(gateway, salon_id, day)
    slots = generate_slots(
        service["duration_min"], day, coerce_opening_hours(salon.get("opening_hours")), busy, now
    )
    logger.info(f"Salon {salon_id}: {len(slots)} free slots on {day} for service {service_id}")
    return service, slots

async def get_slot_grid(
    gateway: PersistenceGateway,
    salon_id: str,
    service_id: str,
    day: date,
    now: datetime,
) -> List[SlotInfo]:
    salon, service = await _load_salon_and_service(gateway, salon_id, service_id)
    busy = await get_busy_intervals(gateway, salon_id, day)
    return describe_slots(
        service["duration_min"], day, coerce_opening_hours(salon.get("opening_hours")), busy, now
    )

def get_bookable_days(
    opening_hours: Sequence[DaySchedule],
    year: int,
    month: int,
    today: date,
) -> List[int]:
    """
    Days of a month the booking calendar may offer.

    A day is offered when it is not in the past, not after the last day of
    the current month, and the salon is open on that weekday.
    """
    _, num_days = monthrange(year, month)
    last_offered = date(today.year, today.month, monthrange(today.year, today.month)[1])

    bookable_days = []
    for day_number in range(1, num_days + 1):
        day = date(year, month, day_number)
        if day < today or day > last_offered:
            continue
        if is_open_on(opening_hours, day):
            bookable_days.append(day_number)
    return bookable_days
