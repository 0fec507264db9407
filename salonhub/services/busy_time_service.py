from datetime import date, datetime, time
from typing import List, Optional, Union
import logging

from salonhub.db.gateway import PersistenceGateway
from salonhub.schemas.appointment import AppointmentStatus
from salonhub.schemas.schedule import BusyInterval

logger = logging.getLogger(__name__)

def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)

async def get_busy_intervals(
    gateway: PersistenceGateway,
    salon_id: str,
    from_date: Union[date, datetime],
    exclude_appointment_id: Optional[str] = None,
) -> List[BusyInterval]:
    """
    Merge live appointments and blocked periods of a salon into busy intervals.

    Cancelled appointments are skipped; blocked times always count. Intervals
    that end at or before ``from_date`` are dropped, which keeps a multi-day
    block that started earlier but still covers the requested day. Gateway
    errors propagate: an unreadable calendar must never look free.

    Args:
        gateway: Datastore to read from (always a fresh read)
        salon_id: Tenant whose calendar is read
        from_date: Start of the query horizon (a day means its midnight)
        exclude_appointment_id: Appointment left out of the result, used when
            it is being moved

    Returns:
        Busy intervals in no particular order
    """
    horizon = _as_datetime(from_date)

    appointments = await gateway.list_appointments(salon_id)
    blocked_times = await gateway.list_blocked_times(salon_id)

    busy = [
        BusyInterval(start=a["start_time"], end=a["end_time"])
        for a in appointments
        if a.get("status") != AppointmentStatus.CANCELLED and a.get("id") != exclude_appointment_id
    ]
    busy.extend(BusyInterval(start=b["start_time"], end=b["end_time"]) for b in blocked_times)

    result = [interval for interval in busy if interval.end > horizon]
    logger.debug(f"Salon {salon_id}: {len(result)} busy intervals from {horizon.isoformat()}")
    return result
