from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
import logging

from salonhub.core.clock import local_now
from salonhub.core.config import settings
from salonhub.core.exceptions import InvalidRange, NotFound, SlotUnavailable
from salonhub.core.intervals import Interval, add_minutes, overlaps
from salonhub.core.status_styles import BLOCK_BADGE, appointment_badge
from salonhub.db.gateway import PersistenceGateway
from salonhub.schemas.appointment import (
    AppointmentCreate, AppointmentDraft, AppointmentStatus, PublicBookingCreate
)
from salonhub.services.busy_time_service import get_busy_intervals
from salonhub.services.client_service import find_or_create_client, get_client_by_phone
from salonhub.utils.whatsapp import booking_confirmation_message, build_link

logger = logging.getLogger(__name__)

def _check_range(start: datetime, end: datetime) -> None:
    if end <= start:
        raise InvalidRange("End time must be after start time")

async def _ensure_free(
    gateway: PersistenceGateway,
    salon_id: str,
    start: datetime,
    end: datetime,
    exclude_appointment_id: Optional[str] = None,
) -> None:
    busy = await get_busy_intervals(
        gateway, salon_id, start.date(), exclude_appointment_id=exclude_appointment_id
    )
    candidate = Interval(start, end)
    if any(overlaps(candidate, b) for b in busy):
        logger.info(f"Salon {salon_id}: {start.isoformat()}-{end.isoformat()} conflicts with the calendar")
        raise SlotUnavailable("This time is no longer available")

async def _get_owned_appointment(
    gateway: PersistenceGateway,
    appointment_id: str,
    salon_id: Optional[str] = None,
) -> Dict[str, Any]:
    appointment = await gateway.get_appointment(appointment_id)
    if not appointment or (salon_id is not None and appointment.get("salon_id") != salon_id):
        raise NotFound("Appointment not found")
    return appointment

async def create_appointment(
    gateway: PersistenceGateway,
    draft: AppointmentDraft,
    now: datetime,
) -> Dict[str, Any]:
    """
    Persist an appointment after re-checking the calendar.

    The busy intervals are read again at write time, so a slot taken since
    the availability list was generated is refused. Nothing is written when
    the check fails.

    Args:
        gateway: Datastore to read and write
        draft: Appointment to create
        now: Current local time, stored as created_at

    Returns:
        The created appointment document

    Raises:
        InvalidRange: end_time is not after start_time
        SlotUnavailable: the range overlaps an appointment or a blocked period
    """
    _check_range(draft.start_time, draft.end_time)
    await _ensure_free(gateway, draft.salon_id, draft.start_time, draft.end_time)

    appointment_data = draft.model_dump()
    appointment_data["status"] = draft.status.value
    appointment_data["created_at"] = now

    appointment = await gateway.insert_appointment(appointment_data)
    logger.info(
        f"Salon {draft.salon_id}: appointment {appointment['id']} booked for {draft.start_time.isoformat()}"
    )
    return appointment

async def _service_duration(gateway: PersistenceGateway, service_id: str) -> int:
    service = await gateway.get_service(service_id)
    if service:
        return service["duration_min"]
    return settings.DEFAULT_APPOINTMENT_MINUTES

async def reschedule_appointment(
    gateway: PersistenceGateway,
    appointment_id: str,
    new_start: datetime,
    new_end: Optional[datetime] = None,
    salon_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Move an appointment and set it back to CONFIRMED.

    The new end defaults to the start plus the service duration. The
    conflict check ignores the appointment being moved, so shifting it
    inside its own time is allowed.
    """
    appointment = await _get_owned_appointment(gateway, appointment_id, salon_id)

    if new_end is None:
        new_end = add_minutes(new_start, await _service_duration(gateway, appointment["service_id"]))
    _check_range(new_start, new_end)
    await _ensure_free(
        gateway, appointment["salon_id"], new_start, new_end, exclude_appointment_id=appointment_id
    )

    updated = await gateway.update_appointment(appointment_id, {
        "start_time": new_start,
        "end_time": new_end,
        "status": AppointmentStatus.CONFIRMED.value,
        "updated_at": now or local_now(),
    })
    if updated is None:
        raise NotFound("Appointment not found")
    logger.info(f"Appointment {appointment_id} moved to {new_start.isoformat()}")
    return updated

async def update_appointment_status(
    gateway: PersistenceGateway,
    appointment_id: str,
    status: AppointmentStatus,
    salon_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Change an appointment's status. Cancelling keeps the record but frees
    its time; cancelling twice is a no-op.
    """
    appointment = await _get_owned_appointment(gateway, appointment_id, salon_id)
    if appointment.get("status") == status.value:
        return appointment
    if appointment.get("status") == AppointmentStatus.CANCELLED.value:
        # Restoring takes the time back, so it must still be free
        await _ensure_free(
            gateway, appointment["salon_id"], appointment["start_time"], appointment["end_time"],
            exclude_appointment_id=appointment_id,
        )

    updated = await gateway.update_appointment_status(appointment_id, status.value, now or local_now())
    if updated is None:
        raise NotFound("Appointment not found")
    logger.info(f"Appointment {appointment_id}: {appointment.get('status')} -> {status.value}")
    return updated

async def delete_appointment(
    gateway: PersistenceGateway,
    appointment_id: str,
    salon_id: Optional[str] = None,
) -> None:
    await _get_owned_appointment(gateway, appointment_id, salon_id)
    await gateway.delete_appointment(appointment_id)
    logger.info(f"Appointment {appointment_id} deleted")

async def add_blocked_time(
    gateway: PersistenceGateway,
    salon_id: str,
    start: datetime,
    end: datetime,
    reason: str = "",
) -> Dict[str, Any]:
    """
    Block a period on the salon's calendar (holidays, breaks, training).
    Existing appointments inside it are left untouched.
    """
    _check_range(start, end)
    block = await gateway.insert_blocked_time({
        "salon_id": salon_id,
        "start_time": start,
        "end_time": end,
        "reason": reason,
    })
    logger.info(f"Salon {salon_id}: blocked {start.isoformat()}-{end.isoformat()} ({reason})")
    return block

async def delete_blocked_time(gateway: PersistenceGateway, salon_id: str, block_id: str) -> None:
    blocks = await gateway.list_blocked_times(salon_id)
    if not any(b["id"] == block_id for b in blocks):
        raise NotFound("Blocked time not found")
    await gateway.delete_blocked_time(block_id)

async def get_day_agenda(gateway: PersistenceGateway, salon_id: str, day: date) -> List[Dict[str, Any]]:
    """
    Appointments (cancelled ones included) and blocked periods that intersect
    the day, sorted by start time.
    """
    day_start = datetime.combine(day, datetime.min.time())
    day_interval = Interval(day_start, day_start + timedelta(days=1))

    entries = []
    for appointment in await gateway.list_appointments(salon_id):
        if not overlaps(Interval(appointment["start_time"], appointment["end_time"]), day_interval):
            continue
        entries.append({
            "kind": "appointment",
            "id": appointment["id"],
            "start_time": appointment["start_time"],
            "end_time": appointment["end_time"],
            "status": appointment.get("status"),
            "service_id": appointment.get("service_id"),
            "client_id": appointment.get("client_id"),
            "badge": appointment_badge(appointment.get("status")),
        })
    for block in await gateway.list_blocked_times(salon_id):
        if not overlaps(Interval(block["start_time"], block["end_time"]), day_interval):
            continue
        entries.append({
            "kind": "block",
            "id": block["id"],
            "start_time": block["start_time"],
            "end_time": block["end_time"],
            "reason": block.get("reason", ""),
            "badge": BLOCK_BADGE,
        })

    entries.sort(key=lambda e: e["start_time"])
    return entries

async def book_service(
    gateway: PersistenceGateway,
    salon_id: str,
    booking: PublicBookingCreate,
    now: datetime,
) -> Dict[str, Any]:
    """
    Public booking: register the client by WhatsApp number and create a
    CONFIRMED appointment for the chosen slot.

    Returns:
        Dict with the created ``appointment`` and a ``whatsapp_link`` that
        opens a confirmation chat with the salon
    """
    salon = await gateway.get_salon(salon_id)
    if not salon:
        raise NotFound("Salon not found")
    service = await gateway.get_service(booking.service_id)
    if not service or service.get("salon_id") != salon_id:
        raise NotFound("Service not found")
    if booking.start_time < now:
        raise SlotUnavailable("This time has already passed")

    end_time = add_minutes(booking.start_time, service["duration_min"])
    _check_range(booking.start_time, end_time)
    # Checked before the client is created, so a refused booking leaves no trace
    await _ensure_free(gateway, salon_id, booking.start_time, end_time)

    client = await find_or_create_client(gateway, salon_id, booking.client_name, booking.client_phone, now)
    draft = AppointmentDraft(
        salon_id=salon_id,
        service_id=service["id"],
        client_id=client["id"],
        start_time=booking.start_time,
        end_time=end_time,
        status=AppointmentStatus.CONFIRMED,
    )
    appointment = await create_appointment(gateway, draft, now)

    message = booking_confirmation_message(service["name"], booking.start_time, booking.client_name)
    return {
        "appointment": appointment,
        "whatsapp_link": build_link(salon.get("phone", ""), message),
    }

async def get_client_history(gateway: PersistenceGateway, salon_id: str, phone: str) -> List[Dict[str, Any]]:
    """
    A client's appointments at one salon, most recent first, looked up by
    WhatsApp number. Unknown numbers get an empty list.
    """
    client = await get_client_by_phone(gateway, salon_id, phone)
    if not client:
        return []

    service_names = {s["id"]: s.get("name") for s in await gateway.list_services(salon_id)}
    history = []
    for appointment in await gateway.list_client_appointments(client["id"]):
        if appointment.get("salon_id") != salon_id:
            continue
        history.append({
            "id": appointment["id"],
            "service_id": appointment["service_id"],
            "service_name": service_names.get(appointment["service_id"]),
            "start_time": appointment["start_time"],
            "end_time": appointment["end_time"],
            "status": appointment["status"],
        })
    history.sort(key=lambda a: a["start_time"], reverse=True)
    return history

async def create_admin_appointment(
    gateway: PersistenceGateway,
    salon_id: str,
    appointment_in: AppointmentCreate,
    now: datetime,
) -> Dict[str, Any]:
    """Back-office booking for an existing client; end defaults to the service duration."""
    service = await gateway.get_service(appointment_in.service_id)
    if not service or service.get("salon_id") != salon_id:
        raise NotFound("Service not found")
    client = await gateway.get_client(appointment_in.client_id)
    if not client or client.get("salon_id") != salon_id:
        raise NotFound("Client not found")

    end_time = appointment_in.end_time or add_minutes(appointment_in.start_time, service["duration_min"])
    draft = AppointmentDraft(
        salon_id=salon_id,
        service_id=service["id"],
        client_id=client["id"],
        start_time=appointment_in.start_time,
        end_time=end_time,
        status=appointment_in.status,
    )
    return await create_appointment(gateway, draft, now)
