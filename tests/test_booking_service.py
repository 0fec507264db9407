import pytest
from datetime import datetime, timedelta, timezone

from salonhub.core.clock import to_local_naive
from salonhub.core.exceptions import InvalidRange, NotFound, SlotUnavailable
from salonhub.schemas.appointment import AppointmentDraft, AppointmentStatus, PublicBookingCreate
from salonhub.services import booking_service
from salonhub.services.busy_time_service import get_busy_intervals

from conftest import MONDAY, NOW

def at(hour, minute=0):
    return datetime(MONDAY.year, MONDAY.month, MONDAY.day, hour, minute)

def draft_for(salon, service, customer, start, end):
    return AppointmentDraft(
        salon_id=salon["id"],
        service_id=service["id"],
        client_id=customer["id"],
        start_time=start,
        end_time=end,
    )

@pytest.mark.asyncio
async def test_create_appointment_persists_confirmed(gateway, salon, service, customer):
    appointment = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(11)), NOW
    )

    assert appointment["status"] == AppointmentStatus.CONFIRMED.value
    assert appointment["created_at"] == NOW
    stored = await gateway.get_appointment(appointment["id"])
    assert stored["start_time"] == at(10)

@pytest.mark.asyncio
async def test_overlapping_booking_is_refused_and_not_written(gateway, salon, service, customer):
    await booking_service.create_appointment(gateway, draft_for(salon, service, customer, at(10), at(11)), NOW)

    with pytest.raises(SlotUnavailable):
        await booking_service.create_appointment(
            gateway, draft_for(salon, service, customer, at(10, 30), at(11, 30)), NOW
        )

    assert len(await gateway.list_appointments(salon["id"])) == 1

@pytest.mark.asyncio
async def test_second_booking_for_same_slot_sees_the_first(gateway, salon, service, customer):
    draft = draft_for(salon, service, customer, at(14), at(15))

    await booking_service.create_appointment(gateway, draft, NOW)
    with pytest.raises(SlotUnavailable):
        await booking_service.create_appointment(gateway, draft, NOW)

@pytest.mark.asyncio
async def test_blocked_time_refuses_bookings(gateway, salon, service, customer):
    await booking_service.add_blocked_time(gateway, salon["id"], at(9), at(18), "Vacation")

    with pytest.raises(SlotUnavailable):
        await booking_service.create_appointment(
            gateway, draft_for(salon, service, customer, at(16), at(17)), NOW
        )

@pytest.mark.asyncio
async def test_end_before_start_is_invalid(gateway, salon, service, customer):
    with pytest.raises(InvalidRange):
        await booking_service.create_appointment(
            gateway, draft_for(salon, service, customer, at(11), at(11)), NOW
        )
    with pytest.raises(InvalidRange):
        await booking_service.add_blocked_time(gateway, salon["id"], at(12), at(9))
    assert await gateway.list_appointments(salon["id"]) == []

@pytest.mark.asyncio
async def test_cancelling_frees_the_time_but_keeps_the_record(gateway, salon, service, customer):
    appointment = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(11)), NOW
    )

    await booking_service.update_appointment_status(gateway, appointment["id"], AppointmentStatus.CANCELLED)
    again = await booking_service.update_appointment_status(gateway, appointment["id"], AppointmentStatus.CANCELLED)

    assert again["status"] == AppointmentStatus.CANCELLED.value
    assert await get_busy_intervals(gateway, salon["id"], MONDAY) == []
    assert len(await gateway.list_appointments(salon["id"])) == 1

    # The freed slot can be booked again
    rebooked = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(11)), NOW
    )
    assert rebooked["id"] != appointment["id"]

@pytest.mark.asyncio
async def test_restoring_a_cancelled_appointment_rechecks_the_calendar(gateway, salon, service, customer):
    first = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(11)), NOW
    )
    await booking_service.update_appointment_status(gateway, first["id"], AppointmentStatus.CANCELLED)
    await booking_service.create_appointment(gateway, draft_for(salon, service, customer, at(10, 30), at(11, 30)), NOW)

    with pytest.raises(SlotUnavailable):
        await booking_service.update_appointment_status(gateway, first["id"], AppointmentStatus.CONFIRMED)

@pytest.mark.asyncio
async def test_reschedule_uses_service_duration_and_confirms(gateway, salon, service, customer):
    appointment = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(11)), NOW
    )
    await booking_service.update_appointment_status(gateway, appointment["id"], AppointmentStatus.PENDING)

    moved = await booking_service.reschedule_appointment(gateway, appointment["id"], at(15), now=NOW)

    assert moved["start_time"] == at(15)
    assert moved["end_time"] == at(16)
    assert moved["status"] == AppointmentStatus.CONFIRMED.value

@pytest.mark.asyncio
async def test_reschedule_ignores_its_own_time(gateway, salon, service, customer):
    appointment = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(11)), NOW
    )

    moved = await booking_service.reschedule_appointment(gateway, appointment["id"], at(10, 30), now=NOW)

    assert moved["start_time"] == at(10, 30)

@pytest.mark.asyncio
async def test_reschedule_into_busy_time_is_refused(gateway, salon, service, customer):
    appointment = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(11)), NOW
    )
    await booking_service.create_appointment(gateway, draft_for(salon, service, customer, at(14), at(15)), NOW)

    with pytest.raises(SlotUnavailable):
        await booking_service.reschedule_appointment(gateway, appointment["id"], at(14, 30), now=NOW)
    stored = await gateway.get_appointment(appointment["id"])
    assert stored["start_time"] == at(10)

@pytest.mark.asyncio
async def test_reschedule_falls_back_to_default_duration(gateway, salon, service, customer):
    appointment = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(10, 30)), NOW
    )
    await gateway.delete_service(service["id"])

    moved = await booking_service.reschedule_appointment(gateway, appointment["id"], at(13), now=NOW)

    assert moved["end_time"] == at(14)

@pytest.mark.asyncio
async def test_appointments_of_another_salon_are_not_found(gateway, salon, service, customer):
    appointment = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(11)), NOW
    )
    with pytest.raises(NotFound):
        await booking_service.delete_appointment(gateway, appointment["id"], salon_id="someone-else")
    await booking_service.delete_appointment(gateway, appointment["id"], salon_id=salon["id"])
    assert await gateway.get_appointment(appointment["id"]) is None

@pytest.mark.asyncio
async def test_day_agenda_merges_and_sorts(gateway, salon, service, customer):
    await booking_service.create_appointment(gateway, draft_for(salon, service, customer, at(15), at(16)), NOW)
    await booking_service.add_blocked_time(gateway, salon["id"], at(12), at(13), "Lunch")
    await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(9), at(10)), NOW
    )
    await booking_service.create_appointment(
        gateway,
        draft_for(salon, service, customer, at(9) + timedelta(days=1), at(10) + timedelta(days=1)),
        NOW,
    )

    entries = await booking_service.get_day_agenda(gateway, salon["id"], MONDAY)

    assert [(e["kind"], e["start_time"]) for e in entries] == [
        ("appointment", at(9)),
        ("block", at(12)),
        ("appointment", at(15)),
    ]
    assert entries[1]["reason"] == "Lunch"
    assert entries[0]["badge"].label == "Confirmed"

@pytest.mark.asyncio
async def test_delete_blocked_time_of_another_salon(gateway, salon):
    block = await booking_service.add_blocked_time(gateway, salon["id"], at(12), at(13))
    with pytest.raises(NotFound):
        await booking_service.delete_blocked_time(gateway, "someone-else", block["id"])
    await booking_service.delete_blocked_time(gateway, salon["id"], block["id"])
    assert await gateway.list_blocked_times(salon["id"]) == []

@pytest.mark.asyncio
async def test_book_service_creates_client_and_whatsapp_link(gateway, salon, service):
    booking = PublicBookingCreate(
        service_id=service["id"],
        start_time=at(10),
        client_name="Maria Lima",
        client_phone="(11) 99999-0000",
    )

    result = await booking_service.book_service(gateway, salon["id"], booking, NOW)

    appointment = result["appointment"]
    assert appointment["end_time"] == at(11)
    assert appointment["status"] == AppointmentStatus.CONFIRMED.value
    assert result["whatsapp_link"].startswith("https://wa.me/5511987654321?text=")

    client = await gateway.find_client_by_whatsapp(salon["id"], "11999990000")
    assert client["id"] == appointment["client_id"]

@pytest.mark.asyncio
async def test_book_service_reuses_client_by_digits(gateway, salon, service, customer):
    booking = PublicBookingCreate(
        service_id=service["id"], start_time=at(10), client_name="Ana", client_phone="11 91234 5678",
    )

    result = await booking_service.book_service(gateway, salon["id"], booking, NOW)

    assert result["appointment"]["client_id"] == customer["id"]

@pytest.mark.asyncio
async def test_refused_public_booking_leaves_no_client(gateway, salon, service, customer):
    await booking_service.create_appointment(gateway, draft_for(salon, service, customer, at(10), at(11)), NOW)
    booking = PublicBookingCreate(
        service_id=service["id"], start_time=at(10), client_name="Late", client_phone="(21) 90000-1111",
    )

    with pytest.raises(SlotUnavailable):
        await booking_service.book_service(gateway, salon["id"], booking, NOW)
    assert await gateway.find_client_by_whatsapp(salon["id"], "21900001111") is None

@pytest.mark.asyncio
async def test_client_history_is_most_recent_first(gateway, salon, service, customer):
    await booking_service.create_appointment(gateway, draft_for(salon, service, customer, at(9), at(10)), NOW)
    await booking_service.create_appointment(gateway, draft_for(salon, service, customer, at(15), at(16)), NOW)

    history = await booking_service.get_client_history(gateway, salon["id"], "11912345678")

    assert [h["start_time"] for h in history] == [at(15), at(9)]
    assert history[0]["service_name"] == "Haircut"
    assert await booking_service.get_client_history(gateway, salon["id"], "0000000000") == []

@pytest.mark.asyncio
async def test_status_change_is_stamped_with_the_given_clock(gateway, salon, service, customer):
    appointment = await booking_service.create_appointment(
        gateway, draft_for(salon, service, customer, at(10), at(11)), NOW
    )
    later = NOW + timedelta(minutes=5)

    updated = await booking_service.update_appointment_status(
        gateway, appointment["id"], AppointmentStatus.COMPLETED, now=later
    )

    assert updated["updated_at"] == later

def test_offset_times_are_stored_as_local_time():
    aware = datetime(2026, 10, 19, 13, 0, tzinfo=timezone.utc)

    booking = PublicBookingCreate(
        service_id="s1", start_time="2026-10-19T13:00:00.000Z", client_name="Ana", client_phone="11912345678",
    )

    assert booking.start_time.tzinfo is None
    assert booking.start_time == aware.astimezone().replace(tzinfo=None)
    assert to_local_naive(at(10)) == at(10)
