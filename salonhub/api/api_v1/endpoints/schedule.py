from datetime import date, datetime
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from salonhub.api.deps import get_now, require_entitled_salon, to_http_exception
from salonhub.core.exceptions import SalonHubError
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.provider import get_gateway
from salonhub.schemas.appointment import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from salonhub.schemas.schedule import BlockedTimeCreate, BlockedTimeResponse, DayAgendaResponse
from salonhub.services import booking_service

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/day", response_model=DayAgendaResponse)
async def get_day_agenda(
    day: date = Query(..., alias="date", description="Day to show (YYYY-MM-DD)"),
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Any:
    """
    Appointments and blocked periods of a day, in time order
    """
    try:
        entries = await booking_service.get_day_agenda(gateway, salon["id"], day)
    except SalonHubError as e:
        raise to_http_exception(e)
    return {"date": day, "entries": entries}

@router.post("/appointments", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_in: AppointmentCreate,
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Book an appointment from the back office for an existing client
    """
    try:
        return await booking_service.create_admin_appointment(gateway, salon["id"], appointment_in, now)
    except SalonHubError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error in create_appointment: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while creating the appointment"
        )

@router.put("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: str,
    status_update: AppointmentStatusUpdate,
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Confirm, complete, cancel or restore an appointment
    """
    try:
        return await booking_service.update_appointment_status(
            gateway, appointment_id, status_update.status, salon_id=salon["id"], now=now
        )
    except SalonHubError as e:
        raise to_http_exception(e)

@router.post("/appointments/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: str,
    reschedule_in: AppointmentReschedule,
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Move an appointment to a new time; it goes back to CONFIRMED
    """
    try:
        return await booking_service.reschedule_appointment(
            gateway,
            appointment_id,
            reschedule_in.start_time,
            reschedule_in.end_time,
            salon_id=salon["id"],
            now=now,
        )
    except SalonHubError as e:
        raise to_http_exception(e)

@router.delete("/appointments/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: str,
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    try:
        await booking_service.delete_appointment(gateway, appointment_id, salon_id=salon["id"])
    except SalonHubError as e:
        raise to_http_exception(e)

@router.post("/blocks", response_model=BlockedTimeResponse, status_code=status.HTTP_201_CREATED)
async def create_blocked_time(
    block_in: BlockedTimeCreate,
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Any:
    """
    Block a period (holiday, training, break); no bookings can land in it
    """
    try:
        return await booking_service.add_blocked_time(
            gateway, salon["id"], block_in.start_time, block_in.end_time, block_in.reason
        )
    except SalonHubError as e:
        raise to_http_exception(e)

@router.delete("/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blocked_time(
    block_id: str,
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    try:
        await booking_service.delete_blocked_time(gateway, salon["id"], block_id)
    except SalonHubError as e:
        raise to_http_exception(e)
