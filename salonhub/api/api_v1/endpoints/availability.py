from datetime import date, datetime
from typing import Any
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from salonhub.api.deps import get_now, to_http_exception
from salonhub.core.exceptions import SalonHubError
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.provider import get_gateway
from salonhub.schemas.schedule import AvailableSlotsResponse, SlotGridResponse
from salonhub.services import availability_service, salon_service
from salonhub.services.opening_hours import coerce_opening_hours

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/{salon_id}/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    salon_id: str,
    service_id: str = Query(..., description="Service to book"),
    day: date = Query(..., alias="date", description="Day to check (YYYY-MM-DD)"),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Get the start times a service can still be booked at on a given day.

    A datastore failure answers 503; it never turns into an empty list.
    """
    try:
        service, slots = await availability_service.get_available_slots(
            gateway, salon_id, service_id, day, now
        )
    except SalonHubError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error in get_available_slots: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while retrieving available slots"
        )

    return {
        "salon_id": salon_id,
        "service_id": service_id,
        "date": day,
        "duration_min": service["duration_min"],
        "slots": slots,
    }

@router.get("/{salon_id}/grid", response_model=SlotGridResponse)
async def get_slot_grid(
    salon_id: str,
    service_id: str = Query(..., description="Service to book"),
    day: date = Query(..., alias="date", description="Day to check (YYYY-MM-DD)"),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Every slot of the day with the reason it is free, busy or already past
    """
    try:
        slots = await availability_service.get_slot_grid(gateway, salon_id, service_id, day, now)
    except SalonHubError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error in get_slot_grid: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while retrieving the slot grid"
        )

    return {"salon_id": salon_id, "service_id": service_id, "date": day, "slots": slots}

@router.get("/{salon_id}/dates")
async def get_bookable_dates(
    salon_id: str,
    year: int = Query(..., description="Year to check"),
    month: int = Query(..., description="Month to check (1-12)"),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Days of a month the booking calendar offers: from today to the end of
    the current month, on days the salon opens.
    """
    if month < 1 or month > 12:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Month must be between 1 and 12"
        )
    if year < 1 or year > 9999:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Year must be between 1 and 9999"
        )

    try:
        salon = await salon_service.get_salon(gateway, salon_id)
    except SalonHubError as e:
        raise to_http_exception(e)

    days = availability_service.get_bookable_days(
        coerce_opening_hours(salon.get("opening_hours")), year, month, now.date()
    )
    return {
        "salon_id": salon_id,
        "year": year,
        "month": month,
        "available_days": days,
    }
