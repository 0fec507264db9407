from datetime import datetime
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from salonhub.api.deps import get_now, require_public_booking_salon, to_http_exception
from salonhub.core.exceptions import SalonHubError
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.provider import get_gateway
from salonhub.schemas.appointment import BookingConfirmation, ClientHistoryResponse, PublicBookingCreate
from salonhub.services import booking_service

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/{salon_id}", response_model=BookingConfirmation, status_code=status.HTTP_201_CREATED)
async def create_public_booking(
    salon_id: str,
    booking_in: PublicBookingCreate,
    salon: Dict[str, Any] = Depends(require_public_booking_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Book a service from the public page.

    The slot is checked again against the calendar before it is saved; a
    slot taken in the meantime answers 409. The response carries a WhatsApp
    link that opens a confirmation chat with the salon.
    """
    try:
        return await booking_service.book_service(gateway, salon["id"], booking_in, now)
    except SalonHubError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error in create_public_booking: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while creating the booking"
        )

@router.get("/{salon_id}/history", response_model=ClientHistoryResponse)
async def get_client_history(
    salon_id: str,
    phone: str = Query(..., description="Client WhatsApp number"),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Any:
    """
    A client's appointments at this salon, most recent first
    """
    try:
        appointments = await booking_service.get_client_history(gateway, salon_id, phone)
    except SalonHubError as e:
        raise to_http_exception(e)
    return {"phone": phone, "appointments": appointments}
