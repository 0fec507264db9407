from datetime import datetime
from typing import Any, Dict
import logging

from fastapi import Depends, HTTPException, status

from salonhub.core.auth import ROLE_ADMIN, get_current_principal
from salonhub.core.clock import local_now
from salonhub.core.exceptions import (
    EmailAlreadyRegistered,
    GatewayUnavailable,
    InvalidRange,
    InvalidTransition,
    NotFound,
    SalonHubError,
    SlotUnavailable,
    TenantNotEntitled,
)
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.provider import get_gateway
from salonhub.services.entitlement_service import is_entitled

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    SlotUnavailable: status.HTTP_409_CONFLICT,
    InvalidRange: status.HTTP_422_UNPROCESSABLE_ENTITY,
    TenantNotEntitled: status.HTTP_403_FORBIDDEN,
    InvalidTransition: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    GatewayUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    EmailAlreadyRegistered: status.HTTP_400_BAD_REQUEST,
}

def to_http_exception(error: SalonHubError) -> HTTPException:
    """Translate a domain error into the matching HTTP response."""
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    logger.error(f"Unmapped domain error: {error!r}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )

def get_now() -> datetime:
    """Current local time; overridden in tests."""
    return local_now()

async def get_current_salon(
    principal: Dict[str, Any] = Depends(get_current_principal),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Dict[str, Any]:
    """Salon of the authenticated owner."""
    if principal["role"] != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Salon owner access required"
        )
    try:
        salon = await gateway.get_salon(principal["salon_id"])
    except SalonHubError as e:
        raise to_http_exception(e)
    if not salon:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return salon

async def require_entitled_salon(
    salon: Dict[str, Any] = Depends(get_current_salon),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    """Gate for the admin surface: the owner's subscription must be valid."""
    if not is_entitled(salon, now):
        raise to_http_exception(
            TenantNotEntitled("Subscription inactive. Contact support to renew your access.")
        )
    return salon

async def require_public_booking_salon(
    salon_id: str,
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    """Gate for public bookings: the salon must exist and be entitled."""
    try:
        salon = await gateway.get_salon(salon_id)
    except SalonHubError as e:
        raise to_http_exception(e)
    if not salon:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Salon not found"
        )
    if not is_entitled(salon, now):
        raise to_http_exception(
            TenantNotEntitled("This salon is not taking online bookings at the moment.")
        )
    return salon
