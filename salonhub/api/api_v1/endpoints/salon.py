from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends

from salonhub.api.deps import get_current_salon, get_now, require_entitled_salon, to_http_exception
from salonhub.core.exceptions import SalonHubError
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.provider import get_gateway
from salonhub.schemas.salon import EntitlementResponse, SalonResponse, SalonUpdate
from salonhub.services import salon_service
from salonhub.services.entitlement_service import describe_entitlement

router = APIRouter()

@router.get("/me", response_model=SalonResponse)
async def get_my_salon(salon: Dict[str, Any] = Depends(require_entitled_salon)) -> Any:
    """
    Get the authenticated owner's salon
    """
    return salon

@router.put("/me", response_model=SalonResponse)
async def update_my_salon(
    salon_update: SalonUpdate,
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Any:
    """
    Update profile fields and opening hours
    """
    try:
        return await salon_service.update_salon_settings(gateway, salon["id"], salon_update)
    except SalonHubError as e:
        raise to_http_exception(e)

@router.get("/me/plan", response_model=EntitlementResponse)
async def get_my_plan(
    salon: Dict[str, Any] = Depends(get_current_salon),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Subscription state of the salon. Not gated, so an expired owner can
    still see why access stopped and how to renew.
    """
    return describe_entitlement(salon, now)
