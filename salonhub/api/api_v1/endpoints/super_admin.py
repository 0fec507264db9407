from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from salonhub.api.deps import get_now, to_http_exception
from salonhub.core.auth import require_super_admin
from salonhub.core.exceptions import SalonHubError
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.provider import get_gateway
from salonhub.schemas.salon import GrantAccess, LifetimeFlag, SalonOverview, SubscriptionStatus
from salonhub.services import entitlement_service

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/salons", response_model=List[SalonOverview])
async def list_salons(
    status_filter: Optional[SubscriptionStatus] = Query(None, alias="status", description="Stored status"),
    expiration: Optional[str] = Query(None, description="expired, 7days or 30days"),
    search: Optional[str] = Query(None, description="Name or owner email"),
    principal: Dict[str, Any] = Depends(require_super_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Tenant list of the super-admin console with health and expiry columns
    """
    if expiration is not None and expiration not in entitlement_service.EXPIRATION_BUCKETS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"expiration must be one of {', '.join(entitlement_service.EXPIRATION_BUCKETS)}"
        )
    try:
        return await entitlement_service.list_salon_overviews(
            gateway, now, status=status_filter, expiration=expiration, search=search
        )
    except SalonHubError as e:
        raise to_http_exception(e)

async def _transition(gateway: PersistenceGateway, salon_id: str, action: str, now: datetime, **params: Any):
    try:
        salon = await entitlement_service.apply_transition(gateway, salon_id, action, now, **params)
    except SalonHubError as e:
        raise to_http_exception(e)
    return entitlement_service.salon_overview(salon, now)

@router.post("/salons/reconcile")
async def reconcile_statuses(
    principal: Dict[str, Any] = Depends(require_super_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Store EXPIRED on every salon whose trial or paid period has lapsed
    """
    try:
        updated = await entitlement_service.reconcile_statuses(gateway, now)
    except SalonHubError as e:
        raise to_http_exception(e)
    return {"updated": updated}

@router.post("/salons/{salon_id}/block", response_model=SalonOverview)
async def block_salon(
    salon_id: str,
    principal: Dict[str, Any] = Depends(require_super_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    return await _transition(gateway, salon_id, "block", now)

@router.post("/salons/{salon_id}/unblock", response_model=SalonOverview)
async def unblock_salon(
    salon_id: str,
    principal: Dict[str, Any] = Depends(require_super_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    return await _transition(gateway, salon_id, "unblock", now)

@router.post("/salons/{salon_id}/grant", response_model=SalonOverview)
async def grant_access(
    salon_id: str,
    grant_in: GrantAccess,
    principal: Dict[str, Any] = Depends(require_super_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """
    Activate the salon for a number of days from now (paid period or
    courtesy extension). Clears the lifetime flag.
    """
    return await _transition(gateway, salon_id, "grant", now, days=grant_in.days)

@router.post("/salons/{salon_id}/cancel", response_model=SalonOverview)
async def cancel_salon(
    salon_id: str,
    principal: Dict[str, Any] = Depends(require_super_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    return await _transition(gateway, salon_id, "cancel", now)

@router.post("/salons/{salon_id}/lifetime", response_model=SalonOverview)
async def set_lifetime(
    salon_id: str,
    flag_in: LifetimeFlag,
    principal: Dict[str, Any] = Depends(require_super_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    return await _transition(gateway, salon_id, "lifetime", now, flag=flag_in.is_lifetime_free)
