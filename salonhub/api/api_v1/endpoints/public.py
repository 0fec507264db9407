from datetime import datetime
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from salonhub.api.deps import get_now, to_http_exception
from salonhub.core.exceptions import SalonHubError
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.provider import get_gateway
from salonhub.schemas.salon import PublicSalonResponse
from salonhub.schemas.service import ServiceResponse
from salonhub.services import catalog_service, salon_service

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/salons/{salon_id}", response_model=PublicSalonResponse)
async def get_public_salon(
    salon_id: str,
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
):
    """
    Public profile of a salon for the booking page
    """
    try:
        salon = await salon_service.get_salon(gateway, salon_id)
    except SalonHubError as e:
        raise to_http_exception(e)
    return salon_service.public_view(salon, now)

@router.get("/salons/{salon_id}/services", response_model=List[ServiceResponse])
async def get_public_services(
    salon_id: str,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """
    Services a client can book at this salon
    """
    try:
        await salon_service.get_salon(gateway, salon_id)
        return await catalog_service.list_services(gateway, salon_id)
    except SalonHubError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error in get_public_services: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while retrieving services"
        )
