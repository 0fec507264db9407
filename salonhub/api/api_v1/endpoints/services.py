from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from salonhub.api.deps import require_entitled_salon, to_http_exception
from salonhub.core.exceptions import SalonHubError
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.provider import get_gateway
from salonhub.schemas.service import ServiceCreate, ServiceResponse
from salonhub.services import catalog_service

router = APIRouter()

@router.get("/me", response_model=List[ServiceResponse])
async def list_my_services(
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Any:
    try:
        return await catalog_service.list_services(gateway, salon["id"])
    except SalonHubError as e:
        raise to_http_exception(e)

@router.post("/me", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_my_service(
    service_in: ServiceCreate,
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Any:
    """
    Add a service to the salon's catalog
    """
    try:
        return await catalog_service.create_service(gateway, salon["id"], service_in)
    except SalonHubError as e:
        raise to_http_exception(e)

@router.delete("/me/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_service(
    service_id: str,
    salon: Dict[str, Any] = Depends(require_entitled_salon),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    try:
        await catalog_service.delete_service(gateway, salon["id"], service_id)
    except SalonHubError as e:
        raise to_http_exception(e)
