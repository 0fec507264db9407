from typing import Any, Dict, List
import logging

from salonhub.core.exceptions import NotFound
from salonhub.db.gateway import PersistenceGateway
from salonhub.schemas.service import ServiceCreate

logger = logging.getLogger(__name__)

async def list_services(gateway: PersistenceGateway, salon_id: str) -> List[Dict[str, Any]]:
    services = await gateway.list_services(salon_id)
    return sorted(services, key=lambda s: s.get("name", "").lower())

async def create_service(gateway: PersistenceGateway, salon_id: str, service_in: ServiceCreate) -> Dict[str, Any]:
    """
    Add a service to a salon's catalog
    """
    service_data = service_in.model_dump()
    service_data["salon_id"] = salon_id
    service = await gateway.insert_service(service_data)
    logger.info(f"Salon {salon_id}: service {service['id']} created ({service['name']})")
    return service

async def delete_service(gateway: PersistenceGateway, salon_id: str, service_id: str) -> None:
    """
    Remove a service from the catalog. Appointments that reference it are
    kept; rescheduling them falls back to the default duration.
    """
    service = await gateway.get_service(service_id)
    if not service or service.get("salon_id") != salon_id:
        raise NotFound("Service not found")
    await gateway.delete_service(service_id)
    logger.info(f"Salon {salon_id}: service {service_id} deleted")
