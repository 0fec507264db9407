from datetime import datetime
from typing import Any, Dict, Optional
import logging

from salonhub.db.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

async def find_or_create_client(
    gateway: PersistenceGateway,
    salon_id: str,
    name: str,
    whatsapp: str,
    now: datetime,
) -> Dict[str, Any]:
    """
    Return the salon's client with this WhatsApp number, creating it on first
    booking. Numbers are compared on their digits only.
    """
    existing = await gateway.find_client_by_whatsapp(salon_id, whatsapp)
    if existing:
        return existing

    client = await gateway.insert_client({
        "salon_id": salon_id,
        "name": name.strip(),
        "whatsapp": whatsapp,
        "created_at": now,
    })
    logger.info(f"Salon {salon_id}: new client {client['id']}")
    return client

async def get_client_by_phone(gateway: PersistenceGateway, salon_id: str, phone: str) -> Optional[Dict[str, Any]]:
    return await gateway.find_client_by_whatsapp(salon_id, phone)
