from typing import Optional
import logging

from salonhub.core.config import settings
from salonhub.core.exceptions import GatewayUnavailable
from salonhub.db.fallback import FallbackGateway
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.local_cache import LocalCacheGateway
from salonhub.db.mongodb import MongoGateway, close_mongo_connection, connect_to_mongo

logger = logging.getLogger(__name__)

class GatewayHolder:
    gateway: Optional[PersistenceGateway] = None

holder = GatewayHolder()

async def open_gateway() -> PersistenceGateway:
    """Build the gateway selected by STORAGE_BACKEND."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "memory":
        logger.info("Using the in-process store (STORAGE_BACKEND=memory).")
        holder.gateway = LocalCacheGateway(authoritative=True)
    elif backend == "mongo":
        await connect_to_mongo()
        holder.gateway = FallbackGateway(MongoGateway(), LocalCacheGateway(authoritative=False))
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
    return holder.gateway

async def close_gateway():
    if isinstance(holder.gateway, FallbackGateway):
        await close_mongo_connection()
    holder.gateway = None

async def get_gateway() -> PersistenceGateway:
    """FastAPI dependency returning the active gateway."""
    if holder.gateway is None:
        raise GatewayUnavailable("The datastore has not been initialised")
    return holder.gateway
