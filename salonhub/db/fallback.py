from datetime import datetime
from typing import Any, List, Optional
import logging

from pymongo.errors import PyMongoError

from salonhub.core.exceptions import GatewayUnavailable
from salonhub.db.gateway import Document, PersistenceGateway
from salonhub.db.local_cache import LocalCacheGateway

logger = logging.getLogger(__name__)

class FallbackGateway(PersistenceGateway):
    """
    Remote gateway with a local cache behind it.

    Successful remote calls are mirrored into the cache. When the remote
    raises a ``PyMongoError``:

    - reads are served from the cache, but only for lists the cache has
      fully synced at least once (an unsynced list would show free time
      that may actually be booked);
    - writes are never redirected to the cache and fail with
      ``GatewayUnavailable``.
    """

    def __init__(self, primary: PersistenceGateway, cache: Optional[LocalCacheGateway] = None):
        self.primary = primary
        self.cache = cache or LocalCacheGateway(authoritative=False)

    async def _read(self, method: str, *args: Any, sync: Optional[tuple] = None) -> Any:
        try:
            return await getattr(self.primary, method)(*args)
        except PyMongoError as e:
            if sync is not None and not self.cache.is_synced(*sync):
                logger.error(f"Remote store failed on {method} and no cached copy exists: {e}")
                raise GatewayUnavailable("The datastore is unreachable") from e
            cached = await getattr(self.cache, method)(*args)
            if cached is None:
                # A cache miss is not proof that the document does not exist.
                logger.error(f"Remote store failed on {method} and the document is not cached: {e}")
                raise GatewayUnavailable("The datastore is unreachable") from e
            logger.warning(f"Remote store failed on {method}, serving cached data: {e}")
            return cached

    async def _write(self, method: str, *args: Any) -> Any:
        try:
            return await getattr(self.primary, method)(*args)
        except PyMongoError as e:
            logger.error(f"Remote store failed on {method}: {e}")
            raise GatewayUnavailable("The datastore is unreachable") from e

    def _remember_one(self, kind: str, doc: Optional[Document]) -> Optional[Document]:
        if doc:
            self.cache.remember(kind, [doc])
        return doc

    # Appointments

    async def list_appointments(self, salon_id: str) -> List[Document]:
        docs = await self._read("list_appointments", salon_id, sync=("appointments", salon_id))
        self.cache.remember("appointments", docs, scope=salon_id)
        return docs

    async def get_appointment(self, appointment_id: str) -> Optional[Document]:
        return self._remember_one("appointments", await self._read("get_appointment", appointment_id))

    async def insert_appointment(self, appointment: Document) -> Document:
        return self._remember_one("appointments", await self._write("insert_appointment", appointment))

    async def update_appointment(self, appointment_id: str, patch: Document) -> Optional[Document]:
        return self._remember_one("appointments", await self._write("update_appointment", appointment_id, patch))

    async def update_appointment_status(self, appointment_id: str, status: str, updated_at: datetime) -> Optional[Document]:
        return self._remember_one(
            "appointments", await self._write("update_appointment_status", appointment_id, status, updated_at)
        )

    async def delete_appointment(self, appointment_id: str) -> bool:
        deleted = await self._write("delete_appointment", appointment_id)
        self.cache.forget("appointments", appointment_id)
        return deleted

    async def list_client_appointments(self, client_id: str) -> List[Document]:
        docs = await self._read(
            "list_client_appointments", client_id, sync=("appointments", client_id)
        )
        self.cache.remember("appointments", docs, scope=client_id, scope_field="client_id")
        return docs

    # Blocked times

    async def list_blocked_times(self, salon_id: str) -> List[Document]:
        docs = await self._read("list_blocked_times", salon_id, sync=("blocked_times", salon_id))
        self.cache.remember("blocked_times", docs, scope=salon_id)
        return docs

    async def insert_blocked_time(self, block: Document) -> Document:
        return self._remember_one("blocked_times", await self._write("insert_blocked_time", block))

    async def delete_blocked_time(self, block_id: str) -> bool:
        deleted = await self._write("delete_blocked_time", block_id)
        self.cache.forget("blocked_times", block_id)
        return deleted

    # Services

    async def list_services(self, salon_id: str) -> List[Document]:
        docs = await self._read("list_services", salon_id, sync=("services", salon_id))
        self.cache.remember("services", docs, scope=salon_id)
        return docs

    async def get_service(self, service_id: str) -> Optional[Document]:
        return self._remember_one("services", await self._read("get_service", service_id))

    async def insert_service(self, service: Document) -> Document:
        return self._remember_one("services", await self._write("insert_service", service))

    async def delete_service(self, service_id: str) -> bool:
        deleted = await self._write("delete_service", service_id)
        self.cache.forget("services", service_id)
        return deleted

    # Salons

    async def get_salon(self, salon_id: str) -> Optional[Document]:
        return self._remember_one("salons", await self._read("get_salon", salon_id))

    async def get_salon_by_email(self, email: str) -> Optional[Document]:
        return self._remember_one("salons", await self._read("get_salon_by_email", email))

    async def list_salons(self) -> List[Document]:
        docs = await self._read("list_salons", sync=("salons", "*"))
        self.cache.remember("salons", docs, scope="*")
        return docs

    async def insert_salon(self, salon: Document) -> Document:
        return self._remember_one("salons", await self._write("insert_salon", salon))

    async def update_salon(self, salon_id: str, patch: Document) -> Optional[Document]:
        return self._remember_one("salons", await self._write("update_salon", salon_id, patch))

    # Clients

    async def find_client_by_whatsapp(self, salon_id: str, whatsapp: str) -> Optional[Document]:
        return self._remember_one("clients", await self._read("find_client_by_whatsapp", salon_id, whatsapp))

    async def get_client(self, client_id: str) -> Optional[Document]:
        return self._remember_one("clients", await self._read("get_client", client_id))

    async def insert_client(self, client: Document) -> Document:
        return self._remember_one("clients", await self._write("insert_client", client))
