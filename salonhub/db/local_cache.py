from copy import deepcopy
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple

from bson import ObjectId

from salonhub.core.exceptions import SlotUnavailable
from salonhub.db.gateway import Document, PersistenceGateway, digits_only


CANCELLED = "CANCELLED"

class LocalCacheGateway(PersistenceGateway):
    """
    In-process document store.

    Used on its own (``STORAGE_BACKEND=memory``) it is the authoritative
    store. Behind ``FallbackGateway`` it is a cache of what the remote
    datastore last returned: ``remember`` upserts documents and records which
    tenant lists have been synced, so the fallback can tell a cached empty
    list apart from one it never saw.
    """

    KINDS = ("salons", "services", "appointments", "blocked_times", "clients")

    def __init__(self, authoritative: bool = True):
        self.authoritative = authoritative
        self._store: Dict[str, Dict[str, Document]] = {kind: {} for kind in self.KINDS}
        self._synced: Set[Tuple[str, str]] = set()

    # Cache bookkeeping

    def remember(
        self,
        kind: str,
        docs: List[Document],
        scope: Optional[str] = None,
        scope_field: str = "salon_id",
    ) -> None:
        """Upsert documents coming from the remote store.

        With ``scope`` the docs are a complete list (all appointments of a
        salon, all salons when scope is "*"), so cached entries of that scope
        which the remote no longer returns are dropped.
        """
        bucket = self._store[kind]
        if scope is not None:
            stale = [
                doc_id for doc_id, doc in bucket.items()
                if scope == "*" or doc.get(scope_field) == scope
            ]
            for doc_id in stale:
                del bucket[doc_id]
            self._synced.add((kind, scope))
        for doc in docs:
            if doc and doc.get("id"):
                bucket[doc["id"]] = deepcopy(doc)

    def forget(self, kind: str, doc_id: str) -> None:
        self._store[kind].pop(doc_id, None)

    def is_synced(self, kind: str, scope: str) -> bool:
        return self.authoritative or (kind, scope) in self._synced

    # Helpers

    @staticmethod
    def _new_id() -> str:
        return str(ObjectId())

    def _list(self, kind: str, **filters: Any) -> List[Document]:
        return [
            deepcopy(doc) for doc in self._store[kind].values()
            if all(doc.get(key) == value for key, value in filters.items())
        ]

    def _get(self, kind: str, doc_id: str) -> Optional[Document]:
        doc = self._store[kind].get(doc_id)
        return deepcopy(doc) if doc else None

    def _insert(self, kind: str, doc: Document) -> Document:
        data = deepcopy(doc)
        data.setdefault("id", self._new_id())
        self._store[kind][data["id"]] = data
        return deepcopy(data)

    def _update(self, kind: str, doc_id: str, patch: Document) -> Optional[Document]:
        doc = self._store[kind].get(doc_id)
        if doc is None:
            return None
        doc.update(deepcopy(patch))
        return deepcopy(doc)

    def _check_slot_taken(self, salon_id: str, start_time: datetime, ignore_id: Optional[str] = None) -> None:
        # Same rule as the remote partial unique index on (salon_id, start_time).
        for doc in self._store["appointments"].values():
            if doc["id"] == ignore_id or doc.get("status") == CANCELLED:
                continue
            if doc.get("salon_id") == salon_id and doc.get("start_time") == start_time:
                raise SlotUnavailable("Another appointment already starts at this time")

    # Appointments

    async def list_appointments(self, salon_id: str) -> List[Document]:
        return self._list("appointments", salon_id=salon_id)

    async def get_appointment(self, appointment_id: str) -> Optional[Document]:
        return self._get("appointments", appointment_id)

    async def insert_appointment(self, appointment: Document) -> Document:
        if appointment.get("status") != CANCELLED:
            self._check_slot_taken(appointment["salon_id"], appointment["start_time"])
        return self._insert("appointments", appointment)

    async def update_appointment(self, appointment_id: str, patch: Document) -> Optional[Document]:
        current = self._store["appointments"].get(appointment_id)
        if current is None:
            return None
        merged = {**current, **patch}
        if merged.get("status") != CANCELLED:
            self._check_slot_taken(merged["salon_id"], merged["start_time"], ignore_id=appointment_id)
        return self._update("appointments", appointment_id, patch)

    async def update_appointment_status(self, appointment_id: str, status: str, updated_at: datetime) -> Optional[Document]:
        return await self.update_appointment(appointment_id, {"status": status, "updated_at": updated_at})

    async def delete_appointment(self, appointment_id: str) -> bool:
        return self._store["appointments"].pop(appointment_id, None) is not None

    async def list_client_appointments(self, client_id: str) -> List[Document]:
        return self._list("appointments", client_id=client_id)

    # Blocked times

    async def list_blocked_times(self, salon_id: str) -> List[Document]:
        return self._list("blocked_times", salon_id=salon_id)

    async def insert_blocked_time(self, block: Document) -> Document:
        return self._insert("blocked_times", block)

    async def delete_blocked_time(self, block_id: str) -> bool:
        return self._store["blocked_times"].pop(block_id, None) is not None

    # Services

    async def list_services(self, salon_id: str) -> List[Document]:
        return self._list("services", salon_id=salon_id)

    async def get_service(self, service_id: str) -> Optional[Document]:
        return self._get("services", service_id)

    async def insert_service(self, service: Document) -> Document:
        return self._insert("services", service)

    async def delete_service(self, service_id: str) -> bool:
        return self._store["services"].pop(service_id, None) is not None

    # Salons

    async def get_salon(self, salon_id: str) -> Optional[Document]:
        return self._get("salons", salon_id)

    async def get_salon_by_email(self, email: str) -> Optional[Document]:
        wanted = (email or "").strip().lower()
        for doc in self._store["salons"].values():
            if (doc.get("owner_email") or "").lower() == wanted:
                return deepcopy(doc)
        return None

    async def list_salons(self) -> List[Document]:
        return self._list("salons")

    async def insert_salon(self, salon: Document) -> Document:
        return self._insert("salons", salon)

    async def update_salon(self, salon_id: str, patch: Document) -> Optional[Document]:
        return self._update("salons", salon_id, patch)

    # Clients

    async def find_client_by_whatsapp(self, salon_id: str, whatsapp: str) -> Optional[Document]:
        wanted = digits_only(whatsapp)
        for doc in self._store["clients"].values():
            if doc.get("salon_id") == salon_id and digits_only(doc.get("whatsapp", "")) == wanted:
                return deepcopy(doc)
        return None

    async def get_client(self, client_id: str) -> Optional[Document]:
        return self._get("clients", client_id)

    async def insert_client(self, client: Document) -> Document:
        return self._insert("clients", client)
