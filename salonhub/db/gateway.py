from datetime import datetime
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

Document = Dict[str, Any]


class PersistenceGateway(ABC):
    """
    Per-tenant datastore contract used by the scheduling services.

    Documents are plain dicts with snake_case keys and a string ``id``.
    Every ``update_*`` returns the updated document, or None when the id
    does not exist. ``insert_appointment`` raises ``SlotUnavailable`` when
    the backend's own uniqueness rule rejects the write.
    """

    # Appointments
    @abstractmethod
    async def list_appointments(self, salon_id: str) -> List[Document]: ...

    @abstractmethod
    async def get_appointment(self, appointment_id: str) -> Optional[Document]: ...

    @abstractmethod
    async def insert_appointment(self, appointment: Document) -> Document: ...

    @abstractmethod
    async def update_appointment(self, appointment_id: str, patch: Document) -> Optional[Document]: ...

    @abstractmethod
    async def update_appointment_status(self, appointment_id: str, status: str, updated_at: datetime) -> Optional[Document]: ...

    @abstractmethod
    async def delete_appointment(self, appointment_id: str) -> bool: ...

    @abstractmethod
    async def list_client_appointments(self, client_id: str) -> List[Document]: ...

    # Blocked times
    @abstractmethod
    async def list_blocked_times(self, salon_id: str) -> List[Document]: ...

    @abstractmethod
    async def insert_blocked_time(self, block: Document) -> Document: ...

    @abstractmethod
    async def delete_blocked_time(self, block_id: str) -> bool: ...

    # Services
    @abstractmethod
    async def list_services(self, salon_id: str) -> List[Document]: ...

    @abstractmethod
    async def get_service(self, service_id: str) -> Optional[Document]: ...

    @abstractmethod
    async def insert_service(self, service: Document) -> Document: ...

    @abstractmethod
    async def delete_service(self, service_id: str) -> bool: ...

    # Salons
    @abstractmethod
    async def get_salon(self, salon_id: str) -> Optional[Document]: ...

    @abstractmethod
    async def get_salon_by_email(self, email: str) -> Optional[Document]: ...

    @abstractmethod
    async def list_salons(self) -> List[Document]: ...

    @abstractmethod
    async def insert_salon(self, salon: Document) -> Document: ...

    @abstractmethod
    async def update_salon(self, salon_id: str, patch: Document) -> Optional[Document]: ...

    # Clients
    @abstractmethod
    async def find_client_by_whatsapp(self, salon_id: str, whatsapp: str) -> Optional[Document]: ...

    @abstractmethod
    async def get_client(self, client_id: str) -> Optional[Document]: ...

    @abstractmethod
    async def insert_client(self, client: Document) -> Document: ...


def digits_only(phone: str) -> str:
    return "".join(ch for ch in (phone or "") if ch.isdigit())
