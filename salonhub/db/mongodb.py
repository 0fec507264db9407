from datetime import datetime
from typing import Any, Dict, List, Optional
import logging
import re

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from salonhub.core.config import settings
from salonhub.core.exceptions import EmailAlreadyRegistered, SlotUnavailable
from salonhub.db.gateway import Document, PersistenceGateway, digits_only

logger = logging.getLogger(__name__)

CANCELLED = "CANCELLED"

class Database:
    client: AsyncIOMotorClient = None
    db = None

db = Database()

async def connect_to_mongo():
    """Connect to MongoDB."""
    try:
        logger.info("Connecting to MongoDB...")
        db.client = AsyncIOMotorClient(settings.MONGO_URI)
        db.db = db.client[settings.DB_NAME]
        logger.info("Connected to MongoDB.")

        # Create indexes for collections
        await create_indexes()

    except Exception as e:
        logger.error(f"Could not connect to MongoDB: {e}")
        raise e

async def close_mongo_connection():
    """Close MongoDB connection."""
    if db.client:
        logger.info("Closing MongoDB connection...")
        db.client.close()
        logger.info("MongoDB connection closed.")

async def create_indexes():
    """Create indexes for collections."""
    try:
        await db.db.salons.create_index("owner_email", unique=True)

        await db.db.services.create_index("salon_id")

        await db.db.appointments.create_index([("salon_id", ASCENDING), ("start_time", ASCENDING)])
        await db.db.appointments.create_index("client_id")
        # At most one live appointment per salon and start time; cancelled
        # appointments drop slot_key and leave the index.
        await db.db.appointments.create_index(
            [("salon_id", ASCENDING), ("slot_key", ASCENDING)],
            unique=True,
            partialFilterExpression={"slot_key": {"$exists": True}},
        )

        await db.db.blocked_times.create_index([("salon_id", ASCENDING), ("start_time", ASCENDING)])

        await db.db.clients.create_index([("salon_id", ASCENDING), ("whatsapp_digits", ASCENDING)])

        logger.info("MongoDB indexes created successfully.")
    except Exception as e:
        logger.error(f"Failed to create MongoDB indexes: {e}")


def _to_object_id(doc_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        return None

def _out(doc: Optional[Dict[str, Any]]) -> Optional[Document]:
    """Transform a stored document into the gateway's plain dict shape."""
    if doc is None:
        return None
    doc["id"] = str(doc.pop("_id"))
    doc.pop("slot_key", None)
    doc.pop("whatsapp_digits", None)
    return doc

def _in(doc: Document) -> Dict[str, Any]:
    data = dict(doc)
    doc_id = data.pop("id", None)
    data["_id"] = _to_object_id(doc_id) if doc_id else ObjectId()
    return data


class MongoGateway(PersistenceGateway):
    """Motor-backed gateway over the ``salons``, ``services``, ``appointments``,
    ``blocked_times`` and ``clients`` collections."""

    def __init__(self, database=None):
        self._database = database

    @property
    def database(self):
        return self._database if self._database is not None else db.db

    async def _find(self, collection: str, query: Dict[str, Any], sort_field: Optional[str] = None) -> List[Document]:
        cursor = self.database[collection].find(query)
        if sort_field:
            cursor = cursor.sort(sort_field, ASCENDING)
        docs = await cursor.to_list(length=None)
        return [_out(doc) for doc in docs]

    async def _find_one(self, collection: str, doc_id: str) -> Optional[Document]:
        object_id = _to_object_id(doc_id)
        if object_id is None:
            return None
        return _out(await self.database[collection].find_one({"_id": object_id}))

    async def _insert(self, collection: str, doc: Document) -> Document:
        data = _in(doc)
        await self.database[collection].insert_one(data)
        return _out(data)

    async def _update(self, collection: str, doc_id: str, set_data: Dict[str, Any], unset_data: Optional[Dict[str, Any]] = None) -> Optional[Document]:
        object_id = _to_object_id(doc_id)
        if object_id is None:
            return None
        update: Dict[str, Any] = {"$set": set_data}
        if unset_data:
            update["$unset"] = unset_data
        updated = await self.database[collection].find_one_and_update(
            {"_id": object_id}, update, return_document=ReturnDocument.AFTER
        )
        return _out(updated)

    async def _delete(self, collection: str, doc_id: str) -> bool:
        object_id = _to_object_id(doc_id)
        if object_id is None:
            return False
        result = await self.database[collection].delete_one({"_id": object_id})
        return result.deleted_count > 0

    # Appointments

    async def list_appointments(self, salon_id: str) -> List[Document]:
        return await self._find("appointments", {"salon_id": salon_id}, sort_field="start_time")

    async def get_appointment(self, appointment_id: str) -> Optional[Document]:
        return await self._find_one("appointments", appointment_id)

    async def insert_appointment(self, appointment: Document) -> Document:
        data = dict(appointment)
        if data.get("status") != CANCELLED:
            data["slot_key"] = data["start_time"]
        try:
            return await self._insert("appointments", data)
        except DuplicateKeyError:
            logger.info(f"Slot {data['start_time']} already taken for salon {data['salon_id']}")
            raise SlotUnavailable("Another appointment already starts at this time")

    async def update_appointment(self, appointment_id: str, patch: Document) -> Optional[Document]:
        current = await self._find_one("appointments", appointment_id)
        if current is None:
            return None
        merged = {**current, **patch}
        set_data = dict(patch)
        unset_data = None
        if merged.get("status") == CANCELLED:
            unset_data = {"slot_key": ""}
        else:
            set_data["slot_key"] = merged["start_time"]
        try:
            return await self._update("appointments", appointment_id, set_data, unset_data)
        except DuplicateKeyError:
            raise SlotUnavailable("Another appointment already starts at this time")

    async def update_appointment_status(self, appointment_id: str, status: str, updated_at: datetime) -> Optional[Document]:
        return await self.update_appointment(appointment_id, {"status": status, "updated_at": updated_at})

    async def delete_appointment(self, appointment_id: str) -> bool:
        return await self._delete("appointments", appointment_id)

    async def list_client_appointments(self, client_id: str) -> List[Document]:
        return await self._find("appointments", {"client_id": client_id}, sort_field="start_time")

    # Blocked times

    async def list_blocked_times(self, salon_id: str) -> List[Document]:
        return await self._find("blocked_times", {"salon_id": salon_id}, sort_field="start_time")

    async def insert_blocked_time(self, block: Document) -> Document:
        return await self._insert("blocked_times", block)

    async def delete_blocked_time(self, block_id: str) -> bool:
        return await self._delete("blocked_times", block_id)

    # Services

    async def list_services(self, salon_id: str) -> List[Document]:
        return await self._find("services", {"salon_id": salon_id}, sort_field="name")

    async def get_service(self, service_id: str) -> Optional[Document]:
        return await self._find_one("services", service_id)

    async def insert_service(self, service: Document) -> Document:
        return await self._insert("services", service)

    async def delete_service(self, service_id: str) -> bool:
        return await self._delete("services", service_id)

    # Salons

    async def get_salon(self, salon_id: str) -> Optional[Document]:
        return await self._find_one("salons", salon_id)

    async def get_salon_by_email(self, email: str) -> Optional[Document]:
        pattern = f"^{re.escape((email or '').strip())}$"
        return _out(await self.database.salons.find_one({"owner_email": {"$regex": pattern, "$options": "i"}}))

    async def list_salons(self) -> List[Document]:
        return await self._find("salons", {}, sort_field="created_at")

    async def insert_salon(self, salon: Document) -> Document:
        try:
            return await self._insert("salons", salon)
        except DuplicateKeyError:
            raise EmailAlreadyRegistered("Email already registered")

    async def update_salon(self, salon_id: str, patch: Document) -> Optional[Document]:
        try:
            return await self._update("salons", salon_id, dict(patch))
        except DuplicateKeyError:
            raise EmailAlreadyRegistered("Email already registered")

    # Clients

    async def find_client_by_whatsapp(self, salon_id: str, whatsapp: str) -> Optional[Document]:
        return _out(await self.database.clients.find_one(
            {"salon_id": salon_id, "whatsapp_digits": digits_only(whatsapp)}
        ))

    async def get_client(self, client_id: str) -> Optional[Document]:
        return await self._find_one("clients", client_id)

    async def insert_client(self, client: Document) -> Document:
        data = dict(client)
        data["whatsapp_digits"] = digits_only(data.get("whatsapp", ""))
        return await self._insert("clients", data)
