from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, date
from enum import Enum

from salonhub.core.clock import to_local_naive
from salonhub.schemas.salon import StatusBadge

class BusyInterval(BaseModel):
    start: datetime
    end: datetime

class SlotReason(str, Enum):
    FREE = "free"
    BUSY = "busy"
    PAST = "past"

class SlotInfo(BaseModel):
    time: datetime
    is_available: bool
    reason: SlotReason

class AvailableSlotsResponse(BaseModel):
    salon_id: str
    service_id: str
    date: date
    duration_min: int
    slots: List[datetime] = []

class SlotGridResponse(BaseModel):
    salon_id: str
    service_id: str
    date: date
    slots: List[SlotInfo] = []

class BlockedTimeCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    reason: str = Field("", max_length=200)

    @field_validator("start_time", "end_time")
    @classmethod
    def as_local_time(cls, value: datetime) -> datetime:
        return to_local_naive(value)

class BlockedTimeResponse(BaseModel):
    id: str
    salon_id: str
    start_time: datetime
    end_time: datetime
    reason: str = ""

class AgendaEntry(BaseModel):
    kind: str  # "appointment" or "block"
    id: str
    start_time: datetime
    end_time: datetime
    status: Optional[str] = None
    reason: Optional[str] = None
    service_id: Optional[str] = None
    client_id: Optional[str] = None
    badge: Optional[StatusBadge] = None

class DayAgendaResponse(BaseModel):
    date: date
    entries: List[AgendaEntry] = []
