from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum

from salonhub.core.clock import to_local_naive

class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

class AppointmentDraft(BaseModel):
    salon_id: str
    service_id: str
    client_id: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus = AppointmentStatus.CONFIRMED

    @field_validator("start_time", "end_time")
    @classmethod
    def as_local_time(cls, value: datetime) -> datetime:
        return to_local_naive(value)

class AppointmentCreate(BaseModel):
    """Admin-side booking; end_time defaults to the service duration."""
    service_id: str
    client_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: AppointmentStatus = AppointmentStatus.CONFIRMED

    @field_validator("start_time", "end_time")
    @classmethod
    def as_local_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(value)

class PublicBookingCreate(BaseModel):
    service_id: str
    start_time: datetime
    client_name: str = Field(..., min_length=1)
    client_phone: str

    @field_validator("client_phone")
    @classmethod
    def check_whatsapp(cls, value: str) -> str:
        if len([ch for ch in value if ch.isdigit()]) < 10:
            raise ValueError("Please provide a valid WhatsApp number")
        return value

    @field_validator("start_time")
    @classmethod
    def as_local_time(cls, value: datetime) -> datetime:
        return to_local_naive(value)

class AppointmentReschedule(BaseModel):
    start_time: datetime
    end_time: Optional[datetime] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def as_local_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(value)

class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus

class AppointmentResponse(BaseModel):
    id: str
    salon_id: str
    service_id: str
    client_id: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

class BookingConfirmation(BaseModel):
    appointment: AppointmentResponse
    whatsapp_link: Optional[str] = None

class ClientHistoryItem(BaseModel):
    id: str
    service_id: str
    service_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus

class ClientHistoryResponse(BaseModel):
    phone: str
    appointments: List[ClientHistoryItem] = []
