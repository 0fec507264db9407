from pydantic import BaseModel, Field, field_validator, EmailStr
from typing import Optional, List
from datetime import datetime
from enum import Enum
import re

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

class SubscriptionStatus(str, Enum):
    TRIAL = "TRIAL"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    BLOCKED = "BLOCKED"
    CANCELLED = "CANCELLED"

class TimeRange(BaseModel):
    start: str  # "09:00"
    end: str    # "12:00"

    @field_validator("start", "end")
    @classmethod
    def check_hhmm(cls, value: str) -> str:
        if not HHMM_PATTERN.match(value):
            raise ValueError("Time must use the HH:MM 24-hour format")
        return value

class DaySchedule(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6)  # 0 = Sunday, 1 = Monday...
    is_open: bool = False
    slots: List[TimeRange] = []

class SalonSignup(BaseModel):
    owner_email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = None

class SalonLogin(BaseModel):
    email: str
    password: str

class SalonUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    logo_url: Optional[str] = None
    owner_email: Optional[EmailStr] = None
    opening_hours: Optional[List[DaySchedule]] = None

    @field_validator("opening_hours")
    @classmethod
    def one_entry_per_weekday(cls, value):
        if value is None:
            return value
        days = [d.day_of_week for d in value]
        if len(days) != len(set(days)):
            raise ValueError("Each weekday may appear only once in opening_hours")
        return value

class SalonResponse(BaseModel):
    id: str
    name: str
    slug: str
    phone: str
    address: str
    logo_url: str
    opening_hours: List[DaySchedule]
    subscription_status: SubscriptionStatus
    subscription_plan: str
    subscription_end_date: Optional[datetime] = None
    is_lifetime_free: bool
    owner_email: str
    created_at: datetime
    last_login: Optional[datetime] = None

class PublicSalonResponse(BaseModel):
    id: str
    name: str
    slug: str
    phone: str
    address: str
    logo_url: str
    opening_hours: List[DaySchedule]
    accepting_bookings: bool

class StatusBadge(BaseModel):
    label: str
    style: str
    icon: str

class EntitlementResponse(BaseModel):
    salon_id: str
    stored_status: SubscriptionStatus
    derived_status: SubscriptionStatus
    is_lifetime_free: bool
    entitled: bool
    trial_expired: bool
    days_remaining: Optional[int] = None  # None means no end (lifetime)
    subscription_plan: str
    subscription_end_date: Optional[datetime] = None
    badge: StatusBadge
    renewal_link: Optional[str] = None

class GrantAccess(BaseModel):
    days: int = Field(..., gt=0, le=3650)

class LifetimeFlag(BaseModel):
    is_lifetime_free: bool

class SalonOverview(BaseModel):
    """Row of the super-admin tenant list."""
    id: str
    name: str
    owner_email: str
    phone: str
    subscription_plan: str
    stored_status: SubscriptionStatus
    derived_status: SubscriptionStatus
    entitled: bool
    days_to_expiry: Optional[int] = None
    activity: Optional[str] = None
    badge: StatusBadge
    reminder_link: Optional[str] = None
