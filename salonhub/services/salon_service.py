from datetime import datetime
from typing import Any, Dict, Optional
import logging
import re
import secrets

from salonhub.core.auth import get_password_hash, verify_password
from salonhub.core.config import settings
from salonhub.core.exceptions import EmailAlreadyRegistered, NotFound, TenantNotEntitled
from salonhub.db.gateway import PersistenceGateway
from salonhub.schemas.salon import SalonSignup, SalonUpdate, SubscriptionStatus
from salonhub.services.entitlement_service import is_entitled
from salonhub.services.opening_hours import default_opening_hours

logger = logging.getLogger(__name__)

def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "salon"

async def get_salon(gateway: PersistenceGateway, salon_id: str) -> Dict[str, Any]:
    salon = await gateway.get_salon(salon_id)
    if not salon:
        raise NotFound("Salon not found")
    return salon

async def signup_salon(gateway: PersistenceGateway, signup: SalonSignup, now: datetime) -> Dict[str, Any]:
    """
    Register a new salon on a trial with the default opening hours.
    """
    email = signup.owner_email.strip().lower()
    if await gateway.get_salon_by_email(email):
        raise EmailAlreadyRegistered("Email already registered")

    name = (signup.name or "").strip() or email.split("@")[0]
    salon_data = {
        "name": name,
        "slug": slugify(name),
        "phone": "",
        "address": "",
        "logo_url": "",
        "opening_hours": [d.model_dump() for d in default_opening_hours()],
        "subscription_status": SubscriptionStatus.TRIAL.value,
        "subscription_plan": "FREE",
        "subscription_end_date": None,
        "is_lifetime_free": False,
        "owner_email": email,
        "password_hash": get_password_hash(signup.password),
        "created_at": now,
        "last_login": None,
    }
    salon = await gateway.insert_salon(salon_data)
    logger.info(f"Salon {salon['id']} registered for {email}")
    return salon

async def authenticate_salon(
    gateway: PersistenceGateway,
    email: str,
    password: str,
    now: datetime,
) -> Optional[Dict[str, Any]]:
    """
    Check owner credentials and record the login.

    Returns:
        The salon document, or None when the credentials do not match

    Raises:
        TenantNotEntitled: the credentials are right but the subscription
            does not allow access
    """
    salon = await gateway.get_salon_by_email(email)
    if not salon or not salon.get("password_hash"):
        return None
    if not verify_password(password, salon["password_hash"]):
        return None

    if not is_entitled(salon, now):
        logger.info(f"Login refused for salon {salon['id']}: subscription {salon.get('subscription_status')}")
        raise TenantNotEntitled("Subscription inactive. Contact support to renew your access.")

    return await gateway.update_salon(salon["id"], {"last_login": now}) or salon

def is_super_admin_login(email: str, password: str) -> bool:
    if not settings.SUPER_ADMIN_PASSWORD:
        return False
    email_ok = secrets.compare_digest(email.strip().lower(), settings.SUPER_ADMIN_EMAIL.lower())
    password_ok = secrets.compare_digest(password, settings.SUPER_ADMIN_PASSWORD)
    return email_ok and password_ok

async def update_salon_settings(
    gateway: PersistenceGateway,
    salon_id: str,
    salon_update: SalonUpdate,
) -> Dict[str, Any]:
    """
    Update a salon's profile and opening hours. Subscription fields are
    never touched here.
    """
    update_data = salon_update.model_dump(exclude_unset=True)
    if "opening_hours" in update_data and update_data["opening_hours"] is not None:
        update_data["opening_hours"] = sorted(update_data["opening_hours"], key=lambda d: d["day_of_week"])
    if update_data.get("owner_email"):
        update_data["owner_email"] = update_data["owner_email"].lower()
        other = await gateway.get_salon_by_email(update_data["owner_email"])
        if other and other["id"] != salon_id:
            raise EmailAlreadyRegistered("Email already registered")
    if update_data.get("name"):
        update_data["slug"] = slugify(update_data["name"])

    if not update_data:
        return await get_salon(gateway, salon_id)

    salon = await gateway.update_salon(salon_id, update_data)
    if not salon:
        raise NotFound("Salon not found")
    return salon

def public_view(salon: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Fields the booking page may show, plus whether it takes bookings."""
    return {
        "id": salon["id"],
        "name": salon.get("name", ""),
        "slug": salon.get("slug", ""),
        "phone": salon.get("phone", ""),
        "address": salon.get("address", ""),
        "logo_url": salon.get("logo_url", ""),
        "opening_hours": salon.get("opening_hours", []),
        "accepting_bookings": is_entitled(salon, now),
    }
