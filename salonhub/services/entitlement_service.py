from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
import logging

from salonhub.core.config import settings
from salonhub.core.exceptions import InvalidTransition, NotFound
from salonhub.core.intervals import difference_in_days
from salonhub.core.status_styles import subscription_badge
from salonhub.db.gateway import PersistenceGateway
from salonhub.schemas.salon import SubscriptionStatus
from salonhub.utils.whatsapp import build_link, renewal_message, support_link

logger = logging.getLogger(__name__)

EXPIRATION_BUCKETS = ("expired", "7days", "30days")

def _status(salon: Dict[str, Any]) -> SubscriptionStatus:
    return SubscriptionStatus(salon.get("subscription_status") or SubscriptionStatus.TRIAL.value)

def _days_used(salon: Dict[str, Any], now: datetime) -> int:
    return difference_in_days(now, salon["created_at"])

def trial_expired(salon: Dict[str, Any], now: datetime) -> bool:
    return _status(salon) == SubscriptionStatus.TRIAL and _days_used(salon, now) > settings.TRIAL_DAYS

def is_entitled(salon: Dict[str, Any], now: datetime) -> bool:
    """
    Whether the tenant may use the admin surface and take bookings.

    The lifetime flag wins over every stored status, BLOCKED included.
    """
    if salon.get("is_lifetime_free"):
        return True
    status = _status(salon)
    if status == SubscriptionStatus.ACTIVE:
        end_date = salon.get("subscription_end_date")
        return end_date is None or end_date >= now
    if status == SubscriptionStatus.TRIAL:
        return _days_used(salon, now) <= settings.TRIAL_DAYS
    return False

def derive_status(salon: Dict[str, Any], now: datetime) -> SubscriptionStatus:
    """
    Status to display. A TRIAL past its window or an ACTIVE past its end date
    reads as EXPIRED; the stored value is left as it is.
    """
    status = _status(salon)
    if salon.get("is_lifetime_free"):
        return status
    if trial_expired(salon, now):
        return SubscriptionStatus.EXPIRED
    end_date = salon.get("subscription_end_date")
    if status == SubscriptionStatus.ACTIVE and end_date is not None and end_date < now:
        return SubscriptionStatus.EXPIRED
    return status

def days_remaining(salon: Dict[str, Any], now: datetime) -> Optional[int]:
    """Days left on the trial or paid period; None for lifetime tenants."""
    if salon.get("is_lifetime_free"):
        return None
    if _status(salon) == SubscriptionStatus.TRIAL:
        return max(0, settings.TRIAL_DAYS - _days_used(salon, now))
    end_date = salon.get("subscription_end_date")
    if end_date is not None:
        return max(0, difference_in_days(end_date, now))
    return 0

def describe_entitlement(salon: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Everything the "my plan" screen shows for a tenant."""
    entitled = is_entitled(salon, now)
    renewal_link = None
    if not entitled:
        renewal_link = support_link(renewal_message(salon.get("name", ""), salon.get("owner_email", "")))
    return {
        "salon_id": salon["id"],
        "stored_status": _status(salon),
        "derived_status": derive_status(salon, now),
        "is_lifetime_free": bool(salon.get("is_lifetime_free")),
        "entitled": entitled,
        "trial_expired": trial_expired(salon, now),
        "days_remaining": days_remaining(salon, now),
        "subscription_plan": salon.get("subscription_plan", "FREE"),
        "subscription_end_date": salon.get("subscription_end_date"),
        "badge": subscription_badge(derive_status(salon, now), salon.get("is_lifetime_free", False)),
        "renewal_link": renewal_link,
    }

# Transitions. Each returns the patch to write onto the salon document.

def grant_access(salon: Dict[str, Any], now: datetime, days: int) -> Dict[str, Any]:
    if days <= 0:
        raise InvalidTransition("Access must be granted for at least one day")
    return {
        "subscription_status": SubscriptionStatus.ACTIVE.value,
        "subscription_end_date": now + timedelta(days=days),
        "is_lifetime_free": False,
    }

def block(salon: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    allowed = (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL, SubscriptionStatus.EXPIRED)
    if _status(salon) not in allowed:
        raise InvalidTransition(f"Cannot block a salon in status {_status(salon).value}")
    return {"subscription_status": SubscriptionStatus.BLOCKED.value}

def unblock(salon: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    if _status(salon) != SubscriptionStatus.BLOCKED:
        raise InvalidTransition(f"Cannot unblock a salon in status {_status(salon).value}")
    return {"subscription_status": SubscriptionStatus.ACTIVE.value}

def cancel(salon: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    return {"subscription_status": SubscriptionStatus.CANCELLED.value}

def set_lifetime(salon: Dict[str, Any], now: datetime, flag: bool) -> Dict[str, Any]:
    return {"is_lifetime_free": bool(flag)}

TRANSITIONS: Dict[str, Callable[..., Dict[str, Any]]] = {
    "grant": grant_access,
    "block": block,
    "unblock": unblock,
    "cancel": cancel,
    "lifetime": set_lifetime,
}

async def apply_transition(
    gateway: PersistenceGateway,
    salon_id: str,
    action: str,
    now: datetime,
    **params: Any,
) -> Dict[str, Any]:
    """
    Load a salon, run one admin transition on it and persist the patch.

    Args:
        gateway: Datastore holding the salon
        salon_id: Target tenant
        action: One of ``TRANSITIONS``
        now: Current local time
        params: Extra arguments of the transition (``days`` or ``flag``)

    Returns:
        The updated salon document
    """
    transition = TRANSITIONS.get(action)
    if transition is None:
        raise InvalidTransition(f"Unknown transition: {action}")

    salon = await gateway.get_salon(salon_id)
    if not salon:
        raise NotFound("Salon not found")

    patch = transition(salon, now, **params)
    updated = await gateway.update_salon(salon_id, patch)
    if updated is None:
        raise NotFound("Salon not found")
    logger.info(
        f"Salon {salon_id}: {action} "
        f"({salon.get('subscription_status')} -> {updated.get('subscription_status')})"
    )
    return updated

async def reconcile_statuses(gateway: PersistenceGateway, now: datetime) -> List[str]:
    """
    Write EXPIRED onto every salon whose stored TRIAL or ACTIVE status has
    lapsed. Runs only when an administrator triggers it.

    Returns:
        Ids of the salons that were updated
    """
    updated_ids = []
    for salon in await gateway.list_salons():
        if _status(salon) not in (SubscriptionStatus.TRIAL, SubscriptionStatus.ACTIVE):
            continue
        if derive_status(salon, now) != SubscriptionStatus.EXPIRED:
            continue
        await gateway.update_salon(salon["id"], {"subscription_status": SubscriptionStatus.EXPIRED.value})
        updated_ids.append(salon["id"])
    logger.info(f"Reconciled subscription status of {len(updated_ids)} salons")
    return updated_ids

# Super-admin console helpers

def days_to_expiry(salon: Dict[str, Any], now: datetime) -> Optional[int]:
    """Signed days until the paid period ends; None for lifetime or open-ended tenants."""
    end_date = salon.get("subscription_end_date")
    if salon.get("is_lifetime_free") or end_date is None:
        return None
    return difference_in_days(end_date, now)

def in_expiration_bucket(salon: Dict[str, Any], bucket: str, now: datetime) -> bool:
    if bucket not in EXPIRATION_BUCKETS:
        raise ValueError(f"Unknown expiration filter: {bucket}")
    days = days_to_expiry(salon, now)
    if days is None:
        return False
    if bucket == "expired":
        return days < 0
    if bucket == "7days":
        return 0 <= days <= 7
    return 0 <= days <= 30

def activity_flag(last_login: Optional[datetime], now: datetime) -> str:
    if last_login is None:
        return "never"
    idle_days = difference_in_days(now, last_login)
    if idle_days > 30:
        return "risk"
    if idle_days > 7:
        return "away"
    return "active"

def reminder_message(salon: Dict[str, Any], now: datetime) -> str:
    name = salon.get("name", "")
    status = derive_status(salon, now)
    days = days_to_expiry(salon, now)
    if status == SubscriptionStatus.EXPIRED:
        return (
            f"Hello {name}, we noticed your subscription has expired. "
            f"Would you like to renew it to unlock bookings again?"
        )
    if status == SubscriptionStatus.TRIAL:
        return f"Hello {name}, how is your experience with the system so far? Need any help with the setup?"
    if days is not None and days < 5:
        return f"Hello! Your subscription ends in {days} days. Shall we renew it?"
    return "Hello, how are you? Just checking whether you need any support with the system."

def reminder_link(salon: Dict[str, Any], now: datetime) -> Optional[str]:
    return build_link(salon.get("phone", ""), reminder_message(salon, now))

def salon_overview(salon: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """One row of the super-admin tenant list."""
    derived = derive_status(salon, now)
    return {
        "id": salon["id"],
        "name": salon.get("name", ""),
        "owner_email": salon.get("owner_email", ""),
        "phone": salon.get("phone", ""),
        "subscription_plan": salon.get("subscription_plan", "FREE"),
        "stored_status": _status(salon),
        "derived_status": derived,
        "entitled": is_entitled(salon, now),
        "days_to_expiry": days_to_expiry(salon, now),
        "activity": activity_flag(salon.get("last_login"), now),
        "badge": subscription_badge(derived, salon.get("is_lifetime_free", False)),
        "reminder_link": reminder_link(salon, now),
    }

async def list_salon_overviews(
    gateway: PersistenceGateway,
    now: datetime,
    status: Optional[SubscriptionStatus] = None,
    expiration: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Tenant list for the super-admin console.

    ``status`` matches the stored status, ``expiration`` one of
    ``EXPIRATION_BUCKETS`` and ``search`` a case-insensitive substring of the
    name or owner email.
    """
    needle = (search or "").strip().lower()
    rows = []
    for salon in await gateway.list_salons():
        if needle and needle not in salon.get("name", "").lower() and needle not in salon.get("owner_email", "").lower():
            continue
        if status is not None and _status(salon) != status:
            continue
        if expiration and not in_expiration_bucket(salon, expiration, now):
            continue
        rows.append(salon_overview(salon, now))
    return rows
