from typing import Dict, Optional

from salonhub.schemas.appointment import AppointmentStatus
from salonhub.schemas.salon import StatusBadge, SubscriptionStatus

# Single lookup table for every status badge the API returns.
SUBSCRIPTION_BADGES: Dict[str, StatusBadge] = {
    SubscriptionStatus.ACTIVE.value: StatusBadge(label="Active", style="green", icon="check_circle"),
    SubscriptionStatus.TRIAL.value: StatusBadge(label="Trial", style="blue", icon="timelapse"),
    SubscriptionStatus.EXPIRED.value: StatusBadge(label="Expired", style="orange", icon="warning"),
    SubscriptionStatus.BLOCKED.value: StatusBadge(label="Blocked", style="red", icon="block"),
    SubscriptionStatus.CANCELLED.value: StatusBadge(label="Cancelled", style="gray", icon="cancel"),
}

LIFETIME_BADGE = StatusBadge(label="Lifetime", style="emerald", icon="verified")

APPOINTMENT_BADGES: Dict[str, StatusBadge] = {
    AppointmentStatus.CONFIRMED.value: StatusBadge(label="Confirmed", style="green", icon="event_available"),
    AppointmentStatus.PENDING.value: StatusBadge(label="Pending", style="yellow", icon="schedule"),
    AppointmentStatus.COMPLETED.value: StatusBadge(label="Completed", style="blue", icon="task_alt"),
    AppointmentStatus.CANCELLED.value: StatusBadge(label="Cancelled", style="red", icon="event_busy"),
}

BLOCK_BADGE = StatusBadge(label="Blocked", style="gray", icon="block")

UNKNOWN_BADGE = StatusBadge(label="Unknown", style="gray", icon="help")

def _key(status) -> str:
    return status.value if hasattr(status, "value") else str(status)

def subscription_badge(status, is_lifetime_free: bool = False) -> StatusBadge:
    if is_lifetime_free:
        return LIFETIME_BADGE
    return SUBSCRIPTION_BADGES.get(_key(status), UNKNOWN_BADGE)

def appointment_badge(status: Optional[str]) -> StatusBadge:
    return APPOINTMENT_BADGES.get(_key(status), UNKNOWN_BADGE)
