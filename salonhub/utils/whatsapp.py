from datetime import datetime
from typing import Optional
from urllib.parse import quote

from salonhub.core.config import settings
from salonhub.db.gateway import digits_only

WA_BASE_URL = "https://wa.me"

def international_number(phone: str) -> str:
    """
    Digits of a phone number with the country code in front.

    Numbers that already carry the configured country code (more than 11
    digits starting with it) are returned unchanged.
    """
    digits = digits_only(phone)
    code = settings.WHATSAPP_COUNTRY_CODE
    if not digits:
        return ""
    if code and digits.startswith(code) and len(digits) > 11:
        return digits
    return f"{code}{digits}"

def build_link(phone: str, message: str) -> Optional[str]:
    """wa.me link that opens a chat with ``phone`` prefilled with ``message``."""
    number = international_number(phone)
    if not number:
        return None
    return f"{WA_BASE_URL}/{number}?text={quote(message)}"

def support_link(message: str) -> Optional[str]:
    if not settings.SUPPORT_PHONE:
        return None
    return f"{WA_BASE_URL}/{digits_only(settings.SUPPORT_PHONE)}?text={quote(message)}"

def booking_confirmation_message(service_name: str, start_time: datetime, client_name: str) -> str:
    return (
        f"Hello, I would like to confirm my appointment: {service_name} "
        f"on {start_time.strftime('%d/%m at %H:%M')}. My name is {client_name}."
    )

def renewal_message(salon_name: str, owner_email: str) -> str:
    return (
        f"Hello! I would like to renew the subscription for *{salon_name}* "
        f"(Email: {owner_email})."
    )
