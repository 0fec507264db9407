import pytest
from datetime import date, datetime, timedelta
from httpx import ASGITransport, AsyncClient

from main import app
from salonhub.api.deps import get_now
from salonhub.core.auth import create_salon_token, create_super_admin_token
from salonhub.db.local_cache import LocalCacheGateway
from salonhub.db.provider import get_gateway
from salonhub.services.opening_hours import default_opening_hours

# Monday 19 October 2026, 08:00 local time
NOW = datetime(2026, 10, 19, 8, 0)
MONDAY = date(2026, 10, 19)

def salon_document(**overrides):
    data = {
        "name": "Studio Bella",
        "slug": "studio-bella",
        "phone": "(11) 98765-4321",
        "address": "Rua Augusta, 100",
        "logo_url": "",
        "opening_hours": [d.model_dump() for d in default_opening_hours()],
        "subscription_status": "TRIAL",
        "subscription_plan": "FREE",
        "subscription_end_date": None,
        "is_lifetime_free": False,
        "owner_email": "owner@studiobella.com",
        "password_hash": None,
        "created_at": NOW - timedelta(days=2),
        "last_login": None,
    }
    data.update(overrides)
    return data

@pytest.fixture
def gateway():
    return LocalCacheGateway(authoritative=True)

@pytest.fixture
async def salon(gateway):
    return await gateway.insert_salon(salon_document())

@pytest.fixture
async def service(gateway, salon):
    return await gateway.insert_service({
        "salon_id": salon["id"],
        "name": "Haircut",
        "description": "Cut and blow-dry",
        "price": 80.0,
        "duration_min": 60,
        "image_url": "",
    })

@pytest.fixture
async def customer(gateway, salon):
    return await gateway.insert_client({
        "salon_id": salon["id"],
        "name": "Ana Souza",
        "whatsapp": "(11) 91234-5678",
        "created_at": NOW - timedelta(days=1),
    })

@pytest.fixture
def owner_headers(salon):
    return {"Authorization": f"Bearer {create_salon_token(salon['id'])}"}

@pytest.fixture
def super_admin_headers():
    return {"Authorization": f"Bearer {create_super_admin_token()}"}

@pytest.fixture
async def client(gateway):
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_now] = lambda: NOW
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
