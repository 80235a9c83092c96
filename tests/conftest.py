import os
import tempfile

# Configure before the app (and its engine) is imported
_DB_DIR = tempfile.mkdtemp(prefix="food_fusion_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["INTERNAL_API_KEY"] = "test-internal-key"
os.environ["ADMIN_EMAILS"] = "admin@foodfusion.io"
os.environ["DELIVERY_FEE"] = "50"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TRACING_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import timedelta

import httpx
import pytest

from main import app
from services.order_service.models import utcnow
from services.order_service.scheduler import OrderStatusScheduler
from shared.config.database import AsyncSessionLocal, Base, engine

INTERNAL_HEADERS = {"X-Internal-API-Key": "test-internal-key"}

ADDRESS = {"street": "12 MG Road", "city": "Bengaluru", "state": "KA", "zipCode": "560001"}


@pytest.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(database):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _login(client, name, email, password="s3cret-pass"):
    resp = await client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = await client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
async def admin_headers(client):
    return await _login(client, "Admin", "admin@foodfusion.io")


@pytest.fixture
async def customer_headers(client):
    return await _login(client, "Asha", "asha@foodfusion.io")


@pytest.fixture
async def other_headers(client):
    return await _login(client, "Ravi", "ravi@foodfusion.io")


@pytest.fixture
async def restaurant(client, admin_headers):
    """A restaurant with two menu items: Paneer Tikka (100) and Masala Chai (50)."""
    resp = await client.post(
        "/restaurants",
        json={
            "name": "Spice Route",
            "description": "North Indian kitchen",
            "cuisine": ["indian", "vegetarian"],
            "address": ADDRESS,
            "phone": "+91-80-5550100",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    restaurant = resp.json()

    menu = []
    for name, price in (("Paneer Tikka", 100.0), ("Masala Chai", 50.0)):
        resp = await client.post(
            f"/restaurants/{restaurant['id']}/menu",
            json={"name": name, "price": price, "category": "main"},
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.text
        menu.append(resp.json())

    restaurant["menu"] = menu
    return restaurant


@pytest.fixture
def order_payload(restaurant):
    tikka, chai = restaurant["menu"]
    return {
        "restaurantId": restaurant["id"],
        "items": [
            {"itemId": tikka["id"], "quantity": 2},
            {"itemId": chai["id"], "quantity": 1},
        ],
        "totalAmount": 300,
        "deliveryAddress": ADDRESS,
        "paymentMethod": "upi",
    }


@pytest.fixture
def place_order(client, order_payload, customer_headers):
    async def _place(headers=None, **overrides):
        payload = {**order_payload, **overrides}
        resp = await client.post("/orders", json=payload, headers=headers or customer_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _place


@pytest.fixture
def deliver():
    """Drive an order to delivered by ticking a scheduler whose clock is an hour ahead."""
    async def _deliver():
        scheduler = OrderStatusScheduler(AsyncSessionLocal, clock=lambda: utcnow() + timedelta(hours=1))
        for _ in range(4):
            await scheduler.tick()
    return _deliver
