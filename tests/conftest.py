"""
Pytest fixtures for the storefront API tests.

Every test gets its own SQLite database and an HTTP client bound to the ASGI
app; the payment gateway runs against an in-process fake of the Razorpay API.
"""
import os

# Settings are read at import time
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["TRACING_ENABLED"] = "false"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"

import hashlib
import hmac
import itertools
import json
from typing import Any, Dict, List

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from storefront.main import app
from storefront.services.auth_service.models import AdminUser
from storefront.services.order_service.models import OrderTracking
from storefront.services.payment_service.gateway import RazorpayGateway, get_payment_gateway
from storefront.services.payment_service.models import Payment
from storefront.services.product_service.models import Product
from storefront.shared.config.database import create_tables, get_db
from storefront.shared.security import limiter

GATEWAY_KEY_ID = "rzp_test_key"
GATEWAY_SECRET = "rzp_test_secret"

SHIPPING_ADDRESS = {
    "fullName": "Asha Rao",
    "addressLine1": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "postalCode": "560001",
    "country": "India",
}


def sign(order_id: int, payment_id: str, secret: str = GATEWAY_SECRET) -> str:
    """Signature the checkout widget hands back for a captured payment."""
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class FakeRazorpay:
    """In-process stand-in for the Razorpay REST API."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.payment_statuses: Dict[str, str] = {}
        self.payment_amounts: Dict[str, int] = {}
        self._ids = itertools.count(1)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        body: Dict[str, Any] = json.loads(request.content) if request.content else {}

        if request.method == "POST" and path.endswith("/orders"):
            return httpx.Response(
                200,
                json={
                    "id": f"order_{next(self._ids)}",
                    "entity": "order",
                    "amount": body["amount"],
                    "currency": body["currency"],
                    "receipt": body["receipt"],
                    "status": "created",
                },
            )

        if request.method == "POST" and path.endswith("/refund"):
            payment_id = path.split("/")[-2]
            return httpx.Response(
                200,
                json={
                    "id": f"rfnd_{next(self._ids)}",
                    "entity": "refund",
                    "payment_id": payment_id,
                    "amount": body.get("amount", self.payment_amounts.get(payment_id, 0)),
                    "status": "processed",
                },
            )

        if request.method == "GET" and "/payments/" in path:
            payment_id = path.rsplit("/", 1)[-1]
            if payment_id not in self.payment_statuses:
                return httpx.Response(400, json={"error": {"description": "The id provided does not exist"}})
            return httpx.Response(
                200,
                json={
                    "id": payment_id,
                    "entity": "payment",
                    "amount": self.payment_amounts.get(payment_id, 0),
                    "currency": "INR",
                    "status": self.payment_statuses[payment_id],
                },
            )

        return httpx.Response(404, json={"error": {"description": "Not found"}})

    def calls_to(self, suffix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}", poolclass=NullPool)
    await create_tables(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def razorpay():
    return FakeRazorpay()


@pytest.fixture
async def client(session_factory, razorpay):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    def override_gateway():
        return RazorpayGateway(
            key_id=GATEWAY_KEY_ID,
            key_secret=GATEWAY_SECRET,
            transport=httpx.MockTransport(razorpay.handler),
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = override_gateway
    limiter.reset()

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# DATA HELPERS
# =============================================================================

@pytest.fixture
def signup(client):
    """Registers an email user and returns the auth response body."""
    counter = itertools.count(1)

    async def _signup(email: str = None, password: str = "secret123", **extra) -> Dict[str, Any]:
        email = email or f"shopper{next(counter)}@example.com"
        resp = await client.post(
            "/api/auth/signup",
            json={"email": email, "password": password, "firstName": "Asha", "lastName": "Rao", **extra},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _signup


@pytest.fixture
async def customer(signup) -> Dict[str, Any]:
    body = await signup("customer@example.com")
    return {"user": body["user"], "token": body["token"], "headers": bearer(body["token"])}


@pytest.fixture
async def admin(signup, session_factory) -> Dict[str, Any]:
    body = await signup("admin@example.com")
    async with session_factory() as session:
        session.add(AdminUser(user_id=body["user"]["id"], role="admin"))
        await session.commit()
    return {"user": body["user"], "token": body["token"], "headers": bearer(body["token"])}


@pytest.fixture
def make_product(session_factory):
    async def _make_product(name: str = "Trail Runner", price: float = 100.0, stock: int = 5, **fields) -> int:
        async with session_factory() as session:
            product = Product(
                name=name,
                description=fields.pop("description", f"{name} description"),
                price=price,
                category=fields.pop("category", "Footwear"),
                subcategory=fields.pop("subcategory", "Running"),
                stock_quantity=stock,
                images=[],
                features={},
                specifications={},
                **fields,
            )
            session.add(product)
            await session.commit()
            return product.id

    return _make_product


@pytest.fixture
def stock_of(session_factory):
    async def _stock_of(product_id: int) -> int:
        async with session_factory() as session:
            return (await session.get(Product, product_id)).stock_quantity

    return _stock_of


@pytest.fixture
def tracking_of(session_factory):
    async def _tracking_of(order_id: int) -> List[OrderTracking]:
        async with session_factory() as session:
            result = await session.execute(
                select(OrderTracking).where(OrderTracking.order_id == order_id).order_by(OrderTracking.id)
            )
            return list(result.scalars().all())

    return _tracking_of


@pytest.fixture
def payments_of(session_factory):
    async def _payments_of(order_id: int) -> List[Payment]:
        async with session_factory() as session:
            result = await session.execute(
                select(Payment).where(Payment.order_id == order_id).order_by(Payment.id)
            )
            return list(result.scalars().all())

    return _payments_of


@pytest.fixture
def place_order(client):
    async def _place_order(headers: Dict[str, str], items: List[Dict[str, int]], **extra) -> httpx.Response:
        return await client.post(
            "/api/orders",
            json={"items": items, "shippingAddress": SHIPPING_ADDRESS, **extra},
            headers=headers,
        )

    return _place_order
