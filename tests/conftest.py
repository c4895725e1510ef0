"""Shared fixtures: app on a temp SQLite database with a faked Razorpay API."""
import json

import httpx
import pytest

from booking_api.core.config import Settings
from booking_api.core.db import init_db
from booking_api.core.security import compute_payment_signature, create_access_token, hash_password
from booking_api.main import create_app
from booking_api.models.appointment import PaymentStatus
from booking_api.services.appointment_service import create_appointment
from booking_api.services.payment_gateway import RazorpayClient

KEY_SECRET = "rzp_test_secret"
ADMIN_PASSWORD = "s3cret-pass"
ADMIN_PASSWORD_HASH = hash_password(ADMIN_PASSWORD)
BOOKING_DATE = "2031-05-20"


def sign(order_id: str, payment_id: str) -> str:
    return compute_payment_signature(KEY_SECRET, order_id, payment_id)


def form_data(times=("09:00",), date=BOOKING_DATE, **overrides) -> dict:
    data = {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "contactNumber": "+919876543210",
        "area": "Remote",
        "date": date,
        "time": times if isinstance(times, str) else list(times),
        "remark": "First visit",
    }
    data.update(overrides)
    return data


def verify_body(order_id="order_1", payment_id="pay_1", signature=None, **form_kwargs) -> dict:
    return {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": signature if signature is not None else sign(order_id, payment_id),
        "formData": form_data(**form_kwargs),
    }


class FakeRazorpay:
    """Stands in for the Razorpay Orders API behind httpx.MockTransport."""

    def __init__(self) -> None:
        self.orders: list[dict] = []
        self.requests: list[httpx.Request] = []
        self.error: Exception | None = None
        self.status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.status_code != 200:
            return httpx.Response(
                self.status_code,
                json={"error": {"code": "BAD_REQUEST_ERROR", "description": "Authentication failed"}},
            )
        payload = json.loads(request.content)
        self.orders.append(payload)
        return httpx.Response(
            200,
            json={
                "id": f"order_{len(self.orders)}",
                "entity": "order",
                "amount": payload["amount"],
                "currency": payload["currency"],
                "receipt": payload["receipt"],
                "status": "created",
            },
        )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}",
        secret_key="test-secret-key",
        admin_username="admin",
        admin_password_hash=ADMIN_PASSWORD_HASH,
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret=KEY_SECRET,
        cors_origins="http://localhost:3000",
        env="test",
    )


@pytest.fixture
def fake_razorpay() -> FakeRazorpay:
    return FakeRazorpay()


@pytest.fixture
async def app(settings, fake_razorpay):
    application = create_app(settings)
    application.state.payment_gateway = RazorpayClient(
        settings, transport=httpx.MockTransport(fake_razorpay.handler)
    )
    await init_db(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
async def session(app):
    async with app.state.session_maker() as s:
        yield s


@pytest.fixture
def admin_headers(settings) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(settings.admin_username, settings)}"}


@pytest.fixture
def make_appointment(app):
    """Persist an appointment directly through the store and commit it."""

    async def _make(times=("09:00",), date=BOOKING_DATE, payment_status=PaymentStatus.COMPLETED.value, **fields):
        values = {
            "name": "Existing Client",
            "email": "existing@example.com",
            "contact_number": "+911234567890",
            "area": "Office",
        }
        values.update(fields)
        async with app.state.session_maker() as s:
            appointment = await create_appointment(
                s,
                date=date,
                times=times,
                payment_status=payment_status,
                **values,
            )
            await s.commit()
            return appointment

    return _make
