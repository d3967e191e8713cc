"""
Test configuration and fixtures
FastAPI + SQLAlchemy async + pytest, on an in-memory SQLite database
"""

import hashlib
import hmac
import json
import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

# Set test environment
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-that-is-long-enough-0123456789"
os.environ["WEBHOOK_LOCK_ENABLED"] = "false"
os.environ["PAYMENT_SETTINGS_SOURCE"] = "database"

# Import all models BEFORE creating fixtures (create_all needs them registered)
from reconciler.core.database import Base
from reconciler.models.booking import BookingStatus, CabinBooking, HostelBooking
from reconciler.models.setting import ProviderSetting
from reconciler.models.transaction import BookingType, Transaction, TransactionStatus, TransactionType
from reconciler.config import settings
from jose import jwt

KEY_SECRET = "rzp_test_key_secret"


def create_access_token(data: dict, expires_delta: timedelta = timedelta(minutes=30)) -> str:
    """Bearer token as the admin console issues it"""
    to_encode = {**data, "exp": datetime.now(timezone.utc) + expires_delta, "type": "access"}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def sign(body: bytes, secret: str = KEY_SECRET) -> str:
    """Razorpay webhook signature over the raw body"""
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def payment_event(kind: str, payment_id: str, order_id: str = None, method: str = "upi", **extra) -> dict:
    entity = {"id": payment_id, "entity": "payment", "order_id": order_id, "method": method, **extra}
    return {
        "entity": "event",
        "event": kind,
        "contains": ["payment"],
        "payload": {"payment": {"entity": entity}},
    }


def order_paid_event(order_id: str, payment_id: str, method: str = "card") -> dict:
    return {
        "entity": "event",
        "event": "order.paid",
        "contains": ["payment", "order"],
        "payload": {
            "payment": {"entity": {"id": payment_id, "order_id": order_id, "method": method}},
            "order": {"entity": {"id": order_id, "status": "paid", "amount": 100000}},
        },
    }


def encode(event: dict) -> bytes:
    return json.dumps(event).encode()


@pytest_asyncio.fixture(scope="function")
async def test_db():
    """Create async database engine for tests"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_db) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async_session_maker = async_sessionmaker(
        test_db,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest_asyncio.fixture
async def client(db_session):
    """Create test client with dependency override"""
    from reconciler.main import app
    from reconciler.core.database import get_session
    from reconciler.api.deps import get_event_lock

    def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_event_lock] = lambda: None

    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def razorpay_settings(db_session):
    """Razorpay key secret as the admin console stores it"""
    setting = ProviderSetting(
        category="payment",
        provider="razorpay",
        settings={"keyId": "rzp_test_key", "keySecret": KEY_SECRET},
    )
    db_session.add(setting)
    await db_session.commit()
    return setting


async def create_booking(db_session, model=CabinBooking, **overrides):
    """Helper to create a cabin or hostel booking"""
    now = datetime.now(timezone.utc)
    fields = {
        "booking_id": f"BK{uuid4().hex[:10].upper()}",
        "user_id": uuid4(),
        "start_date": datetime(2025, 1, 1, tzinfo=timezone.utc),
        "end_date": datetime(2025, 1, 31, tzinfo=timezone.utc),
        "months": 1,
        "total_price": 1000,
        "status": BookingStatus.PENDING,
        "payment_status": BookingStatus.PENDING,
        "renewal_history": [],
        "coupons_history": [],
        "created_at": now,
        "updated_at": now,
    }
    if model is CabinBooking:
        fields.update(cabin_id=uuid4(), seat_id=uuid4(), duration_count=1)
    else:
        fields.update(hostel_id=uuid4(), room_id=uuid4(), bed_id=uuid4())
    fields.update(overrides)

    booking = model(**fields)
    db_session.add(booking)
    await db_session.commit()
    return booking


async def create_transaction(db_session, booking, **overrides):
    """Helper to create a pending transaction for a booking"""
    now = datetime.now(timezone.utc)
    fields = {
        "transaction_id": f"TXN{uuid4().hex[:10].upper()}",
        "user_id": booking.user_id,
        "booking_id": booking.id,
        "booking_type": BookingType.CABIN if isinstance(booking, CabinBooking) else BookingType.HOSTEL,
        "transaction_type": TransactionType.BOOKING,
        "amount": 1000,
        "status": TransactionStatus.PENDING,
        "razorpay_order_id": f"order_{uuid4().hex[:14]}",
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)

    transaction = Transaction(**fields)
    db_session.add(transaction)
    await db_session.commit()
    return transaction


@pytest_asyncio.fixture
async def cabin_booking(db_session):
    return await create_booking(db_session)


@pytest_asyncio.fixture
async def hostel_booking(db_session):
    return await create_booking(db_session, model=HostelBooking)


@pytest_asyncio.fixture
async def booking_transaction(db_session, cabin_booking):
    return await create_transaction(db_session, cabin_booking)


@pytest_asyncio.fixture
async def renewal_transaction(db_session, cabin_booking):
    return await create_transaction(
        db_session,
        cabin_booking,
        transaction_type=TransactionType.RENEWAL,
        amount=1000,
        additional_months=1,
        previous_end_date=datetime(2025, 1, 31, tzinfo=timezone.utc),
        new_end_date=datetime(2025, 2, 28, tzinfo=timezone.utc),
    )


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": str(uuid4()), "email": "admin@example.com", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    token = create_access_token({"sub": str(uuid4()), "email": "student@example.com", "role": "user"})
    return {"Authorization": f"Bearer {token}"}
