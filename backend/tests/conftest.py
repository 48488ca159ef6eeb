"""
Pytest configuration and shared fixtures for GigConnect tests.

Provides an in-memory SQLite session, an httpx client bound to the app
(with the DB, Supabase Auth and MongoDB dependencies overridden), and
seeded users/profiles/wallets/orders.
"""
import os

# Settings are read at import time; point them at throwaway backends first.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-for-pytest-only")
os.environ.setdefault("PAYSTACK_WEBHOOK_SECRET", "test-paystack-webhook-secret")
os.environ["MONGO_URI"] = ""
os.environ["REDIS_URL"] = ""

import json
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from config import settings
from context import AppContext, get_auth_client, get_mongo_db
from database import Base, get_db
from db_models import Client, Freelancer, KYCRecord, Order, User, Wallet
from domain.enums import KYCStatus, OrderStatus, UserRole, UserStatus
from services.paystack import compute_signature
from services.supabase_auth import SupabaseAuthClient

# ── Test Configuration ───────────────────────────────────────────────
if not settings.supabase_jwt_secret:
    settings.supabase_jwt_secret = "test-jwt-secret-for-pytest-only"
if not settings.paystack_webhook_secret:
    settings.paystack_webhook_secret = "test-paystack-webhook-secret"


# ── Database Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def mongo_db():
    """In-memory MongoDB database (mongomock-motor)."""
    return AsyncMongoMockClient()["gigconnect_test"]


@pytest.fixture
def mock_auth_client():
    """Supabase Auth client with every remote call mocked."""
    client = AsyncMock(spec=SupabaseAuthClient)
    client.configured = True
    return client


@pytest_asyncio.fixture(scope="function")
async def app_context() -> AsyncGenerator[AppContext, None]:
    ctx = await AppContext.create(settings)
    yield ctx
    await ctx.shutdown()


@pytest_asyncio.fixture(scope="function")
async def client(
    app_context: AppContext,
    db_session: AsyncSession,
    mock_auth_client,
    mongo_db,
) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client bound to the app.

    get_db yields the test session; Supabase Auth and MongoDB are replaced
    with the mock client and the mongomock database.
    """
    async def override_get_db():
        yield db_session

    app.state.context = app_context
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_client] = lambda: mock_auth_client
    app.dependency_overrides[get_mongo_db] = lambda: mongo_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ── Helpers ──────────────────────────────────────────────────────────


def issue_access_token(*, user_id: str, email: str = "", ttl_minutes: int = 60) -> str:
    """Mint a Supabase-shaped access token signed with the test JWT secret."""
    now = datetime.now(timezone.utc).replace(microsecond=0)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": settings.supabase_jwt_audience,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm="HS256")


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {issue_access_token(user_id=user.id, email=user.email)}"}


def signed_webhook(payload: dict) -> tuple[bytes, dict]:
    """Serialize a webhook payload and sign it with the test secret."""
    body = json.dumps(payload).encode()
    signature = compute_signature(body, settings.paystack_webhook_secret)
    return body, {"x-paystack-signature": signature, "content-type": "application/json"}


async def create_user(
    db: AsyncSession,
    *,
    email: str,
    role: UserRole,
    status: UserStatus = UserStatus.ACTIVE,
) -> User:
    """User + role profile + wallet + KYC record, like signup does."""
    user = User(
        email=email,
        full_name=email.split("@")[0].title(),
        phone="+2348012345678",
        role=role.value,
        status=status.value,
    )
    db.add(user)
    await db.flush()
    if role == UserRole.FREELANCER:
        db.add(Freelancer(user_id=user.id, skills=[], portfolio_public={}, bank_details={}))
    elif role == UserRole.CLIENT:
        db.add(Client(user_id=user.id))
    db.add(Wallet(user_id=user.id, balance_cents=0, reserved_cents=0))
    db.add(KYCRecord(user_id=user.id, status=KYCStatus.PENDING.value, docs={}))
    await db.commit()
    return user


# ── Test Data Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, email="ada@example.com", role=UserRole.CLIENT)


@pytest_asyncio.fixture
async def freelancer_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, email="tunde@example.com", role=UserRole.FREELANCER)


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, email="admin@example.com", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def moderator_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, email="mod@example.com", role=UserRole.MODERATOR)


@pytest_asyncio.fixture
async def sample_order(db_session: AsyncSession, client_user: User, freelancer_user: User) -> Order:
    """A 50,000 NGN order awaiting verification with a known reference."""
    client_id = (await db_session.execute(
        select(Client.id).where(Client.user_id == client_user.id)
    )).scalar_one()
    freelancer_id = (await db_session.execute(
        select(Freelancer.id).where(Freelancer.user_id == freelancer_user.id)
    )).scalar_one()

    order = Order(
        client_id=client_id,
        freelancer_id=freelancer_id,
        amount_cents=5_000_000,
        currency="NGN",
        status=OrderStatus.PAYMENT_PENDING_VERIFICATION.value,
        payment_reference="GIG_TESTORDER_1700000000000_ABCDEFGHIJKLM",
    )
    db_session.add(order)
    await db_session.commit()
    return order
