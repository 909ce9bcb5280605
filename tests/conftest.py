"""
Pytest configuration and fixtures.
"""

import os
from types import SimpleNamespace

# Must be set before src.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.auth.jwt import create_access_token
from src.models import Base, Product, ProductType, User, UserRole
from src.services.rates import ensure_system_settings
from src.utils.password import hash_password

# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Hashed once for every fixture user
PASSWORD_HASH = hash_password("password123")


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    # One shared connection so every session sees the same in-memory DB
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


def _user(username: str, role: UserRole, **kwargs) -> User:
    return User(
        username=username,
        password_hash=PASSWORD_HASH,
        role=role,
        display_name=username.capitalize(),
        is_active=True,
        **kwargs,
    )


@pytest_asyncio.fixture
async def world(db_session):
    """
    Seeded data: an operator, two agencies with one connector each, a
    connector without agency, one product per type and the settings row
    (overall 0.15, connector 0.05, minimum payout 5000).
    """
    operator = _user("operator", UserRole.OPERATOR)
    agency = _user("agency", UserRole.AGENCY, invite_code="agency-code")
    other_agency = _user("otheragency", UserRole.AGENCY, invite_code="other-code")
    db_session.add_all([operator, agency, other_agency])
    await db_session.flush()

    connector = _user("connector", UserRole.CONNECTOR, agency_id=agency.id)
    other_connector = _user("otherconnector", UserRole.CONNECTOR, agency_id=other_agency.id)
    orphan = _user("orphan", UserRole.CONNECTOR)

    signage = Product(
        name="Window signage",
        category="signage",
        product_type=ProductType.SIGNAGE,
        supplier_name="Glass Works",
        list_price_jpy=300000,
    )
    hotel = Product(
        name="Resort membership",
        category="hotel",
        product_type=ProductType.HOTEL_MEMBERSHIP,
        supplier_name="Resort Club",
        list_price_jpy=1000000,
    )
    ad_slot = Product(
        name="Station ad slot",
        category="ad space",
        product_type=ProductType.AD_SLOT,
        list_price_jpy=50000,
    )
    db_session.add_all([connector, other_connector, orphan, signage, hotel, ad_slot])

    await ensure_system_settings(db_session)
    await db_session.commit()
    # Detached, so a rollback inside a test cannot expire them
    db_session.expunge_all()

    return SimpleNamespace(
        operator=operator,
        agency=agency,
        other_agency=other_agency,
        connector=connector,
        other_connector=other_connector,
        orphan=orphan,
        signage=signage,
        hotel=hotel,
        ad_slot=ad_slot,
    )


@pytest.fixture
def auth_headers():
    """Build a Bearer header for a user."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}
    return _headers


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the app with the test database."""
    from src.db import get_db
    from src.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
