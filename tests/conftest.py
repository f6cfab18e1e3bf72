"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from workforce.auth.dependencies import CurrentUser
from workforce.common.constants import SettingKey, UserRole
from workforce.config import settings
from workforce.database import Base, get_db
from workforce.dependencies import get_today
from workforce.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import workforce.common.audit  # noqa: F401
import workforce.employees.models  # noqa: F401
import workforce.attendance.models  # noqa: F401
import workforce.fuel.models  # noqa: F401
import workforce.system_settings.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT ────────────────

from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Fixed "today" for every HTTP test: inside the 26 Dec 2024 - 25 Jan 2025 cycle
TODAY = date(2025, 1, 20)

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and gen_random_uuid() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "gen_random_uuid", 0, lambda: str(uuid.uuid4()),
    )

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from workforce.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB and clock dependencies overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_today] = lambda: TODAY
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_employee(
    *,
    email: str = "test.user@example.com",
    full_name: str = "Test User",
    is_active: bool = True,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        email=email,
        full_name=full_name,
        is_active=is_active,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


async def _insert_employee(db: AsyncSession, **kwargs) -> dict:
    """Insert an employee and commit so HTTP requests can see it."""
    from workforce.employees.models import Employee

    data = _make_employee(**kwargs)
    db.add(Employee(**data))
    await db.commit()
    return data


async def _set_setting(db: AsyncSession, key: SettingKey, value: str) -> None:
    from workforce.system_settings.models import SystemSetting

    db.add(SystemSetting(key=key.value, value=value))
    await db.commit()


@pytest.fixture
async def test_employee(db) -> dict:
    """Insert an active employee."""
    return await _insert_employee(db)


@pytest.fixture
async def manager_user(db) -> dict:
    return await _insert_employee(db, email="manager@example.com", full_name="Maryam Manager")


@pytest.fixture
async def admin_user(db) -> dict:
    return await _insert_employee(db, email="admin@example.com", full_name="Adeel Admin")


# ── Auth helpers ────────────────────────────────────────────────────

TOKEN_LIFETIME_HOURS = 24


def create_access_token(
    employee_id: uuid.UUID,
    role: UserRole = UserRole.employee,
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=TOKEN_LIFETIME_HOURS)
    payload = {
        "sub": str(employee_id),
        "role": role.value,
        "type": "access",
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers_for(employee_id: uuid.UUID, role: UserRole = UserRole.employee) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(employee_id, role)}"}


def as_user(data: dict, role: UserRole = UserRole.employee) -> CurrentUser:
    """``CurrentUser`` for a factory-made employee, for service-level tests."""
    return CurrentUser(id=data["id"], role=role)


@pytest.fixture
def auth_headers(test_employee) -> dict[str, str]:
    return auth_headers_for(test_employee["id"])


@pytest.fixture
def manager_headers(manager_user) -> dict[str, str]:
    return auth_headers_for(manager_user["id"], UserRole.manager)


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return auth_headers_for(admin_user["id"], UserRole.admin)
