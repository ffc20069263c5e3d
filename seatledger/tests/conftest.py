"""
Centralized Test Configuration.
"""

from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool, StaticPool

from seatledger.app.main import app
from seatledger.app.db.session import get_db, Base
from seatledger.app.core.jwt import create_access_token
from seatledger.app.core.redis_client import get_redis
from seatledger.app.core.security import get_password_hash
from seatledger.app.models.enums import UserRole
from seatledger.app.models.library import Library
from seatledger.app.models.user import User
from seatledger.app.domain.seating.seat_service import SeatService
from seatledger.app.domain.students.student_service import StudentService
from seatledger.app.schemas.student import StudentCreate
import seatledger.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def file_session_factory(tmp_path):
    """
    On-disk database with one connection per session.

    Used by tests that run several sessions at once: sessions sharing the
    in-memory StaticPool connection would commit and roll back each other's work.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}",
        poolclass=NullPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def apply_overrides(session_factory, mock_redis, monkeypatch):
    """Point the app at the test database and the mock Redis."""
    monkeypatch.setattr(redis_client_module, "redis_client", mock_redis)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client(apply_overrides):
    """Async client for testing, wired to the test database and mock Redis."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# --- Tenants and accounts ---

async def _create_library(db, name):
    library = Library(name=name)
    db.add(library)
    await db.commit()
    await db.refresh(library)
    return library


async def _create_user(db, username, role, library_id=None, password="secret123"):
    user = User(
        email=f"{username}@seatledger.in",
        username=username,
        hashed_password=get_password_hash(password),
        role=role,
        library_id=library_id,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers(user):
    token = create_access_token(data={"sub": user.username, "user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def library_a(db_session):
    return await _create_library(db_session, "Central Library")


@pytest.fixture
async def library_b(db_session):
    return await _create_library(db_session, "Eastside Library")


@pytest.fixture
async def superadmin(db_session):
    return await _create_user(db_session, "root", UserRole.SUPERADMIN)


@pytest.fixture
async def manager_a(db_session, library_a):
    return await _create_user(db_session, "manager_a", UserRole.MANAGER, library_a.id)


@pytest.fixture
async def manager_b(db_session, library_b):
    return await _create_user(db_session, "manager_b", UserRole.MANAGER, library_b.id)


@pytest.fixture
def superadmin_headers(superadmin):
    return _headers(superadmin)


@pytest.fixture
def manager_a_headers(manager_a):
    return _headers(manager_a)


@pytest.fixture
def manager_b_headers(manager_b):
    return _headers(manager_b)


# --- Domain factories ---

@pytest.fixture
def make_seat(db_session):
    async def _make(library_id, seat_number, floor="Ground"):
        return await SeatService(db_session).create_seat(library_id, seat_number, floor)
    return _make


@pytest.fixture
def make_student(db_session):
    async def _make(library_id, full_name, fees_due="0", seat_id=None, **fields):
        data = StudentCreate(
            full_name=full_name,
            fees_due=Decimal(fees_due),
            seat_id=seat_id,
            enrollment_date=fields.pop("enrollment_date", date(2024, 1, 1)),
            **fields,
        )
        return await StudentService(db_session).create_student(library_id, data)
    return _make
