"""Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite store (one shared connection via
``StaticPool``), a fake auth provider that resolves bearer tokens handed out by
``login``, and an ``httpx.AsyncClient`` talking to the app over ASGI.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Mapping, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

import skillbridge.models  # noqa: F401  (registers every table on Base.metadata)
from skillbridge.core.auth import (
    AuthenticatedUser,
    ResolvedSession,
    SessionInfo,
    extract_session_token,
)
from skillbridge.core.config import Settings
from skillbridge.core.database import Base, Database, generate_id
from skillbridge.main import create_app
from skillbridge.models.booking import Booking, BookingStatus
from skillbridge.models.category import Category
from skillbridge.models.review import Review
from skillbridge.models.student_profile import Group, Student
from skillbridge.models.tutor_profile import Tutor
from skillbridge.models.user import User, UserRole, UserStatus


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


# =============================================================================
# Store
# =============================================================================


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def database(engine) -> Database:
    return Database(engine)


@pytest.fixture
async def db(database: Database):
    async with database.session() as session:
        yield session


# =============================================================================
# Factories
# =============================================================================


class Factory:
    """Creates committed rows; returns plain ORM instances"""

    def __init__(self, db):
        self.db = db

    async def _save(self, instance):
        self.db.add(instance)
        await self.db.commit()
        return instance

    async def user(
        self,
        role: UserRole = UserRole.STUDENT,
        name: Optional[str] = None,
        email: Optional[str] = None,
        status: UserStatus = UserStatus.ACTIVE,
        email_verified: bool = True,
    ) -> User:
        suffix = generate_id()[:8]
        return await self._save(
            User(
                name=name or f"{role.value.title()} {suffix}",
                email=email or f"{role.value.lower()}-{suffix}@example.com",
                role=role,
                status=status,
                email_verified=email_verified,
            )
        )

    async def category(self, name: Optional[str] = None, subjects=None) -> Category:
        return await self._save(
            Category(name=name or f"Category {generate_id()[:8]}", subjects=subjects or ["Algebra", "Geometry"])
        )

    async def student(self, user: Optional[User] = None, **fields) -> Student:
        user = user or await self.user(UserRole.STUDENT)
        values = {"class_name": "10", "institute": "ABC", "address": "X", "phone": "01700000000"}
        values.update(fields)
        return await self._save(Student(user_id=user.id, **values))

    async def tutor(self, user: Optional[User] = None, category: Optional[Category] = None, **fields) -> Tutor:
        user = user or await self.user(UserRole.TUTOR)
        category = category or await self.category()
        values = {
            "subject": "Math",
            "experience": 3,
            "address": "Y",
            "phone": "01800000000",
            "group": Group.SCIENCE,
            "price_per_day": 500.0,
            "is_available": True,
        }
        values.update(fields)
        return await self._save(Tutor(user_id=user.id, category_id=category.category_id, **values))

    async def booking(
        self,
        student: Student,
        tutor: Tutor,
        status: BookingStatus = BookingStatus.CONFIRMED,
        when: Optional[datetime] = None,
        **fields,
    ) -> Booking:
        when = when or datetime.now(timezone.utc) + timedelta(days=1)
        return await self._save(
            Booking(
                student_id=student.student_id,
                tutor_id=tutor.tutor_id,
                date=when,
                time=when,
                duration=fields.pop("duration", 60),
                status=status,
                **fields,
            )
        )

    async def review(self, booking: Booking, rating: int = 5, comment: Optional[str] = None) -> Review:
        return await self._save(
            Review(
                booking_id=booking.booking_id,
                student_id=booking.student_id,
                tutor_id=booking.tutor_id,
                rating=rating,
                comment=comment,
            )
        )


@pytest.fixture
def factory(db) -> Factory:
    return Factory(db)


# =============================================================================
# Auth
# =============================================================================


class FakeAuthProvider:
    """Resolves bearer tokens issued by ``login`` to a snapshot of the user"""

    cookie_name = "skillbridge.session_token"

    def __init__(self):
        self.sessions: Dict[str, ResolvedSession] = {}
        self.lookups = 0

    def login(self, user: User) -> Dict[str, str]:
        token = generate_id()
        self.sessions[token] = ResolvedSession(
            user=AuthenticatedUser(
                id=user.id,
                name=user.name,
                email=user.email,
                role=user.role,
                status=user.status,
                email_verified=user.email_verified,
                image=user.image,
            ),
            session=SessionInfo(
                id=generate_id(),
                user_id=user.id,
                expires_at=datetime.now(timezone.utc) + timedelta(days=7),
            ),
        )
        return {"Authorization": f"Bearer {token}"}

    async def get_session(self, headers: Mapping[str, str]) -> Optional[ResolvedSession]:
        self.lookups += 1
        token = extract_session_token(headers, self.cookie_name)
        return self.sessions.get(token) if token else None


@pytest.fixture
def auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


# =============================================================================
# Application
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DEBUG=False,
        LOG_LEVEL="WARNING",
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        AUTH_PROVIDER_URL=None,
        REQUIRE_EMAIL_VERIFICATION=True,
    )


@pytest.fixture
def app(test_settings, database, auth_provider):
    return create_app(settings=test_settings, database=database, auth_provider=auth_provider)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
