"""
Pytest fixtures for the test database, HTTP client, admin tokens and events.

Every test gets its own SQLite file (aiosqlite) so the engine's conditional
UPDATEs run against a real database with real transactions. NullPool gives
each session its own connection, which the concurrency tests rely on.
"""

import itertools
import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./community_events_test.db")

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from community_events.main import app
from community_events.core.security import Role, create_access_token
from community_events.db.base import Base
from community_events.db.session import get_db
from community_events.models.enums import EventStatus, RegistrationStatus
from community_events.models.event import Event
from community_events.models.registration import Registration
from community_events.schemas.registration import RegistrationCreate
from community_events.services.identifiers import slugify

_titles = itertools.count(1)


@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'events.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get a fresh session on the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def _headers(role: Role) -> dict:
    token = create_access_token(subject=f"{role.value}-1", role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict:
    return _headers(Role.ADMIN)


@pytest.fixture
def sub_admin_headers() -> dict:
    return _headers(Role.SUB_ADMIN)


@pytest.fixture
def manager_headers() -> dict:
    return _headers(Role.MANAGER)


@pytest.fixture
def make_event(db_session: AsyncSession):
    """Insert an event directly, published and open unless overridden."""

    async def factory(**overrides) -> Event:
        title = overrides.pop("title", f"Community Meetup {next(_titles)}")
        values = dict(
            title=title,
            slug=slugify(title),
            description="A gathering for the community",
            date=datetime.now(timezone.utc) + timedelta(days=30),
            location="Community Hall",
            organizer_name="Events Team",
            status=EventStatus.PUBLISHED.value,
            registration_open=True,
            max_attendees=None,
            current_attendees=0,
            is_free=True,
            price=Decimal("0"),
            currency="INR",
            tags=[],
            schedule=[],
        )
        values.update(overrides)
        event = Event(**values)
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return factory


def make_attendee(n: int = 1, **overrides) -> RegistrationCreate:
    values = dict(
        first_name=f"Alex{n}",
        last_name="Rivera",
        email=f"attendee{n}@example.com",
        phone="+91 98765 43210",
    )
    values.update(overrides)
    return RegistrationCreate(**values)


async def current_attendees(session: AsyncSession, event_id: int) -> int:
    result = await session.execute(select(Event.current_attendees).where(Event.id == event_id))
    return result.scalar_one()


async def confirmed_count(session: AsyncSession, event_id: int) -> int:
    result = await session.execute(
        select(func.count(Registration.id)).where(
            Registration.event_id == event_id,
            Registration.status == RegistrationStatus.CONFIRMED.value,
        )
    )
    return result.scalar_one()


def registration_payload(n: int = 1, **overrides) -> dict:
    return make_attendee(n, **overrides).model_dump()
