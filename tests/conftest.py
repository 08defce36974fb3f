import random
from datetime import date, datetime
from typing import AsyncGenerator, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
import pytz
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.exceptions import UpstreamFetchError
from app.core.redis import SnapshotCache
from app.db.base import Base
from app.schemas.checklist.checklist_schema import ChecklistResponseItem, ScheduledEmployee, SubmissionRecord
from app.services.checklist.checklist_service import ChecklistService
from app.services.checklist.completion_engine import OutletDirectory
from app.services.notification.notification_service import NotificationService
from app.services.ticket.assignment_engine import AssignmentRules
from app.services.ticket.ticket_service import TicketService
import app.models  # noqa: F401

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SLOTS = ["Morning", "Mid Day", "Closing"]
IST = pytz.timezone("Asia/Kolkata")


def ist(year, month, day, hour, minute):
    return IST.localize(datetime(year, month, day, hour, minute))


def submission(outlet: str, slot: str, by: str, when: datetime, submission_id: Optional[str] = None):
    return SubmissionRecord(
        submission_id=submission_id,
        outlet=outlet,
        time_slot=slot,
        submitted_by=by,
        timestamp=when,
        submission_date=when.date(),
    )


class FakeDataClient:
    """In-memory stand-in for SheetsDataClient"""

    def __init__(self, submissions=None, responses=None, roster=None):
        self.submissions: List[SubmissionRecord] = list(submissions or [])
        self.responses: List[ChecklistResponseItem] = list(responses or [])
        self.roster: List[ScheduledEmployee] = list(roster or [])
        self.fail_submissions = False
        self.fail_roster = False

    async def fetch_checklist_data(self):
        if self.fail_submissions:
            raise UpstreamFetchError("checklist", "HTTP 500", 500)
        return list(self.submissions), list(self.responses)

    async def fetch_submissions(self):
        submissions, _ = await self.fetch_checklist_data()
        return submissions

    async def fetch_roster(self, roster_date: date):
        if self.fail_roster:
            raise UpstreamFetchError("roster", "HTTP 502", 502)
        return [e for e in self.roster if e.roster_date in (None, roster_date)]


class InMemoryStore:
    """Redis-like async key/value store"""

    def __init__(self):
        self.data: Dict[str, str] = {}

    async def get(self, key: str):
        return self.data.get(key)

    async def set(self, key: str, value: str, expire: int = None):
        self.data[key] = value
        return True

    async def delete(self, key: str):
        return self.data.pop(key, None) is not None


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def mock_notifier():
    """Notification service whose deliveries always succeed"""
    notifier = Mock(spec=NotificationService)
    notifier.send = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
def rules():
    return AssignmentRules.from_mapping(settings.ASSIGNMENT_RULES)


@pytest.fixture
def ticket_service(db_session, mock_notifier, rules):
    return TicketService(db_session, mock_notifier, rules, random.Random(42))


@pytest.fixture
def directory():
    return OutletDirectory.from_settings(settings.OUTLETS)


@pytest.fixture
def data_client():
    return FakeDataClient()


@pytest.fixture
def snapshot_cache():
    return SnapshotCache(InMemoryStore(), prefix="test:snapshot", ttl_seconds=60)


@pytest.fixture
def checklist_service(data_client, directory, snapshot_cache):
    return ChecklistService(
        data_client=data_client,
        directory=directory,
        time_slots=SLOTS,
        cache=snapshot_cache,
        performer_count=3,
    )


@pytest.fixture
async def client(session_maker, mock_notifier, checklist_service) -> AsyncGenerator[AsyncClient, None]:
    """API client with database, notifier and data feeds swapped for test doubles"""
    from main import app
    from app.api.dependencies import get_checklist_service, get_notification_service
    from app.core.database import get_async_session

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: mock_notifier
    app.dependency_overrides[get_checklist_service] = lambda: checklist_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
