from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from leaveflow.db import get_session
from leaveflow.main import app
from leaveflow.models import SQLModel
from leaveflow.services.duration import NoHolidayCalendar, set_holiday_calendar
from leaveflow.services.employee import InMemoryEmployeeService, set_employee_service
from leaveflow.services.notification import LoggingNotificationSink, NotificationEvent, set_notification_sink

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

    from leaveflow.models.request import LeaveRequest
    from leaveflow.services.employee import EmployeeInfo


class RecordingSink:
    """Notification sink that keeps what it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[tuple[NotificationEvent, LeaveRequest, EmployeeInfo, EmployeeInfo | None]] = []

    async def send(
        self,
        event: NotificationEvent,
        request: LeaveRequest,
        employee: EmployeeInfo,
        actor: EmployeeInfo | None = None,
    ) -> None:
        self.sent.append((event, request, employee, actor))

    @property
    def events(self) -> list[NotificationEvent]:
        return [event for event, *_ in self.sent]


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A fresh in-memory SQLite database per test."""
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(bind=engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def directory() -> Iterator[InMemoryEmployeeService]:
    """An empty employee directory per test; modules seed what they need."""
    svc = InMemoryEmployeeService()
    set_employee_service(svc)
    yield svc
    set_employee_service(InMemoryEmployeeService())


@pytest.fixture(autouse=True)
def sink() -> Iterator[RecordingSink]:
    recording = RecordingSink()
    set_notification_sink(recording)
    yield recording
    set_notification_sink(LoggingNotificationSink())


@pytest.fixture(autouse=True)
def _reset_holiday_calendar() -> Iterator[None]:
    yield
    set_holiday_calendar(NoHolidayCalendar())
