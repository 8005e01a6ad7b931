"""Pytest fixtures for CarePath tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Iterator, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from carepath.clock import FixedClock, use_clock
from carepath.database import create_schema, make_session_factory
from carepath.enums import InvoiceStatus, PaymentMethod, PaymentStatus, UserRole
from carepath.models import (
    Caregiver,
    Client,
    Invoice,
    InvoiceLineItem,
    Payment,
    Shift,
    User,
)
from carepath.repositories import SqlAlchemyUnitOfWork

# In-memory SQLite shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_ACTOR = "coordinator@carepath.test"

# Monday, 2026-02-16 12:00 UTC
NOW = datetime(2026, 2, 16, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> Iterator[FixedClock]:
    """Pin the package clock to NOW for the duration of a test."""
    fixed = FixedClock(NOW)
    with use_clock(fixed):
        yield fixed


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture
def make_uow(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., SqlAlchemyUnitOfWork]:
    """Build units of work against the test database."""

    def _make(actor: str | None = TEST_ACTOR) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory, actor=actor)

    return _make


@dataclass
class CareTestData:
    """Ids of the seeded caregiver and client."""

    caregiver_user_id: UUID
    caregiver_id: UUID
    client_user_id: UUID
    client_id: UUID


@pytest_asyncio.fixture
async def care_team(make_uow, clock) -> CareTestData:
    """Seed one caregiver and one client."""
    caregiver_user = User(
        role=UserRole.CAREGIVER,
        first_name="Grace",
        last_name="Okafor",
        email="grace.okafor@carepath.test",
    )
    client_user = User(
        role=UserRole.CLIENT,
        first_name="Walter",
        last_name="Brennan",
        email="walter.brennan@carepath.test",
    )
    caregiver = Caregiver(
        user_id=caregiver_user.id,
        hourly_pay_rate=Decimal("21.00"),
        hire_date=date(2024, 5, 1),
        has_dementia_care=True,
    )
    client = Client(
        user_id=client_user.id,
        date_of_birth=date(1941, 7, 4),
        hourly_bill_rate=Decimal("35.00"),
        requires_dementia_care=True,
    )

    async with make_uow() as uow:
        await uow.users.add(caregiver_user)
        await uow.users.add(client_user)
        await uow.caregivers.add(caregiver)
        await uow.clients.add(client)
        await uow.save_changes()

    return CareTestData(
        caregiver_user_id=caregiver_user.id,
        caregiver_id=caregiver.id,
        client_user_id=client_user.id,
        client_id=client.id,
    )


def make_shift(
    client_id: UUID | None = None,
    caregiver_id: UUID | None = None,
    start: datetime = NOW,
    hours: int = 8,
    bill_rate: str = "35.00",
    pay_rate: str = "21.00",
    worked: bool = False,
    **kwargs,
) -> Shift:
    """Build a shift; ``worked`` fills actual times from the schedule."""
    end = start + timedelta(hours=hours)
    shift = Shift(
        client_id=client_id or uuid4(),
        caregiver_id=caregiver_id,
        scheduled_start_time=start,
        scheduled_end_time=end,
        bill_rate=Decimal(bill_rate),
        pay_rate=Decimal(pay_rate),
        **kwargs,
    )
    if worked:
        shift.actual_start_time = start
        shift.actual_end_time = end
    return shift


def make_invoice(
    client_id: UUID | None = None,
    lines: Sequence[tuple[str, str]] = (),
    settled: Sequence[str] = (),
    **kwargs,
) -> Invoice:
    """Build an invoice from (hours, rate) lines and settled payment amounts."""
    invoice = Invoice(client_id=client_id or uuid4(), **kwargs)
    for hours, rate in lines:
        invoice.line_items.append(
            InvoiceLineItem(
                invoice_id=invoice.id,
                billable_hours=Decimal(hours),
                rate_per_hour=Decimal(rate),
            )
        )
    for amount in settled:
        invoice.payments.append(
            Payment(
                invoice_id=invoice.id,
                amount=Decimal(amount),
                method=PaymentMethod.CHECK,
                status=PaymentStatus.SETTLED,
            )
        )
    return invoice


def sent_invoice(client_id: UUID, due_date: date, **kwargs) -> Invoice:
    """Build an invoice already issued to the client."""
    return make_invoice(client_id, status=InvoiceStatus.SENT, due_date=due_date, **kwargs)
