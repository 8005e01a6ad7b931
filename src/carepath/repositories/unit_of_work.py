"""Unit of work: one repository per entity type under one transactional boundary."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any, AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session

from carepath.clock import utcnow
from carepath.exceptions import TransactionStateError, UsageError
from carepath.models import (
    AuditMixin,
    CarePlan,
    Caregiver,
    CaregiverCertification,
    Client,
    Invoice,
    InvoiceLineItem,
    Payment,
    Shift,
    User,
    VisitNote,
    VisitPhoto,
)
from carepath.repositories.base import Repository, SqlAlchemyRepository

logger = logging.getLogger(__name__)


class UnitOfWork(ABC):
    """Transactional grouping of repository operations.

    Use as an async context manager; resources are released when the block
    exits, normally or by exception (including task cancellation).
    """

    # Identity
    users: Repository[User]
    caregivers: Repository[Caregiver]
    caregiver_certifications: Repository[CaregiverCertification]
    clients: Repository[Client]
    # Clinical
    care_plans: Repository[CarePlan]
    # Scheduling
    shifts: Repository[Shift]
    visit_notes: Repository[VisitNote]
    visit_photos: Repository[VisitPhoto]
    # Billing
    invoices: Repository[Invoice]
    invoice_line_items: Repository[InvoiceLineItem]
    payments: Repository[Payment]

    @abstractmethod
    async def save_changes(self) -> int:
        """Persist all staged changes, returning the number of affected records."""

    @property
    @abstractmethod
    def in_transaction(self) -> bool:
        """Whether an explicit transaction is open."""

    @abstractmethod
    async def begin_transaction(self) -> None:
        """Open an explicit transaction spanning several saves."""

    @abstractmethod
    async def commit_transaction(self) -> None:
        """Commit the open explicit transaction."""

    @abstractmethod
    async def rollback_transaction(self) -> None:
        """Discard the open explicit transaction."""

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run a block atomically, joining the caller's transaction if one is open.

        A joined block neither commits nor rolls back; the caller decides.
        """
        if self.in_transaction:
            yield
            return
        await self.begin_transaction()
        try:
            yield
        except Exception:
            await self.rollback_transaction()
            raise
        await self.commit_transaction()

    @abstractmethod
    async def __aenter__(self) -> UnitOfWork: ...

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


class SqlAlchemyUnitOfWork(UnitOfWork):
    """Unit of work over a single ``AsyncSession``.

    ``save_changes`` commits immediately unless an explicit transaction is
    open, in which case it only flushes and the commit happens in
    :meth:`commit_transaction`. Audit fields are stamped at flush time from
    the active clock and ``actor``.

    Usage:
        async with SqlAlchemyUnitOfWork(session_factory, actor="coordinator@x") as uow:
            shift = await uow.shifts.get_by_id(shift_id)
            ...
            await uow.save_changes()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        actor: str | None = None,
    ):
        self.session_factory = session_factory
        self.actor = actor
        self._session: AsyncSession | None = None
        self._in_transaction = False
        self._affected = 0

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise UsageError("Unit of work used outside its 'async with' block")
        return self._session

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise UsageError("Unit of work is already active")
        session = self.session_factory()
        event.listen(session.sync_session, "before_flush", self._stamp_audit_fields)
        event.listen(session.sync_session, "after_flush", self._count_affected)
        self._session = session
        self._in_transaction = False
        self._affected = 0

        self.users = SqlAlchemyRepository(session, User)
        self.caregivers = SqlAlchemyRepository(session, Caregiver)
        self.caregiver_certifications = SqlAlchemyRepository(session, CaregiverCertification)
        self.clients = SqlAlchemyRepository(session, Client)
        self.care_plans = SqlAlchemyRepository(session, CarePlan)
        self.shifts = SqlAlchemyRepository(session, Shift)
        self.visit_notes = SqlAlchemyRepository(session, VisitNote)
        self.visit_photos = SqlAlchemyRepository(session, VisitPhoto)
        self.invoices = SqlAlchemyRepository(session, Invoice)
        self.invoice_line_items = SqlAlchemyRepository(session, InvoiceLineItem)
        self.payments = SqlAlchemyRepository(session, Payment)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        session = self.session
        try:
            if exc_type is not None:
                logger.debug("Rolling back unit of work after %s", exc_type.__name__)
                await session.rollback()
            elif self._in_transaction:
                logger.warning("Unit of work closed with an open transaction; rolling back")
                await session.rollback()
        finally:
            self._in_transaction = False
            self._session = None
            await session.close()

    async def save_changes(self) -> int:
        session = self.session
        await session.flush()
        affected = self._affected
        self._affected = 0
        if not self._in_transaction:
            await session.commit()
            logger.debug("Committed %d record(s)", affected)
        return affected

    async def begin_transaction(self) -> None:
        _ = self.session  # UsageError outside the async-with block
        if self._in_transaction:
            raise TransactionStateError("A transaction is already open")
        self._in_transaction = True

    async def commit_transaction(self) -> None:
        session = self.session
        if not self._in_transaction:
            raise TransactionStateError("No open transaction to commit")
        await session.commit()
        self._in_transaction = False
        logger.debug("Committed transaction")

    async def rollback_transaction(self) -> None:
        session = self.session
        if not self._in_transaction:
            raise TransactionStateError("No open transaction to roll back")
        await session.rollback()
        self._in_transaction = False
        self._affected = 0
        logger.debug("Rolled back transaction")

    def _stamp_audit_fields(self, session: Session, flush_context: Any, instances: Any) -> None:
        for obj in session.new:
            if isinstance(obj, AuditMixin) and obj.created_by is None:
                obj.created_by = self.actor
        for obj in session.dirty:
            if isinstance(obj, AuditMixin) and session.is_modified(obj):
                obj.updated_at = utcnow()
                if self.actor is not None:
                    obj.updated_by = self.actor

    def _count_affected(self, session: Session, flush_context: Any) -> None:
        self._affected += len(session.new) + len(session.deleted)
        self._affected += sum(1 for obj in session.dirty if session.is_modified(obj))
