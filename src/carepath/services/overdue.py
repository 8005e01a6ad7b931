"""Periodic jobs, starting with overdue-invoice marking."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Protocol, runtime_checkable

from carepath.clock import ensure_utc
from carepath.enums import InvoiceStatus
from carepath.models import Invoice
from carepath.repositories import UnitOfWork
from carepath.services.line_builder import InvoiceLineBuilder

logger = logging.getLogger(__name__)


@runtime_checkable
class PeriodicJob(Protocol):
    """A job an external scheduler runs on its own cadence.

    ``run_once`` returns the number of records it changed.
    """

    name: str

    async def run_once(self, uow: UnitOfWork, now: datetime) -> int: ...


class OverdueInvoiceJob:
    """Marks collectible invoices past their due date as OVERDUE.

    Only SENT and PARTIALLY_PAID invoices with an outstanding balance are
    touched. All changes are committed in one transaction, or in the
    caller's when one is already open.
    """

    name = "mark-overdue-invoices"

    def __init__(self, grace_days: int = 0):
        if grace_days < 0:
            raise ValueError("grace_days must be non-negative")
        self.grace_days = grace_days

    def cutoff(self, now: datetime) -> date:
        """Invoices due before this date are past due."""
        return ensure_utc(now).date() - timedelta(days=self.grace_days)

    async def run_once(self, uow: UnitOfWork, now: datetime) -> int:
        cutoff = self.cutoff(now)
        candidates = await uow.invoices.find(
            Invoice.status.in_([InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID])
            & (Invoice.due_date < cutoff)
        )

        async with uow.transaction():
            marked = 0
            for invoice in candidates:
                if not invoice.is_past_due(cutoff):
                    continue
                invoice.mark_overdue()
                await uow.invoices.update(invoice)
                marked += 1
                logger.info(
                    "Invoice %s overdue: due %s, balance %s",
                    invoice.invoice_number or invoice.id,
                    invoice.due_date,
                    InvoiceLineBuilder.round_to_cents(invoice.balance),
                )
            await uow.save_changes()

        logger.info("%s: marked %d invoice(s) overdue", self.name, marked)
        return marked
