"""Invoice, line item and payment models."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carepath.clock import today, utcnow
from carepath.enums import InvoiceStatus, PaymentMethod, PaymentStatus
from carepath.models.base import AuditMixin, Base
from carepath.services.state_machine import InvoiceStateMachine

ZERO = Decimal("0")
PAYMENT_TERMS_DAYS = 30


def default_due_date() -> date:
    """Net-30 from today."""
    return today() + timedelta(days=PAYMENT_TERMS_DAYS)


class Invoice(Base, AuditMixin):
    """Client invoice.

    Totals are derived from line items and payments on every access. Status
    moves forward only, except for explicit cancellation; ``OVERDUE`` is set
    by :class:`carepath.services.overdue.OverdueInvoiceJob`, never by
    :meth:`recalculate_status`.
    """

    __tablename__ = "invoice"

    client_id: Mapped[UUID] = mapped_column(ForeignKey("client.id"), index=True)
    invoice_number: Mapped[str] = mapped_column(String(32), default="")
    invoice_date: Mapped[date] = mapped_column(default_factory=today)
    due_date: Mapped[date] = mapped_column(default_factory=default_due_date, index=True)
    status: Mapped[InvoiceStatus] = mapped_column(default=InvoiceStatus.DRAFT, index=True)
    tax_amount: Mapped[Decimal] = mapped_column(default=ZERO)
    notes: Mapped[str | None] = mapped_column(default=None)
    sent_at: Mapped[datetime | None] = mapped_column(default=None)
    paid_at: Mapped[datetime | None] = mapped_column(default=None)

    line_items: Mapped[list[InvoiceLineItem]] = relationship(
        default_factory=list, lazy="selectin", repr=False
    )
    payments: Mapped[list[Payment]] = relationship(
        default_factory=list, lazy="selectin", repr=False
    )

    @property
    def subtotal(self) -> Decimal:
        return sum((item.total for item in self.line_items), ZERO)

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax_amount

    @property
    def amount_paid(self) -> Decimal:
        """Sum of settled payments; pending, failed and refunded are ignored."""
        return sum(
            (p.amount for p in self.payments if p.status == PaymentStatus.SETTLED),
            ZERO,
        )

    @property
    def balance(self) -> Decimal:
        """Outstanding amount. Negative when overpaid."""
        return self.total - self.amount_paid

    @property
    def is_fully_paid(self) -> bool:
        return self.balance <= 0

    def recalculate_status(self) -> None:
        """Reconcile status with settled payments.

        Cancelled invoices are left alone. Fully paid moves to PAID, a partial
        settled amount to PARTIALLY_PAID; with nothing settled the status is
        unchanged. Never assigns OVERDUE.
        """
        if self.status == InvoiceStatus.CANCELLED:
            return
        if self.is_fully_paid:
            self.status = InvoiceStatus.PAID
            if self.paid_at is None:
                self.paid_at = utcnow()
        elif self.amount_paid > 0:
            self.status = InvoiceStatus.PARTIALLY_PAID

    def mark_sent(self) -> None:
        """Issue a draft invoice to the client."""
        InvoiceStateMachine.validate_transition(self.status, InvoiceStatus.SENT)
        self.status = InvoiceStatus.SENT
        self.sent_at = utcnow()

    def is_past_due(self, as_of_date: date) -> bool:
        """Awaiting payment with the due date behind us."""
        return (
            InvoiceStateMachine.is_collectible(self.status)
            and self.due_date < as_of_date
            and not self.is_fully_paid
        )

    def mark_overdue(self) -> None:
        InvoiceStateMachine.validate_transition(self.status, InvoiceStatus.OVERDUE)
        self.status = InvoiceStatus.OVERDUE

    def cancel(self) -> None:
        """Cancel the invoice. Allowed from any non-terminal status."""
        InvoiceStateMachine.validate_transition(self.status, InvoiceStatus.CANCELLED)
        self.status = InvoiceStatus.CANCELLED


class InvoiceLineItem(Base, AuditMixin):
    """Billable line on an invoice.

    ``cost_per_hour`` and everything derived from it are internal margin
    figures; :meth:`client_view` is the only shape fit for client-facing
    output.
    """

    __tablename__ = "invoice_line_item"

    CLIENT_FIELDS = ("id", "shift_id", "description", "service_date", "billable_hours", "rate_per_hour")

    invoice_id: Mapped[UUID] = mapped_column(ForeignKey("invoice.id"), index=True)
    billable_hours: Mapped[Decimal]
    rate_per_hour: Mapped[Decimal]
    # None for manual line items
    shift_id: Mapped[UUID | None] = mapped_column(ForeignKey("shift.id"), default=None)
    description: Mapped[str] = mapped_column(String(500), default="")
    service_date: Mapped[date] = mapped_column(default_factory=today)
    cost_per_hour: Mapped[Decimal | None] = mapped_column(default=None)

    @property
    def total(self) -> Decimal:
        return self.billable_hours * self.rate_per_hour

    @property
    def total_cost(self) -> Decimal | None:
        if self.cost_per_hour is None:
            return None
        return self.billable_hours * self.cost_per_hour

    @property
    def gross_profit(self) -> Decimal | None:
        total_cost = self.total_cost
        if total_cost is None:
            return None
        return self.total - total_cost

    @property
    def gross_margin_percentage(self) -> Decimal | None:
        """Profit as a percentage of the line total.

        None rather than zero when there is no cost basis or no revenue: an
        unknown margin is not a zero margin.
        """
        total = self.total
        gross_profit = self.gross_profit
        if total <= 0 or gross_profit is None:
            return None
        return gross_profit / total * 100

    def client_view(self) -> dict[str, Any]:
        """Client-facing fields only, with the computed line total."""
        view = {name: getattr(self, name) for name in self.CLIENT_FIELDS}
        view["total"] = self.total
        return view


class Payment(Base, AuditMixin):
    """Payment applied against an invoice."""

    __tablename__ = "payment"

    invoice_id: Mapped[UUID] = mapped_column(ForeignKey("invoice.id"), index=True)
    amount: Mapped[Decimal]
    method: Mapped[PaymentMethod]
    payment_date: Mapped[datetime] = mapped_column(default_factory=utcnow)
    reference_number: Mapped[str | None] = mapped_column(String(64), default=None)
    notes: Mapped[str | None] = mapped_column(default=None)
    status: Mapped[PaymentStatus] = mapped_column(default=PaymentStatus.PENDING)
    failure_reason: Mapped[str | None] = mapped_column(default=None)

    @property
    def is_settled(self) -> bool:
        return self.status == PaymentStatus.SETTLED
