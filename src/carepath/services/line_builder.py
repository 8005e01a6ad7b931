"""Invoice line item builder."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from carepath.enums import ShiftStatus
from carepath.models import InvoiceLineItem, Shift


class InvoiceLineBuilder:
    """Builds invoice line items from completed shifts or manual entries.

    Rounding:
    - Hours to 4 decimals on the line (a minute is 0.0167 h)
    - Currency to 2 decimals only when presenting totals

    A shift line carries the shift's bill rate as ``rate_per_hour`` and its
    pay rate as ``cost_per_hour``, so line margins match the shift margins
    at the time of service.
    """

    HOURS_PRECISION = Decimal("0.0001")
    OUTPUT_PRECISION = Decimal("0.01")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(InvoiceLineBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def round_hours(hours: Decimal) -> Decimal:
        return hours.quantize(InvoiceLineBuilder.HOURS_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def describe_shift(shift: Shift) -> str:
        start = shift.actual_start_time or shift.scheduled_start_time
        end = shift.actual_end_time or shift.scheduled_end_time
        service = shift.service_type.value.replace("_", " ")
        return f"{service.capitalize()} {start:%Y-%m-%d %H:%M}-{end:%H:%M}"

    @staticmethod
    def from_shift(invoice_id: UUID, shift: Shift) -> InvoiceLineItem:
        """Create a line item for a completed shift.

        Raises:
            ValueError: If the shift is not completed or has no billable time
        """
        if shift.status != ShiftStatus.COMPLETED:
            raise ValueError(
                f"Cannot bill shift {shift.id} in status '{shift.status.value}'"
            )
        hours = InvoiceLineBuilder.round_hours(shift.billable_hours)
        if hours <= 0:
            raise ValueError(f"Shift {shift.id} has no billable hours")

        start = shift.actual_start_time or shift.scheduled_start_time
        return InvoiceLineItem(
            invoice_id=invoice_id,
            shift_id=shift.id,
            description=InvoiceLineBuilder.describe_shift(shift),
            service_date=start.date(),
            billable_hours=hours,
            rate_per_hour=shift.bill_rate,
            cost_per_hour=shift.pay_rate,
        )

    @staticmethod
    def manual(
        invoice_id: UUID,
        description: str,
        billable_hours: Decimal,
        rate_per_hour: Decimal,
        service_date: date | None = None,
        cost_per_hour: Decimal | None = None,
    ) -> InvoiceLineItem:
        """Create a manual line item not tied to a shift."""
        item = InvoiceLineItem(
            invoice_id=invoice_id,
            description=description,
            billable_hours=InvoiceLineBuilder.round_hours(billable_hours),
            rate_per_hour=rate_per_hour,
            cost_per_hour=cost_per_hour,
        )
        if service_date is not None:
            item.service_date = service_date
        return item

    @staticmethod
    def build_for_shifts(invoice_id: UUID, shifts: list[Shift]) -> list[InvoiceLineItem]:
        """Line items for every billable completed shift, in service order."""
        billable = [
            s
            for s in shifts
            if s.status == ShiftStatus.COMPLETED and s.billable_hours > 0
        ]
        billable.sort(key=lambda s: s.actual_start_time or s.scheduled_start_time)
        return [InvoiceLineBuilder.from_shift(invoice_id, s) for s in billable]
