"""Tests for invoice line item builder."""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from carepath.enums import ServiceType, ShiftStatus
from carepath.services.line_builder import InvoiceLineBuilder
from tests.conftest import NOW, make_shift


class TestInvoiceLineBuilder:
    """Test invoice line builder functionality."""

    def test_round_to_cents(self):
        """Test rounding to 2 decimal places."""
        # Standard rounding
        assert InvoiceLineBuilder.round_to_cents(Decimal("10.125")) == Decimal("10.13")
        assert InvoiceLineBuilder.round_to_cents(Decimal("10.124")) == Decimal("10.12")

        # Half-up rounding
        assert InvoiceLineBuilder.round_to_cents(Decimal("10.135")) == Decimal("10.14")

    def test_round_hours(self):
        """Test rounding hours to 4 decimal places."""
        # 7h50m
        assert InvoiceLineBuilder.round_hours(Decimal("470") / 60) == Decimal("7.8333")

    def test_from_completed_shift(self):
        """Test building a line from a completed shift."""
        invoice_id = uuid4()
        shift = make_shift(worked=True, status=ShiftStatus.COMPLETED)

        line = InvoiceLineBuilder.from_shift(invoice_id, shift)

        assert line.invoice_id == invoice_id
        assert line.shift_id == shift.id
        assert line.billable_hours == Decimal("8")
        assert line.rate_per_hour == Decimal("35.00")
        assert line.cost_per_hour == Decimal("21.00")
        assert line.service_date == NOW.date()
        assert line.total == Decimal("280")
        assert line.gross_margin_percentage == Decimal("40")
        assert line.description == "In home care 2026-02-16 12:00-20:00"

    def test_from_shift_deducts_break(self):
        """Test that the line carries break-adjusted hours."""
        shift = make_shift(worked=True, status=ShiftStatus.COMPLETED, break_minutes=30)

        line = InvoiceLineBuilder.from_shift(uuid4(), shift)

        assert line.billable_hours == Decimal("7.5")

    def test_from_shift_rejects_unfinished_shift(self):
        """Test that only completed shifts are billable."""
        shift = make_shift(worked=True, status=ShiftStatus.IN_PROGRESS)

        with pytest.raises(ValueError, match="Cannot bill shift"):
            InvoiceLineBuilder.from_shift(uuid4(), shift)

    def test_from_shift_rejects_zero_hours(self):
        """Test that a completed shift without billable time is rejected."""
        shift = make_shift(
            worked=True,
            hours=1,
            break_minutes=60,
            status=ShiftStatus.COMPLETED,
        )

        with pytest.raises(ValueError, match="no billable hours"):
            InvoiceLineBuilder.from_shift(uuid4(), shift)

    def test_manual_line(self):
        """Test creating a manual line not tied to a shift."""
        line = InvoiceLineBuilder.manual(
            invoice_id=uuid4(),
            description="Mileage reimbursement",
            billable_hours=Decimal("1"),
            rate_per_hour=Decimal("12.50"),
            service_date=date(2026, 2, 10),
        )

        assert line.shift_id is None
        assert line.service_date == date(2026, 2, 10)
        assert line.total == Decimal("12.50")
        # No cost basis
        assert line.gross_margin_percentage is None

    def test_build_for_shifts_orders_and_filters(self):
        """Test that only billable completed shifts are built, in service order."""
        invoice_id = uuid4()
        later = make_shift(
            start=NOW + timedelta(days=1),
            worked=True,
            status=ShiftStatus.COMPLETED,
            service_type=ServiceType.FACILITY_STAFFING,
        )
        earlier = make_shift(worked=True, status=ShiftStatus.COMPLETED)
        cancelled = make_shift(status=ShiftStatus.CANCELLED)
        no_hours = make_shift(status=ShiftStatus.COMPLETED)

        lines = InvoiceLineBuilder.build_for_shifts(
            invoice_id, [later, cancelled, earlier, no_hours]
        )

        assert [line.shift_id for line in lines] == [earlier.id, later.id]
        assert lines[1].description.startswith("Facility staffing")
