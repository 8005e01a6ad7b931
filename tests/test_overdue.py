"""Tests for the overdue invoice job."""

from datetime import date, datetime, timedelta, timezone

import pytest

from carepath.enums import InvoiceStatus
from carepath.services.overdue import OverdueInvoiceJob, PeriodicJob
from tests.conftest import NOW, make_invoice, sent_invoice

pytestmark = pytest.mark.asyncio

YESTERDAY = NOW.date() - timedelta(days=1)
TOMORROW = NOW.date() + timedelta(days=1)


async def _seed(make_uow, invoices):
    async with make_uow() as uow:
        for invoice in invoices:
            await uow.invoices.add(invoice)
        await uow.save_changes()
    return [invoice.id for invoice in invoices]


async def _statuses(make_uow, ids):
    async with make_uow() as uow:
        return [(await uow.invoices.get_by_id(i)).status for i in ids]


class TestOverdueInvoiceJob:
    """Test overdue marking."""

    async def test_marks_only_collectible_past_due(self, make_uow, care_team):
        """Test which invoices are moved to overdue."""
        client_id = care_team.client_id
        invoices = [
            # Past due with a balance: marked
            sent_invoice(client_id, YESTERDAY, lines=[("8", "35.00")]),
            make_invoice(
                client_id,
                lines=[("8", "35.00")],
                settled=["100.00"],
                status=InvoiceStatus.PARTIALLY_PAID,
                due_date=YESTERDAY,
            ),
            # Not yet due
            sent_invoice(client_id, TOMORROW, lines=[("8", "35.00")]),
            # Due today is not past due
            sent_invoice(client_id, NOW.date(), lines=[("8", "35.00")]),
            # Never sent
            make_invoice(client_id, lines=[("8", "35.00")], due_date=YESTERDAY),
            # Fully settled but not yet reconciled
            sent_invoice(client_id, YESTERDAY, lines=[("8", "35.00")], settled=["280.00"]),
            # Cancelled
            make_invoice(
                client_id,
                lines=[("8", "35.00")],
                status=InvoiceStatus.CANCELLED,
                due_date=YESTERDAY,
            ),
        ]
        ids = await _seed(make_uow, invoices)

        async with make_uow() as uow:
            marked = await OverdueInvoiceJob().run_once(uow, NOW)

        assert marked == 2
        assert await _statuses(make_uow, ids) == [
            InvoiceStatus.OVERDUE,
            InvoiceStatus.OVERDUE,
            InvoiceStatus.SENT,
            InvoiceStatus.SENT,
            InvoiceStatus.DRAFT,
            InvoiceStatus.SENT,
            InvoiceStatus.CANCELLED,
        ]

    async def test_second_run_is_noop(self, make_uow, care_team):
        """Test that overdue invoices are not touched again."""
        await _seed(make_uow, [sent_invoice(care_team.client_id, YESTERDAY, lines=[("1", "35")])])

        async with make_uow() as uow:
            assert await OverdueInvoiceJob().run_once(uow, NOW) == 1
        async with make_uow() as uow:
            assert await OverdueInvoiceJob().run_once(uow, NOW) == 0

    async def test_grace_days(self, make_uow, care_team):
        """Test that the grace period delays marking."""
        ids = await _seed(
            make_uow,
            [sent_invoice(care_team.client_id, NOW.date() - timedelta(days=3), lines=[("1", "35")])],
        )

        async with make_uow() as uow:
            assert await OverdueInvoiceJob(grace_days=5).run_once(uow, NOW) == 0
        assert await _statuses(make_uow, ids) == [InvoiceStatus.SENT]

        async with make_uow() as uow:
            assert await OverdueInvoiceJob(grace_days=2).run_once(uow, NOW) == 1
        assert await _statuses(make_uow, ids) == [InvoiceStatus.OVERDUE]

    async def test_audit_actor_recorded(self, make_uow, care_team):
        """Test that the job's changes carry the acting identity."""
        ids = await _seed(make_uow, [sent_invoice(care_team.client_id, YESTERDAY, lines=[("1", "35")])])

        async with make_uow(actor="scheduler") as uow:
            await OverdueInvoiceJob().run_once(uow, NOW)

        async with make_uow() as uow:
            invoice = await uow.invoices.get_by_id(ids[0])
            assert invoice.updated_by == "scheduler"

    async def test_joins_open_transaction(self, make_uow, care_team):
        """Test that the job commits with the caller, not on its own."""
        ids = await _seed(make_uow, [sent_invoice(care_team.client_id, YESTERDAY, lines=[("1", "35")])])

        async with make_uow() as uow:
            await uow.begin_transaction()
            assert await OverdueInvoiceJob().run_once(uow, NOW) == 1
            assert uow.in_transaction is True
            await uow.rollback_transaction()
        assert await _statuses(make_uow, ids) == [InvoiceStatus.SENT]

        async with make_uow() as uow:
            await uow.begin_transaction()
            assert await OverdueInvoiceJob().run_once(uow, NOW) == 1
            await uow.commit_transaction()
        assert await _statuses(make_uow, ids) == [InvoiceStatus.OVERDUE]


class TestJobConfiguration:
    """Test job construction."""

    async def test_negative_grace_days_rejected(self):
        """Test that the grace period cannot be negative."""
        with pytest.raises(ValueError):
            OverdueInvoiceJob(grace_days=-1)

    async def test_cutoff(self):
        """Test the cutoff date computation."""
        assert OverdueInvoiceJob().cutoff(NOW) == date(2026, 2, 16)
        assert OverdueInvoiceJob(grace_days=10).cutoff(NOW) == date(2026, 2, 6)

    async def test_cutoff_uses_utc_date(self):
        """Test that a local evening past UTC midnight counts as the next day."""
        central = datetime(2026, 2, 16, 21, 0, tzinfo=timezone(timedelta(hours=-6)))

        assert OverdueInvoiceJob().cutoff(central) == date(2026, 2, 17)

    async def test_is_periodic_job(self):
        """Test that the job satisfies the scheduler protocol."""
        assert isinstance(OverdueInvoiceJob(), PeriodicJob)
