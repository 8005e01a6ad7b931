"""CarePath Command Line Interface.

Operational tools for:
- Schema creation on development databases
- Overdue invoice marking (run from cron or any scheduler)
- Certification expiry reports

Usage:
    python -m carepath init-db
    python -m carepath mark-overdue --as-of 2026-03-01T06:00:00Z
    python -m carepath expiring-certifications --days 30
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import Callable

from carepath.clock import ensure_utc, utcnow
from carepath.config import get_settings
from carepath.database import create_schema, dispose_db, init_db
from carepath.repositories import SqlAlchemyUnitOfWork
from carepath.services.certifications import CertificationMonitor
from carepath.services.overdue import OverdueInvoiceJob


def parse_datetime(s: str) -> datetime:
    """Parse ISO datetime string, normalised to UTC."""
    return ensure_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))


class CarePathCli:
    """CarePath Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m carepath",
            description="CarePath operational tools",
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Enable debug logging",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # init-db command
        subparsers.add_parser(
            "init-db",
            help="Create all tables (development databases only)",
        )

        # mark-overdue command
        overdue = subparsers.add_parser(
            "mark-overdue",
            help="Mark past-due invoices as overdue",
        )
        overdue.add_argument(
            "--as-of",
            type=parse_datetime,
            help="Evaluate as of this timestamp (ISO format, default: now)",
        )
        overdue.add_argument(
            "--grace-days",
            type=int,
            help="Days past the due date before an invoice counts as overdue "
            "(default: $OVERDUE_GRACE_DAYS)",
        )

        # expiring-certifications command
        certs = subparsers.add_parser(
            "expiring-certifications",
            help="List expired and soon-to-expire caregiver certifications",
        )
        certs.add_argument(
            "--as-of",
            type=parse_datetime,
            help="Evaluate as of this timestamp (ISO format, default: now)",
        )
        certs.add_argument(
            "--days",
            type=int,
            help="Alert window in days (default: $CERTIFICATION_ALERT_DAYS)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        logging.basicConfig(
            level=logging.DEBUG if parsed.verbose else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "init-db": self._cmd_init_db,
            "mark-overdue": self._cmd_mark_overdue,
            "expiring-certifications": self._cmd_expiring_certifications,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create the schema."""

        async def _run() -> None:
            engine, _ = init_db()
            try:
                await create_schema(engine)
            finally:
                await dispose_db()

        asyncio.run(_run())
        print("Schema created")
        return 0

    def _cmd_mark_overdue(self, args: argparse.Namespace) -> int:
        """Run the overdue invoice job once."""
        settings = get_settings()
        now = args.as_of or utcnow()
        grace_days = args.grace_days if args.grace_days is not None else settings.overdue_grace_days
        job = OverdueInvoiceJob(grace_days=grace_days)

        async def _run() -> int:
            _, factory = init_db()
            try:
                async with SqlAlchemyUnitOfWork(factory, actor=settings.audit_actor) as uow:
                    return await job.run_once(uow, now)
            finally:
                await dispose_db()

        marked = asyncio.run(_run())
        print(f"Marked {marked} invoice(s) overdue as of {now.isoformat()}")
        return 0

    def _cmd_expiring_certifications(self, args: argparse.Namespace) -> int:
        """Print the certification expiry report."""
        settings = get_settings()
        now = args.as_of or utcnow()
        days = args.days if args.days is not None else settings.certification_alert_days

        async def _run():
            _, factory = init_db()
            try:
                async with SqlAlchemyUnitOfWork(factory) as uow:
                    return await CertificationMonitor(uow, alert_days=days).report(now)
            finally:
                await dispose_db()

        report = asyncio.run(_run())

        print(f"Certification report as of {now:%Y-%m-%d}")
        print("=" * 60)
        for heading, certs in (
            ("Expired", report.expired),
            (f"Expiring within {days} days", report.expiring_soon),
        ):
            print(f"\n{heading} ({len(certs)}):")
            for cert in certs:
                print(
                    f"  {cert.type.value.upper():<10} caregiver={cert.caregiver_id} "
                    f"expires={cert.expiration_date:%Y-%m-%d}"
                )

        return 2 if report.expired else 0


def main() -> int:
    """CLI entry point."""
    cli = CarePathCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
