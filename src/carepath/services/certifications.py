"""Caregiver credential expiry monitoring.

Finds certifications that have lapsed or are about to. Delivering the
alerts (email, SMS, dashboard) is left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from carepath.clock import ensure_utc
from carepath.models import CaregiverCertification
from carepath.repositories import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class ExpiryReport:
    """Certifications grouped by alert state at a point in time."""

    as_of: datetime
    expired: list[CaregiverCertification]
    expiring_soon: list[CaregiverCertification]

    @property
    def has_alerts(self) -> bool:
        return bool(self.expired or self.expiring_soon)


class CertificationMonitor:
    """Queries certifications by expiry window."""

    def __init__(
        self,
        uow: UnitOfWork,
        alert_days: int = CaregiverCertification.EXPIRATION_ALERT_DAYS,
    ):
        self.uow = uow
        self.alert_days = alert_days

    async def expired(self, now: datetime) -> list[CaregiverCertification]:
        now = ensure_utc(now)
        return await self.uow.caregiver_certifications.find(
            CaregiverCertification.expiration_date < now
        )

    async def expiring_soon(self, now: datetime) -> list[CaregiverCertification]:
        """Still valid but lapsing within the alert window."""
        now = ensure_utc(now)
        horizon = now + timedelta(days=self.alert_days)
        return await self.uow.caregiver_certifications.find(
            (CaregiverCertification.expiration_date >= now)
            & (CaregiverCertification.expiration_date < horizon)
        )

    async def report(self, now: datetime) -> ExpiryReport:
        now = ensure_utc(now)
        report = ExpiryReport(
            as_of=now,
            expired=await self.expired(now),
            expiring_soon=await self.expiring_soon(now),
        )
        for cert in report.expired:
            logger.warning(
                "Certification %s (%s) for caregiver %s expired on %s",
                cert.id,
                cert.type.value,
                cert.caregiver_id,
                cert.expiration_date,
            )
        logger.info(
            "Certification check as of %s: %d expired, %d expiring within %d days",
            now.date(),
            len(report.expired),
            len(report.expiring_soon),
            self.alert_days,
        )
        return report
