"""Agency policies that the models document but do not enforce.

Each check returns a list of error messages (empty if valid), so callers
decide whether a violation blocks the operation or is only reported.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from carepath.clock import ensure_utc
from carepath.models import CarePlan, CaregiverCertification


def validate_certification(cert: CaregiverCertification) -> list[str]:
    """Check a certification record for completeness and consistency."""
    errors: list[str] = []
    label = cert.type.value.upper()

    if cert.requires_board_credential:
        if not cert.certification_number:
            errors.append(f"{label} certification requires a certification number")
        if not cert.issuing_authority:
            errors.append(f"{label} certification requires an issuing authority")

    if ensure_utc(cert.expiration_date) <= ensure_utc(cert.issue_date):
        errors.append(f"{label} certification expires on or before its issue date")

    return errors


def validate_care_plans(plans: Iterable[CarePlan], as_of_date: date | None = None) -> list[str]:
    """Check that a client holds at most one active care plan.

    With ``as_of_date`` only plans in effect on that date are considered;
    otherwise every plan flagged active counts.
    """
    errors: list[str] = []
    live = [p for p in plans if not p.is_deleted]

    for plan in live:
        if plan.end_date is not None and plan.end_date < plan.start_date:
            errors.append(f"Care plan '{plan.title}' ends before it starts")

    if as_of_date is None:
        active = [p for p in live if p.is_active]
    else:
        active = [p for p in live if p.is_active_on(as_of_date)]

    if len(active) > 1:
        titles = ", ".join(f"'{p.title}'" for p in active)
        errors.append(f"Client has {len(active)} active care plans: {titles}")

    return errors
