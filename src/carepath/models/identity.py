"""User, caregiver, certification and client models."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carepath.clock import ensure_utc, today, utcnow
from carepath.enums import (
    BOARD_CREDENTIAL_TYPES,
    CertificationType,
    EmploymentType,
    ServiceType,
    UserRole,
)
from carepath.models.base import AuditMixin, Base

if TYPE_CHECKING:
    from carepath.models.clinical import CarePlan


class User(Base, AuditMixin):
    """Login identity for staff, caregivers and clients."""

    __tablename__ = "app_user"

    role: Mapped[UserRole]
    first_name: Mapped[str] = mapped_column(String(100), default="")
    last_name: Mapped[str] = mapped_column(String(100), default="")
    email: Mapped[str] = mapped_column(String(255), default="", unique=True)
    phone_number: Mapped[str] = mapped_column(String(32), default="")
    address: Mapped[str | None] = mapped_column(default=None)
    city: Mapped[str | None] = mapped_column(default=None)
    state: Mapped[str | None] = mapped_column(default="Maryland")
    zip_code: Mapped[str | None] = mapped_column(String(10), default=None)
    is_active: Mapped[bool] = mapped_column(default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(default=None)

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}".strip()


class Caregiver(Base, AuditMixin):
    """Caregiver profile: employment terms, skills, availability and performance.

    ``total_shifts_completed`` and ``no_show_count`` are read-only; they move
    only through :meth:`record_completed_shift` and :meth:`record_no_show`,
    which the caller invokes when a shift reaches the matching status.
    """

    __tablename__ = "caregiver"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("app_user.id"), index=True)
    employment_type: Mapped[EmploymentType] = mapped_column(
        default=EmploymentType.W2_EMPLOYEE
    )
    hourly_pay_rate: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    hire_date: Mapped[date] = mapped_column(default_factory=today)
    termination_date: Mapped[date | None] = mapped_column(default=None)

    # Skills (caregiver-client matching)
    has_dementia_care: Mapped[bool] = mapped_column(default=False)
    has_alzheimers_care: Mapped[bool] = mapped_column(default=False)
    has_mobility_assistance: Mapped[bool] = mapped_column(default=False)
    has_medication_management: Mapped[bool] = mapped_column(default=False)

    # Availability
    available_weekdays: Mapped[bool] = mapped_column(default=True)
    available_weekends: Mapped[bool] = mapped_column(default=False)
    available_nights: Mapped[bool] = mapped_column(default=False)
    max_weekly_hours: Mapped[int] = mapped_column(default=40)

    # Performance
    average_rating: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), default=None)
    _total_shifts_completed: Mapped[int] = mapped_column(
        "total_shifts_completed", default=0, init=False
    )
    _no_show_count: Mapped[int] = mapped_column("no_show_count", default=0, init=False)

    certifications: Mapped[list[CaregiverCertification]] = relationship(
        default_factory=list, lazy="selectin", repr=False
    )

    @property
    def total_shifts_completed(self) -> int:
        return self._total_shifts_completed

    @property
    def no_show_count(self) -> int:
        return self._no_show_count

    def record_completed_shift(self) -> None:
        """Count one more completed shift."""
        self._total_shifts_completed += 1

    def record_no_show(self) -> None:
        """Count one more no-show."""
        self._no_show_count += 1

    def is_employed_on(self, as_of_date: date) -> bool:
        """Check if the caregiver is employed on a given date."""
        if self.hire_date > as_of_date:
            return False
        if self.termination_date is not None and self.termination_date < as_of_date:
            return False
        return True


class CaregiverCertification(Base, AuditMixin):
    """A credential held by a caregiver, with an expiry window."""

    __tablename__ = "caregiver_certification"

    EXPIRATION_ALERT_DAYS = 30

    caregiver_id: Mapped[UUID] = mapped_column(ForeignKey("caregiver.id"), index=True)
    type: Mapped[CertificationType]
    issue_date: Mapped[datetime]
    expiration_date: Mapped[datetime] = mapped_column(index=True)
    certification_number: Mapped[str | None] = mapped_column(String(64), default=None)
    issuing_authority: Mapped[str | None] = mapped_column(default=None)

    @property
    def requires_board_credential(self) -> bool:
        """Board-issued credentials carry a number and an issuing authority."""
        return self.type in BOARD_CREDENTIAL_TYPES

    def is_expired_at(self, now: datetime) -> bool:
        return ensure_utc(self.expiration_date) < ensure_utc(now)

    def is_expiring_soon_at(self, now: datetime) -> bool:
        """Still valid, but lapsing within the alert window."""
        if self.is_expired_at(now):
            return False
        horizon = ensure_utc(now) + timedelta(days=self.EXPIRATION_ALERT_DAYS)
        return ensure_utc(self.expiration_date) < horizon

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(utcnow())

    @property
    def is_expiring_soon(self) -> bool:
        return self.is_expiring_soon_at(utcnow())


class Client(Base, AuditMixin):
    """Care recipient profile.

    Medical, insurance and emergency-contact fields are PHI.
    """

    __tablename__ = "client"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("app_user.id"), index=True)
    date_of_birth: Mapped[date]

    emergency_contact_name: Mapped[str | None] = mapped_column(default=None)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(32), default=None)
    emergency_contact_relationship: Mapped[str | None] = mapped_column(default=None)

    # Care requirements (caregiver-client matching)
    requires_dementia_care: Mapped[bool] = mapped_column(default=False)
    requires_mobility_assistance: Mapped[bool] = mapped_column(default=False)
    requires_medication_management: Mapped[bool] = mapped_column(default=False)
    requires_companionship: Mapped[bool] = mapped_column(default=False)
    special_instructions: Mapped[str | None] = mapped_column(default=None)
    medical_conditions: Mapped[str | None] = mapped_column(default=None)
    allergies: Mapped[str | None] = mapped_column(default=None)

    # Service
    service_type: Mapped[ServiceType] = mapped_column(default=ServiceType.IN_HOME_CARE)
    hourly_bill_rate: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    estimated_weekly_hours: Mapped[int] = mapped_column(default=0)

    # Check-in geofence reference point
    latitude: Mapped[float | None] = mapped_column(default=None)
    longitude: Mapped[float | None] = mapped_column(default=None)
    location_notes: Mapped[str | None] = mapped_column(default=None)

    # Billing
    insurance_provider: Mapped[str | None] = mapped_column(default=None)
    insurance_policy_number: Mapped[str | None] = mapped_column(default=None)
    medicaid_number: Mapped[str | None] = mapped_column(default=None)

    care_plans: Mapped[list[CarePlan]] = relationship(
        default_factory=list, lazy="selectin", repr=False
    )

    def age_on(self, as_of_date: date) -> int:
        """Whole years of age on a given date.

        Uses the year anniversary of the birth date; a Feb 29 birthday falls
        on Mar 1 in non-leap years.
        """
        dob = self.date_of_birth
        years = as_of_date.year - dob.year
        try:
            anniversary = dob.replace(year=as_of_date.year)
        except ValueError:
            anniversary = date(as_of_date.year, 3, 1)
        if as_of_date < anniversary:
            years -= 1
        return years

    @property
    def age(self) -> int:
        return self.age_on(today())

    def active_care_plans(self) -> list[CarePlan]:
        return [plan for plan in self.care_plans if plan.is_active and not plan.is_deleted]
