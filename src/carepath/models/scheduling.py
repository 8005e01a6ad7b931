"""Shift, visit note and visit photo models."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carepath.clock import ensure_utc, utcnow
from carepath.enums import ServiceType, ShiftStatus
from carepath.models.base import AuditMixin, Base

ZERO = Decimal("0")
SECONDS_PER_MINUTE = Decimal("60")
MINUTES_PER_HOUR = Decimal("60")


def _minutes(delta: timedelta) -> Decimal:
    """Exact minutes in a timedelta."""
    seconds = Decimal(delta.days * 86400 + delta.seconds)
    seconds += Decimal(delta.microseconds) / Decimal(1_000_000)
    return seconds / SECONDS_PER_MINUTE


class Shift(Base, AuditMixin):
    """A care session delivered by a caregiver to a client.

    ``bill_rate`` and ``pay_rate`` are copied from the client's bill rate and
    the caregiver's pay rate when the shift is created and are not updated
    afterwards, so historical margins stay as they were at time of service.

    Margin targets: 40-45% for in-home (W-2) shifts, 25-30% for facility
    (1099) shifts. These are reporting targets, not constraints.
    """

    __tablename__ = "shift"

    client_id: Mapped[UUID] = mapped_column(ForeignKey("client.id"), index=True)
    scheduled_start_time: Mapped[datetime] = mapped_column(index=True)
    scheduled_end_time: Mapped[datetime]
    bill_rate: Mapped[Decimal]
    pay_rate: Mapped[Decimal]

    # None while the shift is open and awaiting assignment
    caregiver_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("caregiver.id"), default=None, index=True
    )
    actual_start_time: Mapped[datetime | None] = mapped_column(default=None)
    actual_end_time: Mapped[datetime | None] = mapped_column(default=None)
    status: Mapped[ShiftStatus] = mapped_column(default=ShiftStatus.SCHEDULED)
    service_type: Mapped[ServiceType] = mapped_column(default=ServiceType.IN_HOME_CARE)

    overtime_pay_rate: Mapped[Decimal | None] = mapped_column(default=None)
    weekend_premium: Mapped[Decimal | None] = mapped_column(default=None)
    holiday_premium: Mapped[Decimal | None] = mapped_column(default=None)

    # GPS check-in/out (geofence validation happens upstream)
    check_in_latitude: Mapped[float | None] = mapped_column(default=None)
    check_in_longitude: Mapped[float | None] = mapped_column(default=None)
    check_in_time: Mapped[datetime | None] = mapped_column(default=None)
    check_out_latitude: Mapped[float | None] = mapped_column(default=None)
    check_out_longitude: Mapped[float | None] = mapped_column(default=None)
    check_out_time: Mapped[datetime | None] = mapped_column(default=None)

    # Unpaid break time
    break_minutes: Mapped[int] = mapped_column(default=0)

    notes: Mapped[str | None] = mapped_column(default=None)
    cancellation_reason: Mapped[str | None] = mapped_column(default=None)
    cancelled_at: Mapped[datetime | None] = mapped_column(default=None)

    visit_notes: Mapped[list[VisitNote]] = relationship(
        default_factory=list, lazy="selectin", repr=False
    )

    @property
    def scheduled_duration(self) -> timedelta:
        return ensure_utc(self.scheduled_end_time) - ensure_utc(self.scheduled_start_time)

    @property
    def actual_duration(self) -> timedelta | None:
        if self.actual_start_time is None or self.actual_end_time is None:
            return None
        return ensure_utc(self.actual_end_time) - ensure_utc(self.actual_start_time)

    @property
    def billable_hours(self) -> Decimal:
        """Worked hours less break time; zero until both actual times exist.

        A break that consumes the whole shift yields zero, never a negative.
        """
        duration = self.actual_duration
        if duration is None:
            return ZERO
        minutes = _minutes(duration) - self.break_minutes
        if minutes <= 0:
            return ZERO
        return minutes / MINUTES_PER_HOUR

    @property
    def gross_margin(self) -> Decimal:
        return (self.bill_rate - self.pay_rate) * self.billable_hours

    @property
    def gross_margin_percentage(self) -> Decimal:
        """Margin as a percentage of revenue; zero when there is no revenue."""
        hours = self.billable_hours
        if self.bill_rate <= 0 or hours <= 0:
            return ZERO
        return self.gross_margin / (self.bill_rate * hours) * 100

    @property
    def is_assigned(self) -> bool:
        return self.caregiver_id is not None


class VisitNote(Base, AuditMixin):
    """Caregiver documentation of a visit.

    ``visit_date_time`` is when care was delivered, not when the note was
    submitted. Free-text fields, vitals and signatures are PHI; signature
    blobs live in access-controlled storage referenced by URL.
    """

    __tablename__ = "visit_note"

    shift_id: Mapped[UUID] = mapped_column(ForeignKey("shift.id"), index=True)
    caregiver_id: Mapped[UUID] = mapped_column(ForeignKey("caregiver.id"), index=True)
    visit_date_time: Mapped[datetime]

    # Activity checkboxes
    personal_care: Mapped[bool] = mapped_column(default=False)
    meal_preparation: Mapped[bool] = mapped_column(default=False)
    medication: Mapped[bool] = mapped_column(default=False)
    light_housekeeping: Mapped[bool] = mapped_column(default=False)
    companionship: Mapped[bool] = mapped_column(default=False)
    transportation: Mapped[bool] = mapped_column(default=False)
    exercise: Mapped[bool] = mapped_column(default=False)

    activities: Mapped[str | None] = mapped_column(default=None)
    client_condition: Mapped[str | None] = mapped_column(default=None)
    concerns: Mapped[str | None] = mapped_column(default=None)
    medications: Mapped[str | None] = mapped_column(default=None)

    # Vital signs
    blood_pressure_systolic: Mapped[int | None] = mapped_column(default=None)
    blood_pressure_diastolic: Mapped[int | None] = mapped_column(default=None)
    temperature: Mapped[Decimal | None] = mapped_column(Numeric(4, 1), default=None)
    heart_rate: Mapped[int | None] = mapped_column(default=None)

    caregiver_signature_url: Mapped[str | None] = mapped_column(String(2048), default=None)
    client_or_family_signature_url: Mapped[str | None] = mapped_column(
        String(2048), default=None
    )

    photos: Mapped[list[VisitPhoto]] = relationship(
        default_factory=list, lazy="selectin", repr=False
    )

    @property
    def is_signed(self) -> bool:
        """Both the caregiver and the client (or family) have signed."""
        return bool(self.caregiver_signature_url and self.client_or_family_signature_url)


class VisitPhoto(Base, AuditMixin):
    """Photo attached to a visit note, stored in blob storage."""

    __tablename__ = "visit_photo"

    visit_note_id: Mapped[UUID] = mapped_column(ForeignKey("visit_note.id"), index=True)
    photo_url: Mapped[str] = mapped_column(String(2048), default="")
    caption: Mapped[str | None] = mapped_column(default=None)
    taken_at: Mapped[datetime] = mapped_column(default_factory=utcnow)
