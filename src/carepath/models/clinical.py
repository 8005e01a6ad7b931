"""Clinical models."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from carepath.clock import today
from carepath.models.base import AuditMixin, Base


class CarePlan(Base, AuditMixin):
    """Care plan for a client. Goals, interventions and notes are PHI.

    A client should hold at most one active plan; see
    ``carepath.services.policies.validate_care_plans``.
    """

    __tablename__ = "care_plan"

    client_id: Mapped[UUID] = mapped_column(ForeignKey("client.id"), index=True)
    title: Mapped[str] = mapped_column(String(200), default="")
    description: Mapped[str | None] = mapped_column(default=None)
    start_date: Mapped[date] = mapped_column(default_factory=today)
    end_date: Mapped[date | None] = mapped_column(default=None)
    is_active: Mapped[bool] = mapped_column(default=True)
    goals: Mapped[str | None] = mapped_column(default=None)
    interventions: Mapped[str | None] = mapped_column(default=None)
    notes: Mapped[str | None] = mapped_column(default=None)

    def is_active_on(self, as_of_date: date) -> bool:
        """Check if the plan is in effect on a given date."""
        if not self.is_active:
            return False
        if self.start_date > as_of_date:
            return False
        if self.end_date is not None and self.end_date < as_of_date:
            return False
        return True
