"""Shift lifecycle service."""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from carepath.clock import utcnow
from carepath.enums import ShiftStatus
from carepath.models import Caregiver, Shift
from carepath.repositories import UnitOfWork
from carepath.services.state_machine import ShiftStateMachine

logger = logging.getLogger(__name__)


class ShiftService:
    """Moves shifts through their lifecycle and keeps caregiver counters in step.

    Counters are incremented here, explicitly, when a shift reaches
    COMPLETED or NO_SHOW; the entities never do it on their own. Every
    operation stages changes and saves through the unit of work.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def assign(self, shift_id: UUID, caregiver_id: UUID) -> Shift:
        """Assign (or reassign) a caregiver to a scheduled shift."""
        shift = await self._load_shift(shift_id)
        if not ShiftStateMachine.can_modify_schedule(shift.status):
            raise ValueError(
                f"Cannot assign a caregiver to shift in status '{shift.status.value}'"
            )
        if await self.uow.caregivers.get_by_id(caregiver_id) is None:
            raise ValueError(f"Caregiver {caregiver_id} not found")
        shift.caregiver_id = caregiver_id
        await self.uow.shifts.update(shift)
        await self.uow.save_changes()
        return shift

    async def check_in(
        self,
        shift_id: UUID,
        latitude: float | None = None,
        longitude: float | None = None,
        at: datetime | None = None,
    ) -> Shift:
        """Start the shift: record actual start and check-in location."""
        shift = await self._load_shift(shift_id)
        if shift.caregiver_id is None:
            raise ValueError(f"Shift {shift_id} has no assigned caregiver")
        ShiftStateMachine.validate_transition(shift.status, ShiftStatus.IN_PROGRESS)

        at = at or utcnow()
        shift.status = ShiftStatus.IN_PROGRESS
        shift.actual_start_time = at
        shift.check_in_time = at
        shift.check_in_latitude = latitude
        shift.check_in_longitude = longitude
        await self.uow.shifts.update(shift)
        await self.uow.save_changes()
        return shift

    async def check_out(
        self,
        shift_id: UUID,
        latitude: float | None = None,
        longitude: float | None = None,
        at: datetime | None = None,
        break_minutes: int | None = None,
    ) -> Shift:
        """Complete the shift and count it for the caregiver, in one transaction."""
        shift = await self._load_shift(shift_id)
        ShiftStateMachine.validate_transition(shift.status, ShiftStatus.COMPLETED)
        caregiver = await self._load_caregiver(shift)

        at = at or utcnow()
        async with self.uow.transaction():
            shift.status = ShiftStatus.COMPLETED
            shift.actual_end_time = at
            shift.check_out_time = at
            shift.check_out_latitude = latitude
            shift.check_out_longitude = longitude
            if break_minutes is not None:
                shift.break_minutes = break_minutes
            caregiver.record_completed_shift()
            await self.uow.shifts.update(shift)
            await self.uow.caregivers.update(caregiver)
            await self.uow.save_changes()

        logger.info(
            "Shift %s completed: %s billable hours, margin %s",
            shift.id,
            shift.billable_hours,
            shift.gross_margin,
        )
        return shift

    async def mark_no_show(self, shift_id: UUID) -> Shift:
        """Record that the assigned caregiver never arrived."""
        shift = await self._load_shift(shift_id)
        ShiftStateMachine.validate_transition(shift.status, ShiftStatus.NO_SHOW)
        caregiver = await self._load_caregiver(shift)

        async with self.uow.transaction():
            shift.status = ShiftStatus.NO_SHOW
            caregiver.record_no_show()
            await self.uow.shifts.update(shift)
            await self.uow.caregivers.update(caregiver)
            await self.uow.save_changes()

        logger.warning("Caregiver %s no-show on shift %s", caregiver.id, shift.id)
        return shift

    async def cancel(self, shift_id: UUID, reason: str) -> Shift:
        """Cancel a scheduled or in-progress shift."""
        if not reason:
            raise ValueError("Cancellation reason is required")
        shift = await self._load_shift(shift_id)
        ShiftStateMachine.validate_transition(shift.status, ShiftStatus.CANCELLED)

        shift.status = ShiftStatus.CANCELLED
        shift.cancellation_reason = reason
        shift.cancelled_at = utcnow()
        await self.uow.shifts.update(shift)
        await self.uow.save_changes()
        return shift

    async def _load_shift(self, shift_id: UUID) -> Shift:
        shift = await self.uow.shifts.get_by_id(shift_id)
        if shift is None:
            raise ValueError(f"Shift {shift_id} not found")
        return shift

    async def _load_caregiver(self, shift: Shift) -> Caregiver:
        if shift.caregiver_id is None:
            raise ValueError(f"Shift {shift.id} has no assigned caregiver")
        caregiver = await self.uow.caregivers.get_by_id(shift.caregiver_id)
        if caregiver is None:
            raise ValueError(f"Caregiver {shift.caregiver_id} not found")
        return caregiver
