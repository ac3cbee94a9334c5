# care_core/shifts/services.py
from __future__ import annotations

from datetime import date
from uuid import UUID

from django.db import transaction

from care_core.shifts.models import CareShift, ShiftStatus, ShiftType


class ShiftService:
    @staticmethod
    @transaction.atomic
    def schedule_shift(
        *,
        circle_id: UUID,
        patient_id: UUID,
        owner_user_id: UUID,
        created_by: UUID,
        shift_date: date,
        shift_type: str = ShiftType.DAY,
        notes: str = "",
    ) -> CareShift:
        """
        No dedup: scheduling the same member twice on one date yields two shifts.
        """
        return CareShift.objects.create(
            circle_id=circle_id,
            patient_id=patient_id,
            owner_user_id=owner_user_id,
            created_by=created_by,
            shift_date=shift_date,
            shift_type=shift_type,
            status=ShiftStatus.SCHEDULED,
            notes=notes,
        )
