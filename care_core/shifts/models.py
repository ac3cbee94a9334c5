# care_core/shifts/models.py
from django.db import models

from care_core.common.models import CircleScopedModel


class ShiftType(models.TextChoices):
    DAY = "DAY", "Day"
    NIGHT = "NIGHT", "Night"
    OVERNIGHT = "OVERNIGHT", "Overnight"
    CUSTOM = "CUSTOM", "Custom"


class ShiftStatus(models.TextChoices):
    SCHEDULED = "SCHEDULED", "Scheduled"
    ACTIVE = "ACTIVE", "Active"
    COMPLETED = "COMPLETED", "Completed"
    CANCELED = "CANCELED", "Canceled"


class CareShift(CircleScopedModel):
    """
    A caregiving time block assigned to one circle member.
    """
    patient_id = models.UUIDField(db_index=True)
    owner_user_id = models.UUIDField(db_index=True)
    created_by = models.UUIDField()

    shift_date = models.DateField(db_index=True)
    shift_type = models.CharField(max_length=16, choices=ShiftType.choices, default=ShiftType.DAY)
    status = models.CharField(
        max_length=16,
        choices=ShiftStatus.choices,
        default=ShiftStatus.SCHEDULED,
        db_index=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "shifts_care_shift"
        indexes = [
            models.Index(fields=["circle_id", "patient_id", "shift_date"]),
            models.Index(fields=["owner_user_id", "shift_date"]),
        ]
