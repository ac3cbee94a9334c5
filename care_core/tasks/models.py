# care_core/tasks/models.py
from django.db import models
from django.utils.timezone import now as tz_now

from care_core.common.models import CircleScopedModel


class TaskStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    DONE = "DONE", "Done"
    CANCELED = "CANCELED", "Canceled"


class TaskPriority(models.TextChoices):
    LOW = "LOW", "Low"
    MED = "MED", "Medium"
    HIGH = "HIGH", "High"


class Task(CircleScopedModel):
    """
    Caregiving to-do owned by a circle, optionally about one patient.
    """
    patient_id = models.UUIDField(null=True, blank=True, db_index=True)

    created_by = models.UUIDField()
    owner_user_id = models.UUIDField(db_index=True)

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    priority = models.CharField(
        max_length=8,
        choices=TaskPriority.choices,
        default=TaskPriority.MED,
    )
    status = models.CharField(
        max_length=16,
        choices=TaskStatus.choices,
        default=TaskStatus.OPEN,
        db_index=True,
    )

    due_at = models.DateTimeField(null=True, blank=True, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "tasks_task"
        indexes = [
            models.Index(fields=["circle_id", "status", "due_at"]),
            models.Index(fields=["circle_id", "owner_user_id", "status"]),
        ]

    @property
    def is_overdue(self) -> bool:
        """
        Overdue if:
        - due_at exists
        - status is OPEN
        - due_at is in the past
        """
        if not self.due_at:
            return False
        if self.status != TaskStatus.OPEN:
            return False
        return self.due_at < tz_now()
