# care_core/handoffs/models.py
import uuid

from django.db import models

from care_core.common.models import CircleScopedModel, TimeStampedModel


class HandoffType(models.TextChoices):
    VISIT = "VISIT", "Visit"
    CALL = "CALL", "Call"
    APPOINTMENT = "APPOINTMENT", "Appointment"
    FACILITY_UPDATE = "FACILITY_UPDATE", "Facility update"
    OTHER = "OTHER", "Other"


class HandoffStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    PUBLISHED = "PUBLISHED", "Published"


class Handoff(CircleScopedModel):
    """
    A note/summary shared within a circle.
    Edits create HandoffRevision rows; current_revision points at the latest.
    """
    patient_id = models.UUIDField(db_index=True)
    created_by = models.UUIDField()

    handoff_type = models.CharField(max_length=24, choices=HandoffType.choices, default=HandoffType.OTHER)
    title = models.CharField(max_length=80)
    summary = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=16,
        choices=HandoffStatus.choices,
        default=HandoffStatus.DRAFT,
        db_index=True,
    )
    published_at = models.DateTimeField(null=True, blank=True)
    current_revision = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "handoffs_handoff"
        indexes = [
            models.Index(fields=["circle_id", "patient_id", "status"]),
        ]


class HandoffRevision(TimeStampedModel):
    """
    Immutable snapshot of a handoff at one revision.
    structured_json is the machine-readable form (translation, exports).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    handoff = models.ForeignKey(Handoff, on_delete=models.CASCADE, related_name="revisions")
    revision = models.PositiveIntegerField()

    structured_json = models.JSONField(default=dict)
    edited_by = models.UUIDField()
    change_note = models.CharField(max_length=200, blank=True, default="")

    class Meta:
        db_table = "handoffs_handoff_revision"
        constraints = [
            models.UniqueConstraint(fields=["handoff", "revision"], name="uq_handoff_revision"),
        ]
