# care_core/discharge/models.py
import uuid

from django.db import models

from care_core.common.models import CircleScopedModel, TimeStampedModel


class DischargeType(models.TextChoices):
    GENERAL = "GENERAL", "General"
    SURGERY = "SURGERY", "Surgery"
    STROKE = "STROKE", "Stroke"
    CARDIAC = "CARDIAC", "Cardiac"
    FALL = "FALL", "Fall"
    PSYCHIATRIC = "PSYCHIATRIC", "Psychiatric"
    OTHER = "OTHER", "Other"


class DischargeStatus(models.TextChoices):
    IN_PROGRESS = "IN_PROGRESS", "In progress"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"


class ChecklistCategory(models.TextChoices):
    BEFORE_LEAVING = "BEFORE_LEAVING", "Before leaving"
    MEDICATIONS = "MEDICATIONS", "Medications"
    EQUIPMENT = "EQUIPMENT", "Equipment"
    HOME_PREP = "HOME_PREP", "Home preparation"
    FIRST_WEEK = "FIRST_WEEK", "First week"


WIZARD_FIRST_STEP = 1
WIZARD_LAST_STEP = 7


class DischargeTemplate(TimeStampedModel):
    """
    Checklist template. items is a list of
    {category, item_text, sort_order, is_required}.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=120, unique=True)
    discharge_type = models.CharField(max_length=16, choices=DischargeType.choices, db_index=True)
    description = models.TextField(blank=True, default="")
    items = models.JSONField(default=list)

    is_system = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "discharge_template"
        ordering = ["sort_order", "name"]

    def __str__(self) -> str:
        return self.name


class DischargeRecord(CircleScopedModel):
    """
    One discharge-wizard instance.

    The generated_* references stay empty while IN_PROGRESS and are written
    once, in the same update that flips status to COMPLETED.
    """
    patient_id = models.UUIDField(null=True, blank=True, db_index=True)
    created_by = models.UUIDField(db_index=True)

    facility_name = models.CharField(max_length=200, blank=True, default="")
    discharge_date = models.DateField(null=True, blank=True)
    admission_date = models.DateField(null=True, blank=True)
    reason_for_stay = models.CharField(max_length=500, blank=True, default="")
    discharge_type = models.CharField(
        max_length=16,
        choices=DischargeType.choices,
        default=DischargeType.OTHER,
    )
    template = models.ForeignKey(
        DischargeTemplate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="records",
    )

    status = models.CharField(
        max_length=16,
        choices=DischargeStatus.choices,
        default=DischargeStatus.IN_PROGRESS,
        db_index=True,
    )
    current_step = models.PositiveSmallIntegerField(default=WIZARD_FIRST_STEP)

    completed_at = models.DateTimeField(null=True, blank=True)
    completed_by = models.UUIDField(null=True, blank=True)

    checklist_state_json = models.JSONField(default=dict, blank=True)
    shift_assignments_json = models.JSONField(default=dict, blank=True)
    medication_changes_json = models.JSONField(default=list, blank=True)

    generated_task_ids = models.JSONField(default=list, blank=True)
    generated_shift_ids = models.JSONField(default=list, blank=True)
    generated_binder_item_ids = models.JSONField(default=list, blank=True)
    generated_handoff_id = models.UUIDField(null=True, blank=True)

    class Meta:
        db_table = "discharge_record"
        indexes = [
            models.Index(fields=["circle_id", "status"]),
            models.Index(fields=["patient_id", "status"]),
            models.Index(fields=["created_by", "status"]),
        ]

    @property
    def is_in_progress(self) -> bool:
        return self.status == DischargeStatus.IN_PROGRESS


class DischargeChecklistItem(TimeStampedModel):
    """
    One checklist line. task_id is the idempotency marker for task generation:
    non-null iff a Task was generated for this item.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    record = models.ForeignKey(DischargeRecord, on_delete=models.CASCADE, related_name="items")
    template_item_id = models.CharField(max_length=64)

    category = models.CharField(max_length=16, choices=ChecklistCategory.choices, db_index=True)
    item_text = models.TextField()
    sort_order = models.IntegerField(default=0)

    is_completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    completed_by = models.UUIDField(null=True, blank=True)

    create_task = models.BooleanField(default=False)
    task_id = models.UUIDField(null=True, blank=True)
    assigned_to = models.UUIDField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "discharge_checklist_item"
        ordering = ["category", "sort_order"]
        constraints = [
            models.UniqueConstraint(
                fields=["record", "template_item_id"],
                name="uq_discharge_item_per_record",
            ),
        ]
