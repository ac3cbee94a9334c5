# care_core/binder/models.py
from django.db import models

from care_core.common.models import CircleScopedModel


class BinderItemType(models.TextChoices):
    MED = "MED", "Medication"
    CONTACT = "CONTACT", "Contact"
    FACILITY = "FACILITY", "Facility"
    INSURANCE = "INSURANCE", "Insurance"
    DOC = "DOC", "Document"
    NOTE = "NOTE", "Note"


class BinderItem(CircleScopedModel):
    """
    Reference record in a patient's care binder.
    content_json shape depends on item_type; for MED it carries
    dosage/frequency/instructions plus provenance tags.
    """
    patient_id = models.UUIDField(null=True, blank=True, db_index=True)

    item_type = models.CharField(max_length=16, choices=BinderItemType.choices, db_index=True)
    title = models.CharField(max_length=200)
    content_json = models.JSONField(default=dict)

    is_active = models.BooleanField(default=True)

    created_by = models.UUIDField()
    updated_by = models.UUIDField()

    class Meta:
        db_table = "binder_binder_item"
        indexes = [
            models.Index(fields=["circle_id", "patient_id", "item_type"]),
        ]
