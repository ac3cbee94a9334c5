# care_core/audit/models.py
from django.db import models

from care_core.common.models import CircleScopedModel


class AuditEvent(CircleScopedModel):
    """
    Immutable audit record.
    metadata holds ids and counts only; never names or free text.
    """
    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "discharge.outputs_generated"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "DischargeRecord"
    entity_id = models.UUIDField(db_index=True)

    actor_id = models.UUIDField(null=True, blank=True, db_index=True)

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["circle_id", "occurred_at"]),
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["circle_id", "event_code"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("AuditEvent rows are append-only.")
        return super().save(*args, **kwargs)
