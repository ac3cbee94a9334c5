# care_core/audit/api/serializers.py
from rest_framework import serializers
from care_core.audit.models import AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    # Keep API field name "timestamp", but map it to real model field "occurred_at"
    timestamp = serializers.DateTimeField(source="occurred_at", read_only=True)

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "circle_id",
            "entity_type",
            "entity_id",
            "event_code",
            "actor_id",
            "timestamp",
            "metadata",
        ]
        read_only_fields = fields
