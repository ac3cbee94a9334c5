# care_core/discharge/api/serializers.py
from rest_framework import serializers

from care_core.discharge.models import (
    WIZARD_FIRST_STEP,
    WIZARD_LAST_STEP,
    DischargeChecklistItem,
    DischargeRecord,
    DischargeTemplate,
    DischargeType,
)


class DischargeTemplateSerializer(serializers.ModelSerializer):
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = DischargeTemplate
        fields = ["id", "name", "discharge_type", "description", "items", "item_count", "is_system", "sort_order"]
        read_only_fields = fields

    def get_item_count(self, obj) -> int:
        return len(obj.items or [])


class DischargeChecklistItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = DischargeChecklistItem
        fields = [
            "id",
            "record_id",
            "template_item_id",
            "category",
            "item_text",
            "sort_order",
            "is_completed",
            "completed_at",
            "completed_by",
            "create_task",
            "task_id",
            "assigned_to",
            "due_date",
            "notes",
        ]
        read_only_fields = fields


class DischargeRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = DischargeRecord
        fields = [
            "id",
            "circle_id",
            "patient_id",
            "created_by",
            "facility_name",
            "discharge_date",
            "admission_date",
            "reason_for_stay",
            "discharge_type",
            "template_id",
            "status",
            "current_step",
            "completed_at",
            "completed_by",
            "checklist_state_json",
            "shift_assignments_json",
            "medication_changes_json",
            "generated_task_ids",
            "generated_shift_ids",
            "generated_binder_item_ids",
            "generated_handoff_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


# -------------------------
# Inputs
# -------------------------
class StartDischargeSerializer(serializers.Serializer):
    circle_id = serializers.UUIDField()
    patient_id = serializers.UUIDField()
    facility_name = serializers.CharField(max_length=200, trim_whitespace=False)
    discharge_date = serializers.DateField()
    admission_date = serializers.DateField(required=False, allow_null=True)
    reason_for_stay = serializers.CharField(max_length=500, trim_whitespace=False)
    discharge_type = serializers.ChoiceField(choices=DischargeType.choices, default=DischargeType.OTHER)


class StepSerializer(serializers.Serializer):
    step = serializers.IntegerField(min_value=WIZARD_FIRST_STEP, max_value=WIZARD_LAST_STEP)


class MedicationChangeInputSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    name = serializers.CharField(max_length=200)
    changeType = serializers.CharField(max_length=32)
    dosage = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=200)
    frequency = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=200)
    instructions = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)
    source = serializers.CharField(required=False, max_length=16, default="MANUAL")


class MedicationChangesSerializer(serializers.Serializer):
    changes = MedicationChangeInputSerializer(many=True)


class ShiftAssignmentsSerializer(serializers.Serializer):
    # {"0": "<member uuid>", "1": "..."}; offsets/ids are checked by the service
    assignments = serializers.DictField(child=serializers.CharField())


class ChecklistStateSerializer(serializers.Serializer):
    state = serializers.DictField()


class ConfigureTaskSerializer(serializers.Serializer):
    create_task = serializers.BooleanField()
    assigned_to = serializers.UUIDField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)


class OutputPreviewSerializer(serializers.Serializer):
    tasks_to_create = serializers.IntegerField()
    medication_tasks = serializers.IntegerField()
    equipment_tasks = serializers.IntegerField()
    binder_updates = serializers.IntegerField()
    new_medications = serializers.IntegerField()
    shifts_scheduled = serializers.IntegerField()
    handoff_created = serializers.BooleanField()
    total_outputs = serializers.IntegerField()


class GenerationOutcomeSerializer(serializers.Serializer):
    """
    Read-only rendering of orchestrator.GenerationOutcome.
    """
    record_id = serializers.UUIDField()
    tasks_created = serializers.ListField(child=serializers.UUIDField())
    handoff_id = serializers.UUIDField(allow_null=True)
    shifts_created = serializers.ListField(child=serializers.UUIDField())
    binder_items_created = serializers.ListField(child=serializers.UUIDField())
    counts = serializers.SerializerMethodField()
    replayed = serializers.BooleanField()
    partial_failure = serializers.BooleanField()
    attempted = serializers.IntegerField()
    created = serializers.IntegerField()
    code = serializers.CharField(allow_null=True)

    def get_counts(self, obj) -> dict:
        return obj.counts()


class ActiveRecordQuerySerializer(serializers.Serializer):
    circle_id = serializers.UUIDField()
    patient_id = serializers.UUIDField()
