# care_core/discharge/services.py

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils.timezone import now as tz_now

from care_core.audit.services import AuditService
from care_core.circles.models import MemberRole, Patient
from care_core.circles.services import active_membership, has_minimum_role
from care_core.common.sanitize import validate_text_input
from care_core.discharge import errors
from care_core.discharge.errors import DischargeError
from care_core.discharge.generators import TaskGenerator
from care_core.discharge.models import (
    WIZARD_FIRST_STEP,
    WIZARD_LAST_STEP,
    ChecklistCategory,
    DischargeChecklistItem,
    DischargeRecord,
    DischargeStatus,
    DischargeType,
)
from care_core.discharge.orchestrator import discharge_feature
from care_core.discharge.schemas import (
    CHANGE_NEW,
    ChecklistState,
    changes_to_json,
    parse_medication_changes,
    parse_shift_assignments,
)
from care_core.discharge.selectors import get_checklist_item, get_record, list_checklist_items
from care_core.discharge.templates import template_for, template_item_id
from care_core.subscriptions.services import has_feature


FACILITY_NAME_MAX_LENGTH = 200
REASON_MAX_LENGTH = 500


@dataclass(frozen=True)
class OutputPreview:
    tasks_to_create: int
    medication_tasks: int
    equipment_tasks: int
    binder_updates: int
    new_medications: int
    shifts_scheduled: int
    handoff_created: bool

    @property
    def total_outputs(self) -> int:
        return self.tasks_to_create + self.binder_updates + self.shifts_scheduled + (1 if self.handoff_created else 0)

    def as_dict(self) -> dict[str, Any]:
        return {**asdict(self), "total_outputs": self.total_outputs}


class DischargeWizardService:
    """
    Wizard write-model operations (everything before generate_outputs).

    Notes:
    - Reads need ACTIVE membership; writes need CONTRIBUTOR or above.
    - Starting a wizard is gated by the premium feature, like generation.
    - Only IN_PROGRESS records accept edits.
    """

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _require_member(*, actor_id: UUID, circle_id: UUID) -> str:
        role = active_membership(actor_id=actor_id, circle_id=circle_id)
        if role is None:
            raise DischargeError(errors.ACCESS_DENIED, "Access denied.")
        return role

    @staticmethod
    def _require_contributor(*, actor_id: UUID, circle_id: UUID) -> None:
        if not has_minimum_role(actor_id=actor_id, circle_id=circle_id, minimum=MemberRole.CONTRIBUTOR):
            raise DischargeError(errors.ACCESS_DENIED, "Contributor role required.")

    @staticmethod
    def _readable_record(*, record_id: UUID, actor_id: UUID) -> DischargeRecord:
        record = get_record(record_id=record_id)
        if record is None:
            raise DischargeError(errors.NOT_FOUND, "Discharge record not found.")
        DischargeWizardService._require_member(actor_id=actor_id, circle_id=record.circle_id)
        return record

    @staticmethod
    def _editable_record(*, record_id: UUID, actor_id: UUID) -> DischargeRecord:
        record = get_record(record_id=record_id)
        if record is None:
            raise DischargeError(errors.NOT_FOUND, "Discharge record not found.")
        DischargeWizardService._require_contributor(actor_id=actor_id, circle_id=record.circle_id)
        if not record.is_in_progress:
            raise ValidationError("Only in-progress discharge records can be edited.")
        return record

    @staticmethod
    def _editable_item(*, item_id: UUID, actor_id: UUID) -> DischargeChecklistItem:
        item = get_checklist_item(item_id=item_id)
        if item is None:
            raise DischargeError(errors.NOT_FOUND, "Checklist item not found.")
        DischargeWizardService._require_contributor(actor_id=actor_id, circle_id=item.record.circle_id)
        if not item.record.is_in_progress:
            raise ValidationError("Only in-progress discharge records can be edited.")
        return item

    @staticmethod
    def _save(record: DischargeRecord, fields: list[str]) -> DischargeRecord:
        record.save(update_fields=[*fields, "updated_at"])
        return record

    # -------------------------
    # Start
    # -------------------------
    @staticmethod
    @transaction.atomic
    def start_discharge(
        *,
        circle_id: UUID,
        patient_id: UUID,
        actor_id: UUID,
        facility_name: str,
        discharge_date: date,
        reason_for_stay: str,
        discharge_type: str = DischargeType.OTHER,
        admission_date: Optional[date] = None,
    ) -> DischargeRecord:
        """
        Create an IN_PROGRESS record and seed its checklist from the matching template.
        """
        facility_name = validate_text_input(
            facility_name, max_length=FACILITY_NAME_MAX_LENGTH, field_name="Facility name"
        )
        reason_for_stay = validate_text_input(
            reason_for_stay, max_length=REASON_MAX_LENGTH, field_name="Reason for stay"
        )
        if discharge_type not in DischargeType.values:
            raise ValidationError("Unknown discharge type.")
        if admission_date and discharge_date and admission_date > discharge_date:
            raise ValidationError("Admission date cannot be after discharge date.")

        DischargeWizardService._require_contributor(actor_id=actor_id, circle_id=circle_id)
        if not has_feature(actor_id=actor_id, feature=discharge_feature()):
            raise DischargeError(errors.PAYMENT_REQUIRED, "Premium subscription required.")

        if not Patient.objects.filter(id=patient_id, circle_id=circle_id).exists():
            raise DischargeError(errors.NOT_FOUND, "Patient not found in this circle.")

        template = template_for(discharge_type)
        record = DischargeRecord.objects.create(
            circle_id=circle_id,
            patient_id=patient_id,
            created_by=actor_id,
            facility_name=facility_name,
            discharge_date=discharge_date,
            admission_date=admission_date,
            reason_for_stay=reason_for_stay,
            discharge_type=discharge_type,
            template=template,
            status=DischargeStatus.IN_PROGRESS,
            current_step=WIZARD_FIRST_STEP,
        )

        if template is not None:
            DischargeChecklistItem.objects.bulk_create(
                [
                    DischargeChecklistItem(
                        record=record,
                        template_item_id=template_item_id(entry),
                        category=entry["category"],
                        item_text=entry["item_text"],
                        sort_order=entry.get("sort_order", 0),
                    )
                    for entry in template.items or []
                ]
            )

        AuditService.log(
            event_code="discharge.started",
            entity_type="DischargeRecord",
            entity_id=record.id,
            circle_id=circle_id,
            actor_id=actor_id,
            metadata={
                "discharge_type": discharge_type,
                "template_id": str(template.id) if template else None,
                "items": len(template.items or []) if template else 0,
            },
        )
        return record

    # -------------------------
    # Wizard state
    # -------------------------
    @staticmethod
    @transaction.atomic
    def update_step(*, record_id: UUID, actor_id: UUID, step: int) -> DischargeRecord:
        if isinstance(step, bool) or not isinstance(step, int) or not WIZARD_FIRST_STEP <= step <= WIZARD_LAST_STEP:
            raise ValidationError(f"Step must be between {WIZARD_FIRST_STEP} and {WIZARD_LAST_STEP}.")

        record = DischargeWizardService._editable_record(record_id=record_id, actor_id=actor_id)
        record.current_step = step
        return DischargeWizardService._save(record, ["current_step"])

    @staticmethod
    @transaction.atomic
    def save_checklist_state(*, record_id: UUID, actor_id: UUID, state: dict[str, Any]) -> DischargeRecord:
        record = DischargeWizardService._editable_record(record_id=record_id, actor_id=actor_id)
        record.checklist_state_json = ChecklistState.from_json(state).to_json()
        return DischargeWizardService._save(record, ["checklist_state_json"])

    @staticmethod
    @transaction.atomic
    def save_shift_assignments(*, record_id: UUID, actor_id: UUID, assignments: dict[Any, Any]) -> DischargeRecord:
        """
        Strict: the first bad offset or assignee rejects the whole map.
        Assignees must be active members of the record's circle.
        """
        record = DischargeWizardService._editable_record(record_id=record_id, actor_id=actor_id)
        parsed = parse_shift_assignments(assignments, strict=True)
        for assignment in parsed:
            if active_membership(actor_id=assignment.assignee_id, circle_id=record.circle_id) is None:
                raise ValidationError("Shift assignee must be an active circle member.")
        record.shift_assignments_json = {str(a.day_offset): str(a.assignee_id) for a in parsed}
        return DischargeWizardService._save(record, ["shift_assignments_json"])

    @staticmethod
    @transaction.atomic
    def save_medication_changes(*, record_id: UUID, actor_id: UUID, changes: list[Any]) -> DischargeRecord:
        record = DischargeWizardService._editable_record(record_id=record_id, actor_id=actor_id)
        record.medication_changes_json = changes_to_json(parse_medication_changes(changes, strict=True))
        return DischargeWizardService._save(record, ["medication_changes_json"])

    @staticmethod
    @transaction.atomic
    def cancel_record(*, record_id: UUID, actor_id: UUID) -> DischargeRecord:
        record = DischargeWizardService._editable_record(record_id=record_id, actor_id=actor_id)

        updated = DischargeRecord.objects.filter(id=record.id, status=DischargeStatus.IN_PROGRESS).update(
            status=DischargeStatus.CANCELLED,
            updated_at=tz_now(),
        )
        if updated != 1:
            raise ValidationError("Only in-progress discharge records can be cancelled.")

        AuditService.log(
            event_code="discharge.cancelled",
            entity_type="DischargeRecord",
            entity_id=record.id,
            circle_id=record.circle_id,
            actor_id=actor_id,
            metadata={"step": record.current_step},
        )
        record.refresh_from_db()
        return record

    # -------------------------
    # Checklist items
    # -------------------------
    @staticmethod
    @transaction.atomic
    def toggle_item_completion(*, item_id: UUID, actor_id: UUID) -> DischargeChecklistItem:
        item = DischargeWizardService._editable_item(item_id=item_id, actor_id=actor_id)

        if item.is_completed:
            item.is_completed = False
            item.completed_at = None
            item.completed_by = None
        else:
            item.is_completed = True
            item.completed_at = tz_now()
            item.completed_by = actor_id

        item.save(update_fields=["is_completed", "completed_at", "completed_by", "updated_at"])
        return item

    @staticmethod
    @transaction.atomic
    def configure_task_for_item(
        *,
        item_id: UUID,
        actor_id: UUID,
        create_task: bool,
        assigned_to: Optional[UUID] = None,
        due_date: Optional[date] = None,
    ) -> DischargeChecklistItem:
        item = DischargeWizardService._editable_item(item_id=item_id, actor_id=actor_id)

        if item.task_id is not None:
            raise ValidationError("A task was already generated for this item.")
        if assigned_to is not None and active_membership(actor_id=assigned_to, circle_id=item.record.circle_id) is None:
            raise ValidationError("Assignee must be an active circle member.")

        item.create_task = bool(create_task)
        item.assigned_to = assigned_to
        item.due_date = due_date
        item.save(update_fields=["create_task", "assigned_to", "due_date", "updated_at"])
        return item

    # -------------------------
    # Preview
    # -------------------------
    @staticmethod
    def preview_outputs(*, record_id: UUID, actor_id: UUID) -> OutputPreview:
        """
        What generate_outputs would create right now. Read-only.
        """
        record = DischargeWizardService._readable_record(record_id=record_id, actor_id=actor_id)
        items = list(list_checklist_items(record_id=record.id))
        changes = parse_medication_changes(record.medication_changes_json)

        return OutputPreview(
            tasks_to_create=len(TaskGenerator.qualifying(items)),
            medication_tasks=len([i for i in items if i.category == ChecklistCategory.MEDICATIONS and i.create_task]),
            equipment_tasks=len([i for i in items if i.category == ChecklistCategory.EQUIPMENT and i.create_task]),
            binder_updates=len([c for c in changes if c.produces_binder_item]),
            new_medications=len([c for c in changes if c.change_type == CHANGE_NEW]),
            shifts_scheduled=len(parse_shift_assignments(record.shift_assignments_json)),
            handoff_created=record.generated_handoff_id is None,
        )
