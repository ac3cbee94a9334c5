# care_core/discharge/generators.py
"""
Output generators run by DischargeOutputService.

Each generator reads one slice of wizard state and returns a GeneratorReport.
Persistence failures for a single item are recorded in the report and the
loop moves on; every item is written inside its own savepoint so a failed
insert does not poison the surrounding transaction.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils.dateformat import format as date_format

from care_core.binder.models import BinderItemType
from care_core.binder.selectors import list_discharge_medication_items
from care_core.binder.services import BinderService
from care_core.common.results import GeneratorReport, ItemResult
from care_core.common.sanitize import escape_for_embedded_markup, sanitize_title
from care_core.discharge.models import ChecklistCategory, DischargeChecklistItem, DischargeRecord
from care_core.discharge.policy import resolve_due_date
from care_core.discharge.schemas import (
    CHANGE_DOSE_CHANGED,
    CHANGE_NEW,
    CHANGE_SCHEDULE_CHANGED,
    CHANGE_STOPPED,
    MedicationChange,
    parse_medication_changes,
    parse_shift_assignments,
)
from care_core.handoffs.models import HandoffType
from care_core.handoffs.services import HandoffService
from care_core.shifts.models import ShiftType
from care_core.shifts.services import ShiftService
from care_core.tasks.models import TaskPriority
from care_core.tasks.services import TaskService

logger = logging.getLogger(__name__)

# Per-item failures the generators absorb. Anything else propagates to the orchestrator.
ITEM_ERRORS = (DatabaseError, ValidationError)

TASK_TITLE_PREFIX = "[Discharge] "
BINDER_SOURCE = "DISCHARGE"
HANDOFF_TITLE_MAX_LENGTH = 80
HANDOFF_CHANGE_NOTE = "Initial discharge handoff"

CHANGE_LABELS = {
    CHANGE_NEW: "Started",
    CHANGE_STOPPED: "Stopped",
    CHANGE_DOSE_CHANGED: "Dose changed",
    CHANGE_SCHEDULE_CHANGED: "Schedule changed",
}


class TaskLinkConflict(DatabaseError):
    """The checklist item was linked to a task by someone else mid-write."""


@dataclass
class GenerationContext:
    record: DischargeRecord
    actor_id: UUID
    now: datetime
    discharge_day: date
    items: list[DischargeChecklistItem] = field(default_factory=list)

    @property
    def medication_changes(self) -> list[MedicationChange]:
        return parse_medication_changes(self.record.medication_changes_json)


def _log_item_failure(generator: str, ctx: GenerationContext, exc: BaseException) -> None:
    logger.warning(
        "discharge.generator_item_failed",
        extra={
            "generator": generator,
            "record_id": str(ctx.record.id),
            "error_type": type(exc).__name__,
        },
    )


# -------------------------
# Tasks
# -------------------------
class TaskGenerator:
    name = "tasks"

    @staticmethod
    def qualifying(items: list[DischargeChecklistItem]) -> list[DischargeChecklistItem]:
        return [i for i in items if i.create_task and i.task_id is None]

    @staticmethod
    def already_linked(items: list[DischargeChecklistItem]) -> list[DischargeChecklistItem]:
        return [i for i in items if i.create_task and i.task_id is not None]

    @classmethod
    def run(cls, ctx: GenerationContext) -> GeneratorReport:
        report = GeneratorReport(name=cls.name)
        description = "From discharge checklist for " + escape_for_embedded_markup(ctx.record.facility_name)

        # Tasks from an earlier pass stay in the record's references.
        for item in cls.already_linked(ctx.items):
            report.add(ItemResult.link(str(item.id), item.task_id, "already_linked"))

        for item in cls.qualifying(ctx.items):
            key = str(item.id)
            try:
                with transaction.atomic():
                    # Row lock serializes concurrent generators on the same item.
                    locked = DischargeChecklistItem.objects.select_for_update().get(id=item.id)
                    if not locked.create_task:
                        report.add(ItemResult.skip(key, "not_requested"))
                        continue
                    if locked.task_id is not None:
                        item.task_id = locked.task_id
                        report.add(ItemResult.link(key, locked.task_id, "already_linked"))
                        continue

                    task = TaskService.create_task(
                        circle_id=ctx.record.circle_id,
                        patient_id=ctx.record.patient_id,
                        created_by=ctx.actor_id,
                        owner_user_id=locked.assigned_to or ctx.actor_id,
                        title=TASK_TITLE_PREFIX + sanitize_title(locked.item_text),
                        description=description,
                        priority=(
                            TaskPriority.HIGH
                            if locked.category == ChecklistCategory.MEDICATIONS
                            else TaskPriority.MED
                        ),
                        due_at=resolve_due_date(locked.due_date, ctx.discharge_day, locked.category, ctx.now),
                    )

                    linked = DischargeChecklistItem.objects.filter(
                        id=locked.id,
                        task_id__isnull=True,
                    ).update(task_id=task.id)
                    if linked != 1:
                        raise TaskLinkConflict()
            except ITEM_ERRORS as exc:
                _log_item_failure(cls.name, ctx, exc)
                report.add(ItemResult.failed(key, exc))
                continue

            item.task_id = task.id
            report.add(ItemResult.created(key, task.id))

        return report


# -------------------------
# Binder items
# -------------------------
def binder_medication_key(change: MedicationChange) -> str:
    if change.id:
        return f"id:{change.id}"
    return f"name:{sanitize_title(change.name)}"


class BinderItemGenerator:
    """
    One binder item per medication key and record. A rerun links the items
    an earlier pass already wrote instead of writing them again.
    """
    name = "binder_items"

    @classmethod
    def run(cls, ctx: GenerationContext) -> GeneratorReport:
        report = GeneratorReport(name=cls.name)
        existing = {
            (item.content_json or {}).get("medication_key"): item.id
            for item in list_discharge_medication_items(
                circle_id=ctx.record.circle_id,
                record_id=ctx.record.id,
            )
        }

        for index, change in enumerate(ctx.medication_changes):
            key = change.id or f"medication:{index}"
            if not change.produces_binder_item:
                report.add(ItemResult.skip(key, "change_type"))
                continue

            medication_key = binder_medication_key(change)
            if medication_key in existing:
                report.add(ItemResult.link(key, existing[medication_key], "already_exists"))
                continue

            try:
                with transaction.atomic():
                    binder_item = BinderService.create_item(
                        circle_id=ctx.record.circle_id,
                        patient_id=ctx.record.patient_id,
                        created_by=ctx.actor_id,
                        item_type=BinderItemType.MED,
                        title=sanitize_title(change.name),
                        content={
                            "dosage": escape_for_embedded_markup(change.dosage),
                            "frequency": escape_for_embedded_markup(change.frequency),
                            "instructions": escape_for_embedded_markup(change.instructions),
                            "source": BINDER_SOURCE,
                            "discharge_record_id": str(ctx.record.id),
                            "medication_key": medication_key,
                        },
                    )
            except ITEM_ERRORS as exc:
                _log_item_failure(cls.name, ctx, exc)
                report.add(ItemResult.failed(key, exc))
                continue

            existing[medication_key] = binder_item.id
            report.add(ItemResult.created(key, binder_item.id))

        return report


# -------------------------
# Shifts
# -------------------------
class ShiftGenerator:
    """
    Not idempotent: running twice schedules the same days twice.
    """
    name = "shifts"

    @classmethod
    def run(cls, ctx: GenerationContext) -> GeneratorReport:
        report = GeneratorReport(name=cls.name)
        assignments = parse_shift_assignments(ctx.record.shift_assignments_json)

        for rejected_key in assignments.rejected:
            report.add(ItemResult.skip(f"day:{rejected_key}", "invalid_entry"))

        for assignment in assignments:
            key = f"day:{assignment.day_offset}"
            try:
                with transaction.atomic():
                    shift = ShiftService.schedule_shift(
                        circle_id=ctx.record.circle_id,
                        patient_id=ctx.record.patient_id,
                        owner_user_id=assignment.assignee_id,
                        created_by=ctx.actor_id,
                        shift_date=ctx.discharge_day + timedelta(days=assignment.day_offset),
                        shift_type=ShiftType.DAY,
                        notes=f"Post-discharge care - Day {assignment.day_offset + 1}",
                    )
            except ITEM_ERRORS as exc:
                _log_item_failure(cls.name, ctx, exc)
                report.add(ItemResult.failed(key, exc))
                continue

            report.add(ItemResult.created(key, shift.id))

        return report


# -------------------------
# Handoff
# -------------------------
def change_label(change_type: str) -> str:
    return CHANGE_LABELS.get(change_type, change_type)


def first_week_priority_limit() -> int:
    return int(getattr(settings, "DISCHARGE_FIRST_WEEK_PRIORITY_LIMIT", 5))


def format_discharge_day(day: date) -> str:
    return date_format(day, "F j, Y")


def build_handoff_summary(
    record: DischargeRecord,
    items: list[DischargeChecklistItem],
    changes: list[MedicationChange],
    discharge_day: date,
) -> str:
    lines: list[str] = [
        f"Discharged from {escape_for_embedded_markup(record.facility_name)} "
        f"on {format_discharge_day(discharge_day)}.",
        f"\n**Reason for stay:** {escape_for_embedded_markup(record.reason_for_stay)}",
    ]

    if changes:
        lines.append("\n**Medication Changes:**")
        for change in changes:
            lines.append(f"- {escape_for_embedded_markup(change.name)}: {change_label(change.change_type)}")
            if change.dosage:
                lines.append(f"  Dosage: {escape_for_embedded_markup(change.dosage)}")

    completed = len([i for i in items if i.is_completed])
    lines.append(f"\n**Checklist:** {completed}/{len(items)} items completed")

    first_week = [i for i in items if i.category == ChecklistCategory.FIRST_WEEK and not i.is_completed]
    if first_week:
        lines.append("\n**First Week Priorities:**")
        for item in first_week[: first_week_priority_limit()]:
            lines.append(f"- {escape_for_embedded_markup(item.item_text)}")

    return "\n".join(lines)


def build_handoff_snapshot(
    ctx: GenerationContext,
    *,
    summary: str,
    changes: list[MedicationChange],
    tasks_created: int,
    shifts_scheduled: int,
) -> dict[str, Any]:
    facility = escape_for_embedded_markup(ctx.record.facility_name)
    return {
        "title": f"Discharge from {facility}",
        "summary": summary,
        "facility": facility,
        "discharge_date": ctx.discharge_day.isoformat(),
        "reason": escape_for_embedded_markup(ctx.record.reason_for_stay),
        "discharge_type": ctx.record.discharge_type,
        "medication_changes": [
            {
                "name": escape_for_embedded_markup(c.name),
                "change_type": c.change_type,
                "dosage": escape_for_embedded_markup(c.dosage),
            }
            for c in changes
        ],
        "tasks_created": tasks_created,
        "shifts_scheduled": shifts_scheduled,
    }


class HandoffGenerator:
    """
    At most one handoff per record; skipped once the record references one.
    """
    name = "handoff"

    @classmethod
    def run(cls, ctx: GenerationContext, *, tasks_created: int = 0, shifts_scheduled: int = 0) -> GeneratorReport:
        report = GeneratorReport(name=cls.name)

        if ctx.record.generated_handoff_id is not None:
            report.add(ItemResult.skip("handoff", "already_generated"))
            return report

        changes = ctx.medication_changes
        summary = build_handoff_summary(ctx.record, ctx.items, changes, ctx.discharge_day)
        title = f"Discharge from {sanitize_title(ctx.record.facility_name)}"[:HANDOFF_TITLE_MAX_LENGTH]

        handoff_id: Optional[UUID] = None
        try:
            with transaction.atomic():
                handoff = HandoffService.publish(
                    circle_id=ctx.record.circle_id,
                    patient_id=ctx.record.patient_id,
                    created_by=ctx.actor_id,
                    title=title,
                    summary=summary,
                    structured=build_handoff_snapshot(
                        ctx,
                        summary=summary,
                        changes=changes,
                        tasks_created=tasks_created,
                        shifts_scheduled=shifts_scheduled,
                    ),
                    handoff_type=HandoffType.OTHER,
                    change_note=HANDOFF_CHANGE_NOTE,
                    published_at=ctx.now,
                )
                handoff_id = handoff.id
        except ITEM_ERRORS as exc:
            _log_item_failure(cls.name, ctx, exc)
            report.add(ItemResult.failed("handoff", exc))
            return report

        report.add(ItemResult.created("handoff", handoff_id))
        return report
