# care_core/discharge/orchestrator.py
"""
Completion of a discharge wizard: validate, fan out into artifacts, close the record.

Precondition failures raise DischargeError before any write. Once generation
starts, nothing is raised: the outcome carries whatever was created, plus
PARTIAL_GENERATION_FAILURE or UNEXPECTED_ERROR when applicable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils.timezone import now as tz_now

from care_core.audit.services import AuditService
from care_core.circles.services import active_membership
from care_core.common.events import publish
from care_core.common.results import GeneratorReport, ItemResult
from care_core.discharge import errors
from care_core.discharge.errors import DischargeError
from care_core.discharge.generators import (
    BinderItemGenerator,
    GenerationContext,
    HandoffGenerator,
    ShiftGenerator,
    TaskGenerator,
)
from care_core.discharge.models import DischargeRecord, DischargeStatus
from care_core.discharge.schemas import parse_discharge_date
from care_core.subscriptions.services import has_feature

logger = logging.getLogger(__name__)

EVENT_COMPLETED = "discharge.completed"
AUDIT_OUTPUTS_GENERATED = "discharge.outputs_generated"


class CompletionConflict(DatabaseError):
    """The record left IN_PROGRESS while outputs were being generated."""


def discharge_feature() -> str:
    return getattr(settings, "DISCHARGE_WIZARD_FEATURE", "discharge_wizard")


@dataclass
class GenerationOutcome:
    record_id: UUID
    tasks_created: list[UUID] = field(default_factory=list)
    handoff_id: Optional[UUID] = None
    shifts_created: list[UUID] = field(default_factory=list)
    binder_items_created: list[UUID] = field(default_factory=list)

    replayed: bool = False
    error_code: Optional[str] = None
    failures: list[ItemResult] = field(default_factory=list)
    attempted: int = 0

    @property
    def partial_failure(self) -> bool:
        return bool(self.failures)

    @property
    def code(self) -> Optional[str]:
        if self.error_code:
            return self.error_code
        if self.partial_failure:
            return errors.PARTIAL_GENERATION_FAILURE
        return None

    @property
    def created(self) -> int:
        return (
            len(self.tasks_created)
            + len(self.shifts_created)
            + len(self.binder_items_created)
            + (1 if self.handoff_id else 0)
        )

    def counts(self) -> dict[str, Any]:
        return {
            "tasks_created": len(self.tasks_created),
            "handoff_created": self.handoff_id is not None,
            "shifts_scheduled": len(self.shifts_created),
            "binder_updates": len(self.binder_items_created),
        }

    def absorb(self, report: GeneratorReport) -> None:
        self.failures.extend(report.failures)
        self.attempted += report.attempted

        if report.name == TaskGenerator.name:
            self.tasks_created.extend(report.artifact_ids)
        elif report.name == BinderItemGenerator.name:
            self.binder_items_created.extend(report.artifact_ids)
        elif report.name == ShiftGenerator.name:
            self.shifts_created.extend(report.artifact_ids)
        elif report.name == HandoffGenerator.name and report.artifact_ids:
            self.handoff_id = report.artifact_ids[0]

    @classmethod
    def from_completed(cls, record: DischargeRecord) -> "GenerationOutcome":
        return cls(
            record_id=record.id,
            tasks_created=[UUID(str(x)) for x in record.generated_task_ids or []],
            handoff_id=record.generated_handoff_id,
            shifts_created=[UUID(str(x)) for x in record.generated_shift_ids or []],
            binder_items_created=[UUID(str(x)) for x in record.generated_binder_item_ids or []],
            replayed=True,
        )


class DischargeOutputService:
    # -------------------------
    # Preconditions (no writes)
    # -------------------------
    @staticmethod
    def _load(record_id: UUID) -> DischargeRecord:
        record = DischargeRecord.objects.filter(id=record_id).first()
        if record is None:
            raise DischargeError(errors.NOT_FOUND, "Discharge record not found.")
        return record

    @staticmethod
    def _validated_discharge_day(record: DischargeRecord) -> date:
        if not record.circle_id or not record.patient_id or not (record.facility_name or "").strip():
            raise DischargeError(errors.INVALID_RECORD, "Discharge record is missing required fields.")

        day = parse_discharge_date(record.discharge_date)
        if day is None:
            raise DischargeError(errors.INVALID_RECORD, "Discharge date is not a valid date.")

        if record.status == DischargeStatus.CANCELLED:
            raise DischargeError(errors.INVALID_RECORD, "Discharge record is cancelled.")
        return day

    @staticmethod
    def _authorize(*, record: DischargeRecord, actor_id: UUID) -> None:
        if active_membership(actor_id=actor_id, circle_id=record.circle_id) is None:
            raise DischargeError(errors.ACCESS_DENIED, "Access denied.")
        if not has_feature(actor_id=actor_id, feature=discharge_feature()):
            raise DischargeError(errors.PAYMENT_REQUIRED, "Premium subscription required.")

    # -------------------------
    # Completion (one conditional update + audit)
    # -------------------------
    @staticmethod
    @transaction.atomic
    def _complete(*, record: DischargeRecord, actor_id: UUID, now: datetime, outcome: GenerationOutcome) -> None:
        updated = DischargeRecord.objects.filter(
            id=record.id,
            status=DischargeStatus.IN_PROGRESS,
        ).update(
            status=DischargeStatus.COMPLETED,
            completed_at=now,
            completed_by=actor_id,
            generated_task_ids=[str(x) for x in outcome.tasks_created],
            generated_shift_ids=[str(x) for x in outcome.shifts_created],
            generated_binder_item_ids=[str(x) for x in outcome.binder_items_created],
            generated_handoff_id=outcome.handoff_id,
            updated_at=now,
        )
        if updated != 1:
            raise CompletionConflict()

        AuditService.log(
            event_code=AUDIT_OUTPUTS_GENERATED,
            entity_type="DischargeRecord",
            entity_id=record.id,
            circle_id=record.circle_id,
            actor_id=actor_id,
            metadata={**outcome.counts(), "failed_items": len(outcome.failures)},
        )

    # -------------------------
    # Entry point
    # -------------------------
    @staticmethod
    def generate_outputs(*, record_id: UUID, actor_id: UUID, now: Optional[datetime] = None) -> GenerationOutcome:
        """
        Tasks -> binder items -> shifts -> handoff, then COMPLETED.

        A COMPLETED record is replayed: stored references come back with
        replayed=True and no generator runs.
        """
        now = now or tz_now()

        record = DischargeOutputService._load(record_id)
        discharge_day = DischargeOutputService._validated_discharge_day(record)
        DischargeOutputService._authorize(record=record, actor_id=actor_id)

        if record.status == DischargeStatus.COMPLETED:
            logger.info("discharge.outputs_replayed", extra={"record_id": str(record.id)})
            return GenerationOutcome.from_completed(record)

        outcome = GenerationOutcome(record_id=record.id)
        try:
            ctx = GenerationContext(
                record=record,
                actor_id=actor_id,
                now=now,
                discharge_day=discharge_day,
                items=list(record.items.order_by("category", "sort_order")),
            )

            outcome.absorb(TaskGenerator.run(ctx))
            outcome.absorb(BinderItemGenerator.run(ctx))
            outcome.absorb(ShiftGenerator.run(ctx))
            outcome.absorb(
                HandoffGenerator.run(
                    ctx,
                    tasks_created=len(outcome.tasks_created),
                    shifts_scheduled=len(outcome.shifts_created),
                )
            )

            DischargeOutputService._complete(record=record, actor_id=actor_id, now=now, outcome=outcome)
        except Exception as exc:
            # Type name only: messages can carry patient text.
            logger.error(
                "discharge.generation_failed",
                extra={"record_id": str(record.id), "error_type": type(exc).__name__},
            )
            outcome.error_code = errors.UNEXPECTED_ERROR
            return outcome

        logger.info(
            "discharge.outputs_generated",
            extra={
                "record_id": str(record.id),
                "attempted": outcome.attempted,
                "created": outcome.created,
                "failed": len(outcome.failures),
            },
        )
        publish(
            EVENT_COMPLETED,
            {
                "record_id": str(record.id),
                "circle_id": str(record.circle_id),
                "actor_id": str(actor_id),
                **outcome.counts(),
            },
        )
        return outcome
