# care_core/discharge/selectors.py
from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from django.db.models import QuerySet

from care_core.discharge.models import (
    DischargeChecklistItem,
    DischargeRecord,
    DischargeStatus,
    DischargeTemplate,
)


def get_record(*, record_id: UUID) -> Optional[DischargeRecord]:
    return DischargeRecord.objects.filter(id=record_id).first()


def get_active_record(*, circle_id: UUID, patient_id: UUID) -> Optional[DischargeRecord]:
    """
    Most recent IN_PROGRESS record for the patient (wizard resume).
    """
    return (
        DischargeRecord.objects.filter(
            circle_id=circle_id,
            patient_id=patient_id,
            status=DischargeStatus.IN_PROGRESS,
        )
        .order_by("-created_at")
        .first()
    )


def list_records(*, circle_ids: Iterable[UUID]) -> QuerySet[DischargeRecord]:
    return DischargeRecord.objects.filter(circle_id__in=list(circle_ids)).order_by("-created_at")


def list_checklist_items(*, record_id: UUID) -> QuerySet[DischargeChecklistItem]:
    return DischargeChecklistItem.objects.filter(record_id=record_id).order_by("category", "sort_order")


def get_checklist_item(*, item_id: UUID) -> Optional[DischargeChecklistItem]:
    return DischargeChecklistItem.objects.select_related("record").filter(id=item_id).first()


def list_active_templates() -> QuerySet[DischargeTemplate]:
    return DischargeTemplate.objects.filter(is_active=True).order_by("sort_order", "name")
