# care_core/binder/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from care_core.binder.models import BinderItem, BinderItemType


def list_discharge_medication_items(*, circle_id: UUID, record_id: UUID) -> QuerySet[BinderItem]:
    """Active MED items written for one discharge record."""
    return BinderItem.objects.filter(
        circle_id=circle_id,
        item_type=BinderItemType.MED,
        is_active=True,
        content_json__discharge_record_id=str(record_id),
    ).order_by("created_at")
