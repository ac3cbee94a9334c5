# care_core/binder/services.py
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction

from care_core.binder.models import BinderItem, BinderItemType


class BinderService:
    @staticmethod
    @transaction.atomic
    def create_item(
        *,
        circle_id: UUID,
        created_by: UUID,
        item_type: str,
        title: str,
        content: Optional[dict[str, Any]] = None,
        patient_id: Optional[UUID] = None,
    ) -> BinderItem:
        if item_type not in BinderItemType.values:
            raise ValidationError("Unknown binder item type.")
        if not title:
            raise ValidationError("Binder item title is required.")

        return BinderItem.objects.create(
            circle_id=circle_id,
            patient_id=patient_id,
            item_type=item_type,
            title=title,
            content_json=content or {},
            created_by=created_by,
            updated_by=created_by,
        )
