# care_core/handoffs/services.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils.timezone import now as tz_now

from care_core.handoffs.models import Handoff, HandoffRevision, HandoffStatus, HandoffType


class HandoffService:
    """
    Handoff write-model operations.
    """

    @staticmethod
    @transaction.atomic
    def publish(
        *,
        circle_id: UUID,
        patient_id: UUID,
        created_by: UUID,
        title: str,
        summary: str,
        structured: dict[str, Any],
        handoff_type: str = HandoffType.OTHER,
        change_note: str = "",
        published_at: Optional[datetime] = None,
    ) -> Handoff:
        """
        Create a handoff already PUBLISHED together with revision #1.
        Both rows commit or neither does.
        """
        if not title:
            raise ValidationError("Handoff title is required.")

        handoff = Handoff.objects.create(
            circle_id=circle_id,
            patient_id=patient_id,
            created_by=created_by,
            handoff_type=handoff_type,
            title=title[:80],
            summary=summary,
            status=HandoffStatus.PUBLISHED,
            published_at=published_at or tz_now(),
            current_revision=1,
        )
        HandoffRevision.objects.create(
            handoff=handoff,
            revision=1,
            structured_json=structured,
            edited_by=created_by,
            change_note=change_note,
        )
        return handoff
