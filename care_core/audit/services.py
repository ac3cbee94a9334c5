# care_core/audit/services.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from django.db import transaction

from care_core.audit.models import AuditEvent

logger = logging.getLogger(__name__)

# Codes, enum values and UUID strings. Anything else may be user-authored text.
_TOKEN_RE = re.compile(r"^[A-Za-z0-9_.:-]{1,64}$")


def clean_metadata(metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Keep scalar ids, codes and counts; drop everything else.
    Audit rows outlive the records they describe, so free text never lands here.
    """
    cleaned: Dict[str, Any] = {}
    dropped = []
    for key, value in (metadata or {}).items():
        if value is None or isinstance(value, (bool, int, float)):
            cleaned[key] = value
        elif isinstance(value, UUID):
            cleaned[key] = str(value)
        elif isinstance(value, str) and _TOKEN_RE.match(value):
            cleaned[key] = value
        else:
            dropped.append(key)

    if dropped:
        logger.warning("audit.metadata_dropped", extra={"keys": sorted(dropped)})
    return cleaned


@dataclass(frozen=True)
class AuditRecord:
    event_code: str
    entity_type: str
    entity_id: UUID
    circle_id: UUID
    actor_id: UUID | None
    metadata: Dict[str, Any]


class AuditService:
    """
    Append-only audit sink for circle-scoped changes.
    """

    @staticmethod
    @transaction.atomic
    def log(
        *,
        event_code: str,
        entity_type: str,
        entity_id: UUID,
        circle_id: UUID,
        actor_id: UUID | None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditRecord:
        event = AuditEvent.objects.create(
            circle_id=circle_id,
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            metadata=clean_metadata(metadata),
        )

        return AuditRecord(
            event_code=event.event_code,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            circle_id=event.circle_id,
            actor_id=event.actor_id,
            metadata=event.metadata,
        )
