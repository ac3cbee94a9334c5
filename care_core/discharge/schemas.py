# care_core/discharge/schemas.py
"""
Typed views over the JSON sub-documents stored on DischargeRecord.

The record keeps plain JSON (what the wizard client sends); everything that
reads it goes through these parsers so the generators never touch raw dicts.

Two parsing modes:
- ``strict=True``  -> raise ValidationError on the first bad entry (wizard writes).
- ``strict=False`` -> keep what parses, collect the rest as rejects (generation).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

CHANGE_NEW = "NEW"
CHANGE_STOPPED = "STOPPED"
CHANGE_DOSE_CHANGED = "DOSE_CHANGED"
CHANGE_SCHEDULE_CHANGED = "SCHEDULE_CHANGED"
CHANGE_TYPES = (CHANGE_NEW, CHANGE_STOPPED, CHANGE_DOSE_CHANGED, CHANGE_SCHEDULE_CHANGED)

MEDICATION_SOURCES = ("MANUAL", "SCANNED", "IMPORTED")


def max_shift_day_offset() -> int:
    return int(getattr(settings, "DISCHARGE_MAX_SHIFT_DAY_OFFSET", 30))


def is_uuid_string(value: Any) -> bool:
    return isinstance(value, str) and bool(UUID_RE.match(value))


def parse_discharge_date(value: Any) -> Optional[date]:
    """
    date | ISO "YYYY-MM-DD" (a trailing time part is ignored) -> date, else None.
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return parse_date(value.strip()[:10])
    except ValueError:
        return None


# -------------------------
# Medication changes
# -------------------------
@dataclass(frozen=True)
class MedicationChange:
    name: str
    change_type: str
    dosage: str = ""
    frequency: str = ""
    instructions: str = ""
    source: str = "MANUAL"
    id: str = ""

    @property
    def produces_binder_item(self) -> bool:
        return self.change_type in (CHANGE_NEW, CHANGE_DOSE_CHANGED)

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "MedicationChange":
        if not isinstance(raw, dict):
            raise ValidationError("Medication change must be an object.")

        change_type = raw.get("changeType", raw.get("change_type")) or ""
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            # Upper-cased on read: stored values arrive in either case.
            change_type=str(change_type).upper(),
            dosage=str(raw.get("dosage") or ""),
            frequency=str(raw.get("frequency") or ""),
            instructions=str(raw.get("instructions") or ""),
            source=str(raw.get("source") or "MANUAL").upper(),
        )

    def validate(self) -> None:
        if not self.name.strip():
            raise ValidationError("Medication name is required.")
        if self.change_type not in CHANGE_TYPES:
            raise ValidationError("Unknown medication change type.")
        if self.source not in MEDICATION_SOURCES:
            raise ValidationError("Unknown medication source.")

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "changeType": self.change_type,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "instructions": self.instructions,
            "source": self.source,
        }


def parse_medication_changes(raw: Any, *, strict: bool = False) -> list[MedicationChange]:
    if raw in (None, ""):
        return []
    if not isinstance(raw, list):
        if strict:
            raise ValidationError("Medication changes must be a list.")
        return []

    changes: list[MedicationChange] = []
    for entry in raw:
        try:
            change = MedicationChange.from_json(entry)
            if strict:
                change.validate()
        except ValidationError:
            if strict:
                raise
            continue
        changes.append(change)
    return changes


# -------------------------
# Shift assignments
# -------------------------
@dataclass(frozen=True)
class ShiftAssignment:
    day_offset: int
    assignee_id: UUID


@dataclass
class ShiftAssignmentMap:
    assignments: list[ShiftAssignment] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)

    def __iter__(self):
        return iter(self.assignments)

    def __len__(self) -> int:
        return len(self.assignments)


def _parse_day_offset(key: Any) -> Optional[int]:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and re.fullmatch(r"-?\d+", key.strip()):
        return int(key.strip())
    return None


def parse_shift_assignments(raw: Any, *, strict: bool = False) -> ShiftAssignmentMap:
    """
    {day_offset: assignee_uuid}. Offsets outside [0, max] and assignees that
    are not UUID strings are rejected; rejects keep only the offending key.
    """
    result = ShiftAssignmentMap()
    if raw in (None, ""):
        return result
    if not isinstance(raw, dict):
        if strict:
            raise ValidationError("Shift assignments must be an object.")
        return result

    upper = max_shift_day_offset()
    for key, assignee in raw.items():
        offset = _parse_day_offset(key)
        if offset is None or offset < 0 or offset > upper:
            if strict:
                raise ValidationError(f"Shift day offset must be an integer between 0 and {upper}.")
            result.rejected.append(str(key))
            continue
        if not is_uuid_string(assignee):
            if strict:
                raise ValidationError("Shift assignee must be a valid member id.")
            result.rejected.append(str(key))
            continue
        result.assignments.append(ShiftAssignment(day_offset=offset, assignee_id=UUID(assignee)))

    result.assignments.sort(key=lambda a: a.day_offset)
    return result


# -------------------------
# Checklist state
# -------------------------
@dataclass
class ChecklistState:
    completed_items: set[str] = field(default_factory=set)
    item_notes: dict[str, str] = field(default_factory=dict)
    item_assignees: dict[str, str] = field(default_factory=dict)
    item_due_dates: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: Any) -> "ChecklistState":
        if not isinstance(raw, dict):
            return cls()

        def _str_map(value: Any) -> dict[str, str]:
            if not isinstance(value, dict):
                return {}
            return {str(k): str(v) for k, v in value.items() if v is not None}

        completed = raw.get("completedItems", raw.get("completed_items")) or []
        return cls(
            completed_items={str(x) for x in completed} if isinstance(completed, (list, set, tuple)) else set(),
            item_notes=_str_map(raw.get("itemNotes", raw.get("item_notes"))),
            item_assignees=_str_map(raw.get("itemAssignees", raw.get("item_assignees"))),
            item_due_dates=_str_map(raw.get("itemDueDates", raw.get("item_due_dates"))),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "completedItems": sorted(self.completed_items),
            "itemNotes": dict(self.item_notes),
            "itemAssignees": dict(self.item_assignees),
            "itemDueDates": dict(self.item_due_dates),
        }


def changes_to_json(changes: Iterable[MedicationChange]) -> list[dict[str, Any]]:
    return [c.to_json() for c in changes]
