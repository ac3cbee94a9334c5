# care_core/discharge/policy.py
"""
Due-date policy for tasks generated from discharge checklist items.

Pure functions: the caller always passes ``now``; nothing here reads the clock.
No returned value is ever earlier than ``now``.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from django.utils import timezone

from care_core.discharge.models import ChecklistCategory
from care_core.discharge.schemas import parse_discharge_date

DateLike = Union[date, datetime, str]

# category -> days relative to the discharge date
_OFFSETS = {
    ChecklistCategory.BEFORE_LEAVING: 0,
    ChecklistCategory.MEDICATIONS: 0,
    ChecklistCategory.EQUIPMENT: -1,
    ChecklistCategory.HOME_PREP: -1,
    ChecklistCategory.FIRST_WEEK: 7,
}
DEFAULT_OFFSET_DAYS = 3


def _at_midnight(value: DateLike, now: datetime) -> datetime:
    if isinstance(value, datetime):
        if timezone.is_naive(value) and timezone.is_aware(now):
            return timezone.make_aware(value, now.tzinfo)
        return value

    day = parse_discharge_date(value)
    if day is None:
        raise ValueError("discharge date is not a valid date")

    start = datetime.combine(day, time.min)
    if timezone.is_aware(now):
        return timezone.make_aware(start, now.tzinfo)
    return start


def compute_due_date(discharge_date: DateLike, category: Optional[str], now: datetime) -> datetime:
    """
    BEFORE_LEAVING / MEDICATIONS -> discharge day
    EQUIPMENT / HOME_PREP        -> day before discharge, clamped to now
    FIRST_WEEK                   -> discharge + 7 days
    anything else                -> discharge + 3 days
    then: never before now.
    """
    base = _at_midnight(discharge_date, now)
    offset = _OFFSETS.get((category or "").upper(), DEFAULT_OFFSET_DAYS)

    due = base + timedelta(days=offset)
    if due < now:
        due = now
    return due


def resolve_due_date(
    override: Optional[DateLike],
    discharge_date: DateLike,
    category: Optional[str],
    now: datetime,
) -> datetime:
    """
    An item's own due date wins over the category rule; it is clamped to now too.
    """
    if override:
        due = _at_midnight(override, now)
        return now if due < now else due
    return compute_due_date(discharge_date, category, now)
