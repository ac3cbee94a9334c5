from datetime import date, datetime, timedelta, timezone

import pytest

from care_core.discharge.policy import compute_due_date, resolve_due_date

UTC = timezone.utc


def at(y, m, d, hh=0, mm=0):
    return datetime(y, m, d, hh, mm, tzinfo=UTC)


def test_medications_due_on_discharge_day():
    assert compute_due_date("2025-01-10", "MEDICATIONS", at(2025, 1, 5)) == at(2025, 1, 10)


def test_before_leaving_due_on_discharge_day():
    assert compute_due_date(date(2025, 1, 10), "BEFORE_LEAVING", at(2025, 1, 5)) == at(2025, 1, 10)


def test_equipment_due_day_before_discharge():
    assert compute_due_date("2025-01-10", "EQUIPMENT", at(2025, 1, 5)) == at(2025, 1, 9)


def test_equipment_clamps_to_now_when_day_before_has_passed():
    now = at(2025, 1, 10)
    assert compute_due_date("2025-01-10", "EQUIPMENT", now) == now


def test_home_prep_follows_equipment_rule():
    assert compute_due_date("2025-01-10", "HOME_PREP", at(2025, 1, 5)) == at(2025, 1, 9)


def test_first_week_is_seven_days_out():
    assert compute_due_date("2025-01-10", "FIRST_WEEK", at(2025, 1, 5)) == at(2025, 1, 17)


def test_unknown_category_defaults_to_three_days():
    assert compute_due_date("2025-01-10", "SOMETHING_ELSE", at(2025, 1, 5)) == at(2025, 1, 13)
    assert compute_due_date("2025-01-10", None, at(2025, 1, 5)) == at(2025, 1, 13)


def test_category_match_is_case_insensitive():
    assert compute_due_date("2025-01-10", "first_week", at(2025, 1, 5)) == at(2025, 1, 17)


@pytest.mark.parametrize("category", ["BEFORE_LEAVING", "MEDICATIONS", "EQUIPMENT", "HOME_PREP", "FIRST_WEEK", "OTHER"])
@pytest.mark.parametrize("days_after_discharge", [-20, -1, 0, 1, 5, 30])
def test_never_returns_a_past_timestamp(category, days_after_discharge):
    now = at(2025, 1, 10, 14, 30) + timedelta(days=days_after_discharge)
    assert compute_due_date("2025-01-10", category, now) >= now


def test_invalid_discharge_date_raises():
    with pytest.raises(ValueError):
        compute_due_date("not-a-date", "MEDICATIONS", at(2025, 1, 5))


def test_override_wins_over_category():
    assert resolve_due_date(date(2025, 1, 20), "2025-01-10", "MEDICATIONS", at(2025, 1, 5)) == at(2025, 1, 20)


def test_override_in_the_past_is_clamped():
    now = at(2025, 1, 5, 12)
    assert resolve_due_date(date(2025, 1, 1), "2025-01-10", "MEDICATIONS", now) == now


def test_missing_override_uses_policy():
    assert resolve_due_date(None, "2025-01-10", "FIRST_WEEK", at(2025, 1, 5)) == at(2025, 1, 17)
