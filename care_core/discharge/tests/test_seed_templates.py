from io import StringIO

import pytest
from django.core.management import call_command

from care_core.discharge.models import DischargeTemplate, DischargeType

pytestmark = pytest.mark.django_db


def test_seed_command_is_idempotent():
    out = StringIO()
    call_command("seed_discharge_templates", stdout=out)
    assert "Newly created: 4" in out.getvalue()

    out = StringIO()
    call_command("seed_discharge_templates", stdout=out)
    assert "Newly created: 0" in out.getvalue()

    assert DischargeTemplate.objects.count() == 4
    assert DischargeTemplate.objects.filter(is_system=True, is_active=True).count() == 4


def test_seed_refreshes_edited_items():
    call_command("seed_discharge_templates", stdout=StringIO())
    DischargeTemplate.objects.filter(name="Cardiac").update(items=[])

    call_command("seed_discharge_templates", stdout=StringIO())

    cardiac = DischargeTemplate.objects.get(name="Cardiac")
    assert cardiac.discharge_type == DischargeType.CARDIAC
    assert len(cardiac.items) > 0
    assert all({"category", "item_text", "sort_order"} <= set(entry) for entry in cardiac.items)
