# conftest.py
import uuid
from datetime import date, datetime, timezone

import pytest
from django.core.management import call_command
from rest_framework.test import APIClient
from rest_framework_simplejwt.models import TokenUser

from care_core.circles.models import Circle, CircleMember, MemberRole, MemberStatus, Patient
from care_core.discharge.models import DischargeChecklistItem, DischargeRecord, DischargeType
from care_core.subscriptions.models import Plan, Subscription, SubscriptionStatus


def token_client(user_id) -> APIClient:
    """
    API client authenticated as a stateless JWT user whose "sub" is user_id.
    """
    c = APIClient()
    c.force_authenticate(user=TokenUser({"sub": str(user_id)}))
    return c


@pytest.fixture
def now():
    return datetime(2025, 1, 5, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def actor_id():
    return uuid.uuid4()


@pytest.fixture
def caregiver_id():
    return uuid.uuid4()


@pytest.fixture
def plan_limits(db):
    call_command("ensure_plan_limits")


@pytest.fixture
def circle(db, actor_id):
    return Circle.objects.create(name="Test Circle", owner_user_id=actor_id)


@pytest.fixture
def patient(circle):
    return Patient.objects.create(circle=circle, display_name="Test Patient")


@pytest.fixture
def membership(circle, actor_id):
    return CircleMember.objects.create(
        circle=circle,
        user_id=actor_id,
        role=MemberRole.OWNER,
        status=MemberStatus.ACTIVE,
    )


@pytest.fixture
def caregiver(circle, caregiver_id):
    return CircleMember.objects.create(
        circle=circle,
        user_id=caregiver_id,
        role=MemberRole.CONTRIBUTOR,
        status=MemberStatus.ACTIVE,
    )


@pytest.fixture
def premium(plan_limits, actor_id):
    return Subscription.objects.create(user_id=actor_id, plan=Plan.PLUS, status=SubscriptionStatus.ACTIVE)


@pytest.fixture
def entitled_actor(membership, premium, actor_id):
    """Active OWNER with a PLUS plan."""
    return actor_id


@pytest.fixture
def make_record(circle, patient, actor_id):
    def _make(**overrides) -> DischargeRecord:
        fields = {
            "circle_id": circle.id,
            "patient_id": patient.id,
            "created_by": actor_id,
            "facility_name": "St. Mary's Hospital",
            "discharge_date": date(2025, 1, 10),
            "reason_for_stay": "Hip replacement",
            "discharge_type": DischargeType.SURGERY,
        }
        fields.update(overrides)
        return DischargeRecord.objects.create(**fields)

    return _make


@pytest.fixture
def make_item():
    counter = {"n": 0}

    def _make(record, *, category="BEFORE_LEAVING", item_text="Checklist item", **overrides) -> DischargeChecklistItem:
        counter["n"] += 1
        fields = {
            "record": record,
            "template_item_id": f"{category}_{counter['n']}",
            "category": category,
            "item_text": item_text,
            "sort_order": counter["n"],
        }
        fields.update(overrides)
        return DischargeChecklistItem.objects.create(**fields)

    return _make


@pytest.fixture
def api_client(actor_id):
    return token_client(actor_id)


@pytest.fixture
def client_for():
    return token_client
