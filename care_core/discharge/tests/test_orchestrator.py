import uuid
from datetime import date

import pytest
from django.db import IntegrityError

from care_core.audit.models import AuditEvent
from care_core.binder.models import BinderItem
from care_core.binder.services import BinderService
from care_core.circles.models import Circle, CircleMember, MemberRole, MemberStatus
from care_core.common.events import subscribe, unsubscribe
from care_core.discharge import errors
from care_core.discharge.errors import DischargeError
from care_core.discharge.models import DischargeRecord, DischargeStatus
from care_core.discharge.orchestrator import EVENT_COMPLETED, DischargeOutputService
from care_core.handoffs.models import Handoff
from care_core.handoffs.services import HandoffService
from care_core.shifts.models import CareShift
from care_core.tasks.models import Task

pytestmark = pytest.mark.django_db


def artifact_count():
    return Task.objects.count() + BinderItem.objects.count() + CareShift.objects.count() + Handoff.objects.count()


@pytest.fixture
def completed_events():
    received = []

    def _handler(payload):
        received.append(payload)

    subscribe(EVENT_COMPLETED)(_handler)
    yield received
    unsubscribe(EVENT_COMPLETED, _handler)


@pytest.fixture
def wizard_record(make_record, make_item, caregiver, caregiver_id):
    record = make_record(
        medication_changes_json=[{"name": "Metoprolol", "changeType": "NEW", "dosage": "25 mg"}],
        shift_assignments_json={"0": str(caregiver_id), "40": str(caregiver_id)},
    )
    make_item(record, category="MEDICATIONS", item_text="Fill prescriptions", create_task=True)
    make_item(record, category="EQUIPMENT", item_text="Get a walker", create_task=True)
    make_item(record, category="FIRST_WEEK", item_text="Monitor incision")
    return record


def generate(record_id, actor_id, now):
    return DischargeOutputService.generate_outputs(record_id=record_id, actor_id=actor_id, now=now)


# -------------------------
# Preconditions
# -------------------------
def test_missing_record_is_not_found(entitled_actor, now):
    with pytest.raises(DischargeError) as exc:
        generate(uuid.uuid4(), entitled_actor, now)
    assert exc.value.code == errors.NOT_FOUND


@pytest.mark.parametrize(
    "overrides",
    [
        {"facility_name": "   "},
        {"discharge_date": None},
        {"patient_id": None},
        {"status": DischargeStatus.CANCELLED},
    ],
)
def test_invalid_record_is_rejected_before_access_checks(make_record, now, overrides):
    # No membership and no subscription: record validation still wins.
    record = make_record(**overrides)

    with pytest.raises(DischargeError) as exc:
        generate(record.id, uuid.uuid4(), now)

    assert exc.value.code == errors.INVALID_RECORD
    assert artifact_count() == 0


def test_non_member_is_denied_before_entitlement_check(wizard_record, now):
    with pytest.raises(DischargeError) as exc:
        generate(wizard_record.id, uuid.uuid4(), now)

    assert exc.value.code == errors.ACCESS_DENIED
    assert artifact_count() == 0


def test_pending_member_is_denied(wizard_record, now, circle, premium, actor_id):
    CircleMember.objects.create(circle=circle, user_id=actor_id, role=MemberRole.OWNER, status=MemberStatus.INVITED)

    with pytest.raises(DischargeError) as exc:
        generate(wizard_record.id, actor_id, now)

    assert exc.value.code == errors.ACCESS_DENIED


def test_member_of_another_circle_is_denied(wizard_record, now, premium, actor_id):
    other = Circle.objects.create(name="Other", owner_user_id=actor_id)
    CircleMember.objects.create(circle=other, user_id=actor_id, role=MemberRole.OWNER, status=MemberStatus.ACTIVE)

    with pytest.raises(DischargeError) as exc:
        generate(wizard_record.id, actor_id, now)

    assert exc.value.code == errors.ACCESS_DENIED


def test_free_plan_requires_payment(wizard_record, membership, plan_limits, actor_id, now):
    with pytest.raises(DischargeError) as exc:
        generate(wizard_record.id, actor_id, now)

    assert exc.value.code == errors.PAYMENT_REQUIRED
    assert artifact_count() == 0
    wizard_record.refresh_from_db()
    assert wizard_record.status == DischargeStatus.IN_PROGRESS


# -------------------------
# Generation
# -------------------------
def test_generate_creates_everything_and_completes_record(
    wizard_record, entitled_actor, caregiver_id, now, completed_events
):
    outcome = generate(wizard_record.id, entitled_actor, now)

    assert outcome.code is None
    assert outcome.replayed is False
    assert outcome.counts() == {
        "tasks_created": 2,
        "handoff_created": True,
        "shifts_scheduled": 1,
        "binder_updates": 1,
    }
    assert Task.objects.count() == 2
    assert BinderItem.objects.count() == 1
    assert CareShift.objects.get().shift_date == date(2025, 1, 10)
    assert CareShift.objects.get().owner_user_id == caregiver_id

    handoff = Handoff.objects.get()
    assert "**Checklist:** 0/3 items completed" in handoff.summary
    assert handoff.revisions.get().structured_json["tasks_created"] == 2

    wizard_record.refresh_from_db()
    assert wizard_record.status == DischargeStatus.COMPLETED
    assert wizard_record.completed_at == now
    assert wizard_record.completed_by == entitled_actor
    assert sorted(wizard_record.generated_task_ids) == sorted(str(x) for x in outcome.tasks_created)
    assert wizard_record.generated_shift_ids == [str(outcome.shifts_created[0])]
    assert wizard_record.generated_binder_item_ids == [str(outcome.binder_items_created[0])]
    assert wizard_record.generated_handoff_id == handoff.id

    audit = AuditEvent.objects.get(event_code="discharge.outputs_generated")
    assert audit.entity_id == wizard_record.id
    assert audit.actor_id == entitled_actor
    assert audit.metadata["tasks_created"] == 2
    assert audit.metadata["failed_items"] == 0

    assert len(completed_events) == 1
    assert completed_events[0]["record_id"] == str(wizard_record.id)
    assert completed_events[0]["binder_updates"] == 1


def test_second_call_replays_stored_references(wizard_record, entitled_actor, now, completed_events):
    first = generate(wizard_record.id, entitled_actor, now)
    before = artifact_count()

    second = generate(wizard_record.id, entitled_actor, now)

    assert second.replayed is True
    assert artifact_count() == before
    assert sorted(second.tasks_created) == sorted(first.tasks_created)
    assert second.handoff_id == first.handoff_id
    assert second.shifts_created == first.shifts_created
    assert second.binder_items_created == first.binder_items_created
    assert len(completed_events) == 1


def test_unexpected_error_keeps_partial_results(monkeypatch, wizard_record, entitled_actor, now, completed_events):
    def broken_publish(**kwargs):
        raise RuntimeError("handoff store offline")

    monkeypatch.setattr(HandoffService, "publish", staticmethod(broken_publish))

    outcome = generate(wizard_record.id, entitled_actor, now)

    assert outcome.code == errors.UNEXPECTED_ERROR
    assert len(outcome.tasks_created) == 2
    assert len(outcome.binder_items_created) == 1
    assert len(outcome.shifts_created) == 1
    assert outcome.handoff_id is None

    wizard_record.refresh_from_db()
    assert wizard_record.status == DischargeStatus.IN_PROGRESS
    assert wizard_record.generated_task_ids == []
    assert Task.objects.count() == 2
    assert completed_events == []


def test_item_failure_reports_partial_generation(monkeypatch, wizard_record, entitled_actor, now):
    def failing_create_item(**kwargs):
        raise IntegrityError("simulated")

    monkeypatch.setattr(BinderService, "create_item", staticmethod(failing_create_item))

    outcome = generate(wizard_record.id, entitled_actor, now)

    assert outcome.code == errors.PARTIAL_GENERATION_FAILURE
    assert [f.error_type for f in outcome.failures] == ["IntegrityError"]
    assert outcome.counts()["binder_updates"] == 0
    assert outcome.counts()["tasks_created"] == 2

    wizard_record.refresh_from_db()
    assert wizard_record.status == DischargeStatus.COMPLETED


def test_rerun_after_unexpected_error_does_not_duplicate_tasks_or_binder_items(
    monkeypatch, wizard_record, entitled_actor, now
):
    def broken_publish(**kwargs):
        raise RuntimeError()

    with monkeypatch.context() as m:
        m.setattr(HandoffService, "publish", staticmethod(broken_publish))
        generate(wizard_record.id, entitled_actor, now)

    outcome = generate(wizard_record.id, entitled_actor, now)

    assert outcome.code is None
    assert Task.objects.count() == 2
    assert BinderItem.objects.count() == 1
    assert outcome.handoff_id is not None

    record = DischargeRecord.objects.get(id=wizard_record.id)
    assert record.status == DischargeStatus.COMPLETED
    assert sorted(record.generated_task_ids) == sorted(str(t) for t in Task.objects.values_list("id", flat=True))
    assert record.generated_binder_item_ids == [str(BinderItem.objects.get().id)]

    snapshot = Handoff.objects.get(id=outcome.handoff_id).revisions.get().structured_json
    assert snapshot["tasks_created"] == 2


def test_record_without_checklist_still_completes(make_record, entitled_actor, now):
    record = make_record()

    outcome = generate(record.id, entitled_actor, now)

    assert outcome.code is None
    assert outcome.counts() == {
        "tasks_created": 0,
        "handoff_created": True,
        "shifts_scheduled": 0,
        "binder_updates": 0,
    }
