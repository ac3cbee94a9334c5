import uuid

import pytest
from django.core.management import call_command
from django.urls import reverse
from rest_framework.test import APIClient

from care_core.discharge.models import DischargeRecord, DischargeStatus
from care_core.handoffs.services import HandoffService

pytestmark = pytest.mark.django_db


def generate_url(record_id):
    return reverse("discharge-records-generate", kwargs={"pk": str(record_id)})


def assert_envelope(resp, status_code, code):
    assert resp.status_code == status_code, resp.content
    body = resp.json()
    assert set(body) == {"error"}
    assert body["error"]["code"] == code
    assert body["error"]["request_id"]
    return body["error"]


# -------------------------
# Generate
# -------------------------
def test_generate_requires_authentication(make_record):
    record = make_record()

    resp = APIClient().post(generate_url(record.id))
    assert resp.status_code == 401


def test_generate_unknown_record_is_404(api_client, entitled_actor):
    resp = api_client.post(generate_url(uuid.uuid4()))
    assert_envelope(resp, 404, "not_found")


def test_generate_cancelled_record_is_400(api_client, entitled_actor, make_record):
    record = make_record(status=DischargeStatus.CANCELLED)

    resp = api_client.post(generate_url(record.id))

    assert_envelope(resp, 400, "invalid_record")


def test_generate_non_member_is_403(client_for, make_record, plan_limits):
    record = make_record()

    resp = client_for(uuid.uuid4()).post(generate_url(record.id))

    assert_envelope(resp, 403, "access_denied")


def test_generate_free_plan_is_402(api_client, membership, plan_limits, make_record):
    record = make_record()

    resp = api_client.post(generate_url(record.id))

    assert_envelope(resp, 402, "payment_required")


def test_generate_success(api_client, entitled_actor, make_record, make_item):
    record = make_record(medication_changes_json=[{"name": "Metoprolol", "changeType": "NEW"}])
    make_item(record, category="MEDICATIONS", create_task=True)

    resp = api_client.post(generate_url(record.id))

    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["record_id"] == str(record.id)
    assert len(body["tasks_created"]) == 1
    assert body["handoff_id"]
    assert body["counts"] == {
        "tasks_created": 1,
        "handoff_created": True,
        "shifts_scheduled": 0,
        "binder_updates": 1,
    }
    assert body["replayed"] is False
    assert body["partial_failure"] is False
    assert body["code"] is None

    again = api_client.post(generate_url(record.id)).json()
    assert again["replayed"] is True
    assert again["tasks_created"] == body["tasks_created"]


def test_generate_unexpected_error_is_500_with_partial_success(
    monkeypatch, api_client, entitled_actor, make_record, make_item
):
    def broken_publish(**kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(HandoffService, "publish", staticmethod(broken_publish))
    record = make_record()
    make_item(record, category="MEDICATIONS", create_task=True)

    resp = api_client.post(generate_url(record.id))

    error = assert_envelope(resp, 500, "unexpected_error")
    assert "boom" not in error["message"]
    assert error["details"]["partial_success"] == {
        "tasks_created": 1,
        "handoff_created": False,
        "shifts_scheduled": 0,
        "binder_updates": 0,
    }
    assert DischargeRecord.objects.get(id=record.id).status == DischargeStatus.IN_PROGRESS


# -------------------------
# Wizard endpoints
# -------------------------
def test_create_record(api_client, entitled_actor, circle, patient):
    resp = api_client.post(
        reverse("discharge-records-list"),
        {
            "circle_id": str(circle.id),
            "patient_id": str(patient.id),
            "facility_name": "General Hospital",
            "discharge_date": "2025-01-10",
            "reason_for_stay": "Pneumonia",
            "discharge_type": "CARDIAC",
        },
        format="json",
    )

    assert resp.status_code == 201, resp.content
    body = resp.json()
    assert body["status"] == "IN_PROGRESS"
    assert body["discharge_date"] == "2025-01-10"
    assert body["current_step"] == 1


def test_create_record_with_blank_facility_is_validation_error(api_client, entitled_actor, circle, patient):
    resp = api_client.post(
        reverse("discharge-records-list"),
        {
            "circle_id": str(circle.id),
            "patient_id": str(patient.id),
            "facility_name": "   ",
            "discharge_date": "2025-01-10",
            "reason_for_stay": "Pneumonia",
        },
        format="json",
    )

    assert_envelope(resp, 400, "validation_error")


def test_step_out_of_range_is_rejected(api_client, entitled_actor, make_record):
    record = make_record()

    resp = api_client.post(reverse("discharge-records-step", kwargs={"pk": str(record.id)}), {"step": 9}, format="json")

    assert_envelope(resp, 400, "validation_error")


def test_save_shift_assignments_endpoint(api_client, entitled_actor, make_record, caregiver, caregiver_id):
    record = make_record()

    resp = api_client.put(
        reverse("discharge-records-shifts", kwargs={"pk": str(record.id)}),
        {"assignments": {"2": str(caregiver_id)}},
        format="json",
    )

    assert resp.status_code == 200, resp.content
    assert resp.json()["shift_assignments_json"] == {"2": str(caregiver_id)}


def test_preview_endpoint(api_client, entitled_actor, make_record, make_item):
    record = make_record()
    make_item(record, category="EQUIPMENT", create_task=True)

    resp = api_client.get(reverse("discharge-records-preview", kwargs={"pk": str(record.id)}))

    assert resp.status_code == 200
    assert resp.json()["tasks_to_create"] == 1
    assert resp.json()["total_outputs"] == 2


def test_items_endpoint_lists_checklist(api_client, entitled_actor, make_record, make_item):
    record = make_record()
    make_item(record, category="MEDICATIONS")
    make_item(record, category="BEFORE_LEAVING")

    resp = api_client.get(reverse("discharge-records-items", kwargs={"pk": str(record.id)}))

    assert resp.status_code == 200
    assert [i["category"] for i in resp.json()] == ["BEFORE_LEAVING", "MEDICATIONS"]


def test_toggle_item_endpoint(api_client, entitled_actor, make_record, make_item):
    item = make_item(make_record())

    resp = api_client.post(reverse("discharge-items-toggle", kwargs={"pk": str(item.id)}))

    assert resp.status_code == 200
    assert resp.json()["is_completed"] is True


def test_cancel_endpoint(api_client, entitled_actor, make_record):
    record = make_record()

    resp = api_client.post(reverse("discharge-records-cancel", kwargs={"pk": str(record.id)}))

    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"


def test_active_record_lookup(api_client, entitled_actor, make_record, circle, patient):
    make_record(status=DischargeStatus.CANCELLED)
    current = make_record()

    resp = api_client.get(
        reverse("discharge-records-active"),
        {"circle_id": str(circle.id), "patient_id": str(patient.id)},
    )

    assert resp.status_code == 200
    assert resp.json()["id"] == str(current.id)


# -------------------------
# Reads
# -------------------------
def test_list_only_returns_records_from_member_circles(api_client, membership, make_record):
    mine = make_record()
    DischargeRecord.objects.create(
        circle_id=uuid.uuid4(),
        patient_id=uuid.uuid4(),
        created_by=uuid.uuid4(),
        facility_name="Elsewhere",
        reason_for_stay="Unrelated",
    )

    resp = api_client.get(reverse("discharge-records-list"))

    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()] == [str(mine.id)]


def test_list_filters_by_status(api_client, membership, make_record):
    make_record(status=DischargeStatus.COMPLETED)
    open_record = make_record()

    resp = api_client.get(reverse("discharge-records-list"), {"status": "IN_PROGRESS"})

    assert [r["id"] for r in resp.json()] == [str(open_record.id)]


def test_retrieve_hides_records_from_other_circles(client_for, make_record):
    record = make_record()

    resp = client_for(uuid.uuid4()).get(reverse("discharge-records-detail", kwargs={"pk": str(record.id)}))

    assert_envelope(resp, 404, "not_found")


def test_templates_endpoint(api_client, membership):
    call_command("seed_discharge_templates")

    resp = api_client.get(reverse("discharge-templates-list"))

    assert resp.status_code == 200
    names = {t["name"]: t["item_count"] for t in resp.json()}
    assert names["Post-Surgery"] == 17
    assert names["General Discharge"] == 11
