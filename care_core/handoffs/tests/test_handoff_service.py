import uuid

import pytest
from django.core.exceptions import ValidationError

from care_core.handoffs.models import Handoff, HandoffRevision, HandoffStatus
from care_core.handoffs.services import HandoffService

pytestmark = pytest.mark.django_db


def publish(**overrides):
    kwargs = {
        "circle_id": uuid.uuid4(),
        "patient_id": uuid.uuid4(),
        "created_by": uuid.uuid4(),
        "title": "Discharge from General Hospital",
        "summary": "Discharged today.",
        "structured": {"tasks_created": 0},
    }
    kwargs.update(overrides)
    return HandoffService.publish(**kwargs)


def test_publish_creates_first_revision():
    handoff = publish(change_note="Initial")

    assert handoff.status == HandoffStatus.PUBLISHED
    assert handoff.published_at is not None
    revision = handoff.revisions.get()
    assert revision.revision == 1
    assert revision.edited_by == handoff.created_by
    assert revision.structured_json == {"tasks_created": 0}


def test_publish_requires_title():
    with pytest.raises(ValidationError):
        publish(title="")

    assert Handoff.objects.count() == 0
    assert HandoffRevision.objects.count() == 0
