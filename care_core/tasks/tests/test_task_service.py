import uuid
from datetime import timedelta

import pytest
from django.core.exceptions import ValidationError
from django.utils.timezone import now as tz_now

from care_core.tasks.models import TaskPriority, TaskStatus
from care_core.tasks.services import TaskService

pytestmark = pytest.mark.django_db


def test_create_task_defaults_owner_to_creator():
    creator = uuid.uuid4()

    task = TaskService.create_task(circle_id=uuid.uuid4(), created_by=creator, title="Pick up walker")

    assert task.owner_user_id == creator
    assert task.status == TaskStatus.OPEN
    assert task.priority == TaskPriority.MED


@pytest.mark.parametrize("title", ["", "   "])
def test_create_task_requires_title(title):
    with pytest.raises(ValidationError):
        TaskService.create_task(circle_id=uuid.uuid4(), created_by=uuid.uuid4(), title=title)


def test_create_task_rejects_unknown_priority():
    with pytest.raises(ValidationError):
        TaskService.create_task(circle_id=uuid.uuid4(), created_by=uuid.uuid4(), title="x", priority="URGENT")


def test_is_overdue_only_for_open_tasks_past_due():
    past = tz_now() - timedelta(hours=1)
    task = TaskService.create_task(circle_id=uuid.uuid4(), created_by=uuid.uuid4(), title="x", due_at=past)
    assert task.is_overdue is True

    task.status = TaskStatus.DONE
    assert task.is_overdue is False

    task.status = TaskStatus.OPEN
    task.due_at = None
    assert task.is_overdue is False
