# care_core/tasks/services.py

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction

from care_core.tasks.models import Task, TaskPriority, TaskStatus


class TaskService:
    """
    Task write-model operations.

    Callers hand over text that is already sanitized; this layer only
    enforces shape (non-empty title, known priority).
    """

    @staticmethod
    @transaction.atomic
    def create_task(
        *,
        circle_id: UUID,
        created_by: UUID,
        title: str,
        patient_id: Optional[UUID] = None,
        owner_user_id: Optional[UUID] = None,
        description: str = "",
        priority: str = TaskPriority.MED,
        due_at: Optional[datetime] = None,
    ) -> Task:
        if not title or not title.strip():
            raise ValidationError("Task title is required.")
        if priority not in TaskPriority.values:
            raise ValidationError("Unknown task priority.")

        return Task.objects.create(
            circle_id=circle_id,
            patient_id=patient_id,
            created_by=created_by,
            owner_user_id=owner_user_id or created_by,
            title=title,
            description=description or "",
            priority=priority,
            status=TaskStatus.OPEN,
            due_at=due_at,
        )
