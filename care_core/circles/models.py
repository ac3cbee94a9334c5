# care_core/circles/models.py
import uuid

from django.db import models

from care_core.common.models import TimeStampedModel


class Circle(TimeStampedModel):
    """
    A care-coordination group (patient + family/caregivers).
    Owns every domain record through circle_id.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=120)
    owner_user_id = models.UUIDField(db_index=True)

    class Meta:
        db_table = "circles_circle"

    def __str__(self) -> str:
        return self.name


class MemberRole(models.TextChoices):
    OWNER = "OWNER", "Owner"
    ADMIN = "ADMIN", "Admin"
    CONTRIBUTOR = "CONTRIBUTOR", "Contributor"
    VIEWER = "VIEWER", "Viewer"


class MemberStatus(models.TextChoices):
    INVITED = "INVITED", "Invited"
    ACTIVE = "ACTIVE", "Active"
    REMOVED = "REMOVED", "Removed"


class CircleMember(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    circle = models.ForeignKey(Circle, on_delete=models.CASCADE, related_name="members")
    user_id = models.UUIDField(db_index=True)

    role = models.CharField(max_length=16, choices=MemberRole.choices)
    status = models.CharField(
        max_length=16,
        choices=MemberStatus.choices,
        default=MemberStatus.ACTIVE,
        db_index=True,
    )

    class Meta:
        db_table = "circles_circle_member"
        constraints = [
            models.UniqueConstraint(fields=["circle", "user_id"], name="uq_circle_member_user"),
        ]
        indexes = [
            models.Index(fields=["user_id", "status"]),
        ]


class Patient(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    circle = models.ForeignKey(Circle, on_delete=models.CASCADE, related_name="patients")
    display_name = models.CharField(max_length=120)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "circles_patient"

    def __str__(self) -> str:
        return self.display_name
