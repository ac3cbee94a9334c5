# care_core/circles/services.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from care_core.circles.models import CircleMember, MemberRole, MemberStatus

ROLE_HIERARCHY = {
    MemberRole.VIEWER: 1,
    MemberRole.CONTRIBUTOR: 2,
    MemberRole.ADMIN: 3,
    MemberRole.OWNER: 4,
}


def active_membership(*, actor_id: UUID, circle_id: UUID) -> Optional[str]:
    """
    Role of the actor in the circle, or None when not an ACTIVE member.
    This is the single source of truth used by every circle-scoped write.
    """
    return (
        CircleMember.objects.filter(
            circle_id=circle_id,
            user_id=actor_id,
            status=MemberStatus.ACTIVE,
        )
        .values_list("role", flat=True)
        .first()
    )


def has_minimum_role(*, actor_id: UUID, circle_id: UUID, minimum: str) -> bool:
    role = active_membership(actor_id=actor_id, circle_id=circle_id)
    if role is None:
        return False
    return ROLE_HIERARCHY.get(role, 0) >= ROLE_HIERARCHY.get(minimum, 0)


def list_active_circle_ids(*, actor_id: UUID) -> list[UUID]:
    return list(
        CircleMember.objects.filter(user_id=actor_id, status=MemberStatus.ACTIVE).values_list(
            "circle_id", flat=True
        )
    )
