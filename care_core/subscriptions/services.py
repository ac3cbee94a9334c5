# care_core/subscriptions/services.py
from __future__ import annotations

from uuid import UUID

from care_core.subscriptions.models import Plan, PlanLimit, Subscription, SubscriptionStatus


def current_plan(*, actor_id: UUID) -> str:
    plan = (
        Subscription.objects.filter(user_id=actor_id, status=SubscriptionStatus.ACTIVE)
        .order_by("-created_at")
        .values_list("plan", flat=True)
        .first()
    )
    return plan or Plan.FREE


def has_feature(*, actor_id: UUID, feature: str) -> bool:
    """
    Capability gate: does the actor's active plan include `feature`?
    No active subscription means FREE.
    """
    plan = current_plan(actor_id=actor_id)
    limits = PlanLimit.objects.filter(plan=plan).first()
    if limits is None:
        return False
    return feature in (limits.features or [])
