# care_core/subscriptions/models.py
import uuid

from django.db import models

from care_core.common.models import TimeStampedModel


class Plan(models.TextChoices):
    FREE = "FREE", "Free"
    PLUS = "PLUS", "Plus"
    FAMILY = "FAMILY", "Family"


class SubscriptionStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    PAST_DUE = "PAST_DUE", "Past due"
    CANCELLED = "CANCELLED", "Cancelled"
    EXPIRED = "EXPIRED", "Expired"


class Subscription(TimeStampedModel):
    """
    Read-only mirror of the user's plan. Billing itself happens elsewhere.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user_id = models.UUIDField(db_index=True)
    plan = models.CharField(max_length=16, choices=Plan.choices, default=Plan.FREE)
    status = models.CharField(
        max_length=16,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.ACTIVE,
        db_index=True,
    )

    class Meta:
        db_table = "subscriptions_subscription"
        indexes = [
            models.Index(fields=["user_id", "status"]),
        ]


class PlanLimit(models.Model):
    """
    Feature list per plan, e.g. ["basic_tasks", "discharge_wizard", ...].
    """
    plan = models.CharField(max_length=16, choices=Plan.choices, unique=True)
    features = models.JSONField(default=list)

    class Meta:
        db_table = "subscriptions_plan_limit"

    def __str__(self) -> str:
        return self.plan
