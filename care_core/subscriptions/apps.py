# care_core/subscriptions/apps.py
from django.apps import AppConfig


class SubscriptionsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "care_core.subscriptions"
