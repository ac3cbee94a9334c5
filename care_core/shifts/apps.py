# care_core/shifts/apps.py
from django.apps import AppConfig


class ShiftsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "care_core.shifts"
