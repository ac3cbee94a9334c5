# care_core/discharge/apps.py
from django.apps import AppConfig


class DischargeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "care_core.discharge"
    verbose_name = "Discharge wizard"
