# care_core/binder/apps.py
from django.apps import AppConfig


class BinderConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "care_core.binder"
