# care_core/discharge/management/commands/seed_discharge_templates.py

from django.core.management.base import BaseCommand

from care_core.discharge.templates import SYSTEM_TEMPLATES, ensure_system_templates


class Command(BaseCommand):
    help = "Ensure built-in discharge checklist templates exist (idempotent, refreshes items)."

    def handle(self, *args, **options):
        created = ensure_system_templates()
        self.stdout.write(
            self.style.SUCCESS(
                f"Discharge templates ensured: {len(SYSTEM_TEMPLATES)}. Newly created: {created}"
            )
        )
