# care_core/subscriptions/management/commands/ensure_plan_limits.py

from django.core.management.base import BaseCommand

from care_core.subscriptions.models import Plan, PlanLimit

BASIC = ["basic_handoffs", "basic_timeline", "basic_tasks", "basic_binder", "emergency_card"]

PLAN_FEATURES = {
    Plan.FREE: BASIC,
    Plan.PLUS: BASIC + ["discharge_wizard", "med_reconciliation", "family_meetings"],
    Plan.FAMILY: BASIC + ["discharge_wizard", "med_reconciliation", "family_meetings", "shift_mode", "legal_vault"],
}


class Command(BaseCommand):
    help = "Ensure plan feature lists exist (idempotent, refreshes features)."

    def handle(self, *args, **options):
        created = 0
        for plan, features in PLAN_FEATURES.items():
            _, was_created = PlanLimit.objects.update_or_create(plan=plan, defaults={"features": features})
            created += 1 if was_created else 0

        self.stdout.write(self.style.SUCCESS(f"Plan limits ensured. Newly created: {created}"))
