from django.core.management.base import BaseCommand
from apps.delivery.tasks import poll_ready_orders


class Command(BaseCommand):
    help = "Run one ready-order reconciliation tick against customer-backend."

    def handle(self, *args, **options):
        res = poll_ready_orders()
        if res.get("skipped"):
            self.stdout.write(self.style.WARNING("Skip: another poll is running"))
        else:
            self.stdout.write(self.style.SUCCESS(f"OK: {res}"))
