from django.core.management.base import BaseCommand

from services.scheduling import process_scheduled_rides


class Command(BaseCommand):
    help = "Activate due scheduled rides and generate upcoming recurring instances."

    def handle(self, *args, **options):
        result = process_scheduled_rides()

        self.stdout.write(
            self.style.SUCCESS(
                f"Activated {result.activated} ride(s); generated {result.generated} recurring "
                f"instance(s) across {result.masters_advanced} template(s)."
            )
        )
