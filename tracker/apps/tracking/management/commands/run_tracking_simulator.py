"""
Management command that runs the delivery tracking loop in the foreground.
"""
from django.core.management.base import BaseCommand

from apps.tracking.scheduler import build_scheduler


class Command(BaseCommand):
    help = "Advance active orders along the simulated delivery route until interrupted"

    def add_arguments(self, parser):
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between ticks (default: TRACKING_TICK_INTERVAL_SECONDS)",
        )
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single tick and exit",
        )

    def handle(self, *args, **options):
        scheduler = build_scheduler(interval=options["interval"])

        if options["once"]:
            steps = scheduler.tick()
            self.stdout.write(
                self.style.SUCCESS(f"Tick completed. Orders advanced: {len(steps)}")
            )
            return

        self.stdout.write(f"Tracking simulator running every {scheduler.interval}s (Ctrl+C to stop)...")
        try:
            scheduler.run_forever()
        except KeyboardInterrupt:
            scheduler.stop_event.set()
        self.stdout.write(self.style.SUCCESS("Tracking simulator stopped."))
