import logging
import threading

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class TrackingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.tracking"

    scheduler = None

    def ready(self):
        """Start the delivery simulation loop when autostart is enabled"""
        if not settings.TRACKING_SIMULATOR_AUTOSTART:
            return

        def delayed_start():
            from .scheduler import build_scheduler

            TrackingConfig.scheduler = build_scheduler()
            TrackingConfig.scheduler.start()

        # Let the app registry and connection pools finish loading first.
        timer = threading.Timer(2.0, delayed_start)
        timer.daemon = True
        timer.start()
        logger.info("Tracking scheduler autostart scheduled")
