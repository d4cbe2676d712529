"""
Background loop that drives the delivery simulation.

Once per interval the scheduler loads every non-terminal order, advances each
one through the route simulator, writes the whole batch in one transaction,
then invalidates cached views of the touched orders and broadcasts the
changes. A failed tick is logged and the next one runs on schedule.
"""
import logging
import threading

from django.db import close_old_connections, transaction
from django.utils import timezone

from apps.orders.models import OrderHistory
from apps.orders.services import invalidate_order_cache

from .constants import SIMULATOR_ACTOR

logger = logging.getLogger(__name__)


class TrackingScheduler:
    def __init__(self, store, simulator, broadcaster, cache, interval=10.0, stop_event=None):
        self.store = store
        self.simulator = simulator
        self.broadcaster = broadcaster
        self.cache = cache
        self.interval = interval
        self.stop_event = stop_event or threading.Event()
        self.thread = None

    @property
    def running(self):
        return self.thread is not None and self.thread.is_alive()

    def start(self):
        """Run the loop in a daemon thread."""
        if self.running:
            return
        self.stop_event.clear()
        self.thread = threading.Thread(
            target=self.run_forever, name="tracking-scheduler", daemon=True
        )
        self.thread.start()
        logger.info(f"Tracking scheduler started (interval={self.interval}s)")

    def stop(self, timeout=5):
        self.stop_event.set()
        if self.thread is not None:
            self.thread.join(timeout=timeout)
            self.thread = None
        logger.info("Tracking scheduler stopped")

    def run_forever(self):
        while not self.stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Tracking tick failed, retrying next interval")
            self.stop_event.wait(self.interval)

    def tick(self):
        """
        Run one simulation pass. Returns the applied steps, or an empty list
        when the stop signal interrupted the pass before it was committed.
        """
        if self.stop_event.is_set():
            return []

        self._refresh_connections()
        orders = self.store.active_orders()
        now = timezone.now()
        steps = []
        for order in orders:
            if self.stop_event.is_set():
                logger.info("Tracking tick cancelled, discarding in-flight batch")
                return []
            step = self.simulator.step(order)
            if step is not None and step.changed:
                steps.append(step)

        changed_orders = [step.order for step in steps]
        history = [OrderHistory.snapshot(order, timestamp=now) for order in changed_orders]
        self.store.commit_tick(changed_orders, history)

        for step in steps:
            self._after_commit(step, now)

        if steps:
            logger.info(f"Tracking tick advanced {len(steps)} of {len(orders)} active orders")
        return steps

    def _refresh_connections(self):
        """Drop database connections that went stale between ticks."""
        # Inside an outer transaction the connection is not ours to close.
        if not transaction.get_connection().in_atomic_block:
            close_old_connections()

    def _after_commit(self, step, now):
        order = step.order
        invalidate_order_cache(self.cache, order.pk, order.user_id)
        if step.status_changed:
            self.broadcaster.publish_status(order, updated_by=SIMULATOR_ACTOR, updated_at=now)
        if step.position_changed or order.eta is not None:
            self.broadcaster.publish_location(order, updated_at=now)


def build_scheduler(interval=None):
    from django.conf import settings

    from apps.orders.store import order_store
    from infrastructure.cache import get_cache_service

    from .broadcaster import get_broadcaster
    from .simulator import DeliveryRouteSimulator

    return TrackingScheduler(
        store=order_store,
        simulator=DeliveryRouteSimulator.from_settings(),
        broadcaster=get_broadcaster(),
        cache=get_cache_service(),
        interval=interval if interval is not None else settings.TRACKING_TICK_INTERVAL_SECONDS,
    )
