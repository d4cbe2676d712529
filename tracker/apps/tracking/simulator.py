"""
Synthetic delivery progression along a fixed route.

Each call to ``DeliveryRouteSimulator.step`` moves one order forward by a
single tick. Persistence and broadcasting are left to the caller.
"""
import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from apps.orders import state_machine
from apps.orders.state_machine import OrderStatus

from .geo import estimate_minutes

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class ArrivalPolicy:
    """Decides whether an order on its last leg is handed over this tick."""

    def has_arrived(self, order) -> bool:
        raise NotImplementedError


class RandomArrivalPolicy(ArrivalPolicy):
    def __init__(self, probability: float = 0.25, rng: Optional[random.Random] = None):
        if not 0 <= probability <= 1:
            raise ValueError("probability must be within [0, 1]")
        self.probability = probability
        self.rng = rng or random.Random()

    def has_arrived(self, order) -> bool:
        return self.rng.random() < self.probability


class FixedArrivalPolicy(ArrivalPolicy):
    def __init__(self, arrived: bool = True):
        self.arrived = arrived

    def has_arrived(self, order) -> bool:
        return self.arrived


@dataclass
class SimulationStep:
    order: object
    previous_status: str
    status_changed: bool
    position_changed: bool

    @property
    def changed(self):
        return self.status_changed or self.position_changed


def _planar_distance_sq(a: Point, b: Point) -> float:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2


def nearest_waypoint_index(route: Sequence[Point], position: Point) -> int:
    return min(range(len(route)), key=lambda i: _planar_distance_sq(route[i], position))


class DeliveryRouteSimulator:
    def __init__(
        self,
        route: Sequence[Point],
        default_destination: Point,
        arrival_policy: Optional[ArrivalPolicy] = None,
        avg_speed_kmh: float = 30.0,
        jitter_degrees: float = 0.0005,
        rng: Optional[random.Random] = None,
    ):
        if len(route) < 2:
            raise ValueError("route needs at least two waypoints")
        self.route = [tuple(point) for point in route]
        self.default_destination = tuple(default_destination)
        self.arrival_policy = arrival_policy or RandomArrivalPolicy()
        self.avg_speed_kmh = avg_speed_kmh
        self.jitter_degrees = jitter_degrees
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(cls, arrival_policy=None, rng=None):
        from django.conf import settings

        return cls(
            route=settings.TRACKING_ROUTE,
            default_destination=settings.TRACKING_DEFAULT_DESTINATION,
            arrival_policy=arrival_policy
            or RandomArrivalPolicy(settings.TRACKING_ARRIVAL_PROBABILITY),
            avg_speed_kmh=settings.TRACKING_AVERAGE_SPEED_KMH,
            jitter_degrees=settings.TRACKING_JITTER_DEGREES,
            rng=rng,
        )

    def step(self, order) -> Optional[SimulationStep]:
        """Advance ``order`` in place; None for Delivered/Cancelled orders."""
        status = OrderStatus.parse(order.status)
        if status in state_machine.TERMINAL_STATUSES:
            return None

        position_before = (order.delivery_latitude, order.delivery_longitude)

        if not order.has_destination:
            order.destination_latitude, order.destination_longitude = self.default_destination

        if status == OrderStatus.PLACED:
            self._move_to(order, self.route[0])
            order.status = state_machine.advance(status)
        elif status == OrderStatus.CONFIRMED:
            order.status = state_machine.advance(status)
        elif status == OrderStatus.PREPARING:
            self._move_to(order, self.route[self._next_index(order)])
            order.status = state_machine.advance(status)
        elif status == OrderStatus.OUT_FOR_DELIVERY:
            self._drive(order)

        if not state_machine.is_terminal(order.status) and order.has_position:
            order.eta = estimate_minutes(
                order.delivery_latitude,
                order.delivery_longitude,
                order.destination_latitude,
                order.destination_longitude,
                self.avg_speed_kmh,
            )

        return SimulationStep(
            order=order,
            previous_status=status.value,
            status_changed=order.status != status,
            position_changed=(order.delivery_latitude, order.delivery_longitude)
            != position_before,
        )

    def _next_index(self, order):
        if not order.has_position:
            return 1
        current = nearest_waypoint_index(self.route, self._position(order))
        return min(current + 1, len(self.route) - 1)

    def _drive(self, order):
        last = len(self.route) - 1
        if not order.has_position:
            self._move_to(order, self.route[0])
            return

        position = self._position(order)
        destination = (order.destination_latitude, order.destination_longitude)
        current = nearest_waypoint_index(self.route, position)
        past_route = self._near_destination(position, destination) or (
            _planar_distance_sq(position, destination)
            <= _planar_distance_sq(position, self.route[current])
        )

        if current + 1 < last and not past_route:
            self._move_to(order, self.route[current + 1])
            return

        if self.arrival_policy.has_arrived(order):
            self._move_to(order, destination)
            order.eta = 0
            order.status = state_machine.advance(OrderStatus.OUT_FOR_DELIVERY)
            logger.info(f"Order {order.pk} delivered")
        else:
            self._move_to(
                order,
                (
                    destination[0] + self.rng.uniform(-self.jitter_degrees, self.jitter_degrees),
                    destination[1] + self.rng.uniform(-self.jitter_degrees, self.jitter_degrees),
                ),
            )

    def _near_destination(self, position: Point, destination: Point) -> bool:
        """True inside the jitter box an unsuccessful arrival leaves orders in."""
        return (
            abs(position[0] - destination[0]) <= self.jitter_degrees
            and abs(position[1] - destination[1]) <= self.jitter_degrees
        )

    @staticmethod
    def _position(order) -> Point:
        return (order.delivery_latitude, order.delivery_longitude)

    @staticmethod
    def _move_to(order, point: Point):
        order.delivery_latitude, order.delivery_longitude = point
