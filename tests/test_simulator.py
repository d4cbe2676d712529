import random

import pytest

from apps.orders.models import Order
from apps.orders.state_machine import OrderStatus
from apps.tracking.simulator import (
    DeliveryRouteSimulator,
    RandomArrivalPolicy,
    nearest_waypoint_index,
)

from conftest import DEFAULT_DESTINATION, ROUTE, make_simulator


def new_order(**fields):
    defaults = {
        "user_id": 7,
        "item": "Paneer Tikka",
        "status": OrderStatus.PLACED,
        "destination_latitude": 28.62,
        "destination_longitude": 77.21,
    }
    defaults.update(fields)
    return Order(**defaults)


def test_placed_order_is_confirmed_at_the_first_waypoint(simulator):
    order = new_order()
    step = simulator.step(order)

    assert order.status == OrderStatus.CONFIRMED
    assert (order.delivery_latitude, order.delivery_longitude) == ROUTE[0]
    assert step.status_changed and step.position_changed
    assert step.previous_status == "Placed"
    assert 1 <= order.eta <= 30


def test_confirmed_order_starts_preparing_without_moving(simulator):
    order = new_order(status=OrderStatus.CONFIRMED, delivery_latitude=ROUTE[0][0], delivery_longitude=ROUTE[0][1])
    step = simulator.step(order)

    assert order.status == OrderStatus.PREPARING
    assert step.status_changed
    assert not step.position_changed


def test_preparing_order_leaves_for_the_next_waypoint(simulator):
    order = new_order(status=OrderStatus.PREPARING, delivery_latitude=ROUTE[0][0], delivery_longitude=ROUTE[0][1])
    simulator.step(order)

    assert order.status == OrderStatus.OUT_FOR_DELIVERY
    assert (order.delivery_latitude, order.delivery_longitude) == ROUTE[1]


def test_preparing_order_without_position_goes_to_second_waypoint(simulator):
    order = new_order(status=OrderStatus.PREPARING)
    simulator.step(order)
    assert (order.delivery_latitude, order.delivery_longitude) == ROUTE[1]


def test_out_for_delivery_on_last_leg_is_delivered_at_destination(simulator):
    order = new_order(
        status=OrderStatus.OUT_FOR_DELIVERY, delivery_latitude=ROUTE[1][0], delivery_longitude=ROUTE[1][1]
    )
    step = simulator.step(order)

    assert order.status == OrderStatus.DELIVERED
    assert (order.delivery_latitude, order.delivery_longitude) == (28.62, 77.21)
    assert order.eta == 0
    assert step.status_changed


def test_failed_arrival_jitters_around_destination():
    simulator = make_simulator(arrived=False)
    order = new_order(
        status=OrderStatus.OUT_FOR_DELIVERY, delivery_latitude=ROUTE[1][0], delivery_longitude=ROUTE[1][1]
    )

    for _ in range(5):
        step = simulator.step(order)
        assert order.status == OrderStatus.OUT_FOR_DELIVERY
        assert abs(order.delivery_latitude - 28.62) <= 0.0005
        assert abs(order.delivery_longitude - 77.21) <= 0.0005
        assert 1 <= order.eta <= 30
        assert not step.status_changed


def test_jittered_order_is_delivered_once_arrival_succeeds():
    simulator = make_simulator(arrived=False)
    order = new_order(
        status=OrderStatus.OUT_FOR_DELIVERY, delivery_latitude=ROUTE[1][0], delivery_longitude=ROUTE[1][1]
    )
    simulator.step(order)

    simulator.arrival_policy.arrived = True
    simulator.step(order)
    assert order.status == OrderStatus.DELIVERED
    assert order.eta == 0


def test_out_for_delivery_without_position_starts_at_first_waypoint(simulator):
    order = new_order(status=OrderStatus.OUT_FOR_DELIVERY)
    step = simulator.step(order)

    assert (order.delivery_latitude, order.delivery_longitude) == ROUTE[0]
    assert order.status == OrderStatus.OUT_FOR_DELIVERY
    assert step.position_changed and not step.status_changed


def test_longer_route_walks_each_waypoint_before_arriving():
    route = [(28.6100, 77.2000), (28.6120, 77.2030), (28.6140, 77.2060), (28.6160, 77.2090), (28.6180, 77.2120)]
    simulator = DeliveryRouteSimulator(route, DEFAULT_DESTINATION, make_simulator().arrival_policy)
    order = new_order(status=OrderStatus.OUT_FOR_DELIVERY, delivery_latitude=route[1][0], delivery_longitude=route[1][1])

    simulator.step(order)
    assert (order.delivery_latitude, order.delivery_longitude) == route[2]
    simulator.step(order)
    assert (order.delivery_latitude, order.delivery_longitude) == route[3]
    simulator.step(order)
    assert order.status == OrderStatus.DELIVERED


@pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
def test_terminal_orders_are_left_alone(simulator, terminal):
    order = new_order(status=terminal, delivery_latitude=1.0, delivery_longitude=2.0, eta=None)
    assert simulator.step(order) is None
    assert order.status == terminal
    assert (order.delivery_latitude, order.delivery_longitude) == (1.0, 2.0)


def test_missing_destination_gets_the_default(simulator):
    order = new_order(destination_latitude=None, destination_longitude=None)
    simulator.step(order)
    assert (order.destination_latitude, order.destination_longitude) == DEFAULT_DESTINATION


def test_four_ticks_deliver_an_order(simulator):
    order = new_order()
    statuses = []
    for _ in range(4):
        simulator.step(order)
        statuses.append(order.status)

    assert statuses == [
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ]
    assert (order.delivery_latitude, order.delivery_longitude) == (28.62, 77.21)
    assert order.eta == 0


def test_random_arrival_eventually_delivers():
    simulator = DeliveryRouteSimulator(
        ROUTE,
        DEFAULT_DESTINATION,
        RandomArrivalPolicy(0.25, rng=random.Random(11)),
        rng=random.Random(11),
    )
    order = new_order()
    for _ in range(200):
        if simulator.step(order) is None:
            break
    assert order.status == OrderStatus.DELIVERED


def test_random_arrival_policy_validates_probability():
    with pytest.raises(ValueError):
        RandomArrivalPolicy(1.5)


def test_route_needs_two_waypoints():
    with pytest.raises(ValueError):
        DeliveryRouteSimulator([ROUTE[0]], DEFAULT_DESTINATION)


def test_nearest_waypoint_index():
    assert nearest_waypoint_index(ROUTE, (28.6146, 77.2101)) == 1
    assert nearest_waypoint_index(ROUTE, (0.0, 0.0)) == 0


@pytest.mark.parametrize(
    "destination",
    [ROUTE[0], (ROUTE[0][0] + 0.0003, ROUTE[0][1] - 0.0002)],
)
def test_failed_arrivals_never_return_to_the_route(destination):
    simulator = make_simulator(arrived=False)
    order = new_order(
        status=OrderStatus.OUT_FOR_DELIVERY,
        delivery_latitude=ROUTE[1][0],
        delivery_longitude=ROUTE[1][1],
        destination_latitude=destination[0],
        destination_longitude=destination[1],
    )

    for _ in range(10):
        simulator.step(order)
        assert abs(order.delivery_latitude - destination[0]) <= 0.0005
        assert abs(order.delivery_longitude - destination[1]) <= 0.0005
        assert order.status == OrderStatus.OUT_FOR_DELIVERY
