"""
Shared fixtures and in-process doubles for the tracker test-suite.

Redis, the channel layer, Kafka and the identity service are replaced by
small recording doubles so tests run without any external service.
"""
import fnmatch
import random

import pytest
from django_redis.exceptions import ConnectionInterrupted
from django_redis.serializers.json import JSONSerializer

from apps.orders.models import Order
from apps.orders.services import OrderService
from apps.orders.state_machine import OrderStatus
from apps.orders.store import OrderStore
from apps.tracking.broadcaster import TrackingBroadcaster
from apps.tracking.simulator import DeliveryRouteSimulator, FixedArrivalPolicy
from infrastructure.cache import RedisCacheService

ROUTE = [
    (28.6139, 77.2090),
    (28.6145, 77.2100),
    (28.6160, 77.2120),
]
DEFAULT_DESTINATION = (28.6160, 77.2120)


class FakeRedisCache:
    """In-process stand-in for the django-redis cache backend configured in settings."""

    def __init__(self):
        self.serializer = JSONSerializer({})
        self.data = {}
        self.timeouts = {}
        self.available = True

    def _check(self):
        if not self.available:
            raise ConnectionInterrupted(connection=None)

    def get(self, key, default=None):
        self._check()
        if key not in self.data:
            return default
        return self.serializer.loads(self.data[key])

    def set(self, key, value, timeout=None):
        self._check()
        self.data[key] = self.serializer.dumps(value)
        self.timeouts[key] = timeout
        return True

    def delete(self, key):
        self._check()
        self.timeouts.pop(key, None)
        return self.data.pop(key, None) is not None

    def has_key(self, key):
        self._check()
        return key in self.data

    def delete_pattern(self, pattern, itersize=None):
        self._check()
        matched = [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]
        for key in matched:
            self.delete(key)
        return len(matched)


class RecordingChannelLayer:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def group_send(self, group, message):
        if self.fail:
            raise RuntimeError("channel layer is down")
        self.sent.append((group, message))

    def events(self, event_type):
        return [(group, message["data"]) for group, message in self.sent if message["type"] == event_type]


class RecordingEvents:
    def __init__(self):
        self.published = []

    def publish(self, topic, event_data, key=None):
        self.published.append((topic, event_data, key))
        return True


class StubIdentity:
    def __init__(self, users=None):
        self.users = users if users is not None else {}
        self.calls = []

    def validate_user(self, user_id):
        self.calls.append(user_id)
        return {"id": user_id, "username": self.users.get(user_id)}


@pytest.fixture(autouse=True)
def isolated_singletons(monkeypatch, settings):
    """Keep lazily built process-wide clients from leaking between tests."""
    import apps.orders.services
    import apps.tracking.broadcaster
    import infrastructure.cache
    import infrastructure.identity_client
    import infrastructure.kafka_client

    settings.CACHE_ENABLED = False
    settings.KAFKA_BOOTSTRAP_SERVERS = ""
    settings.USER_SERVICE_URL = ""
    monkeypatch.setattr(infrastructure.cache, "_cache_service", None)
    monkeypatch.setattr(infrastructure.kafka_client, "_kafka_client", None)
    monkeypatch.setattr(infrastructure.identity_client, "_identity_client", None)
    monkeypatch.setattr(apps.tracking.broadcaster, "_broadcaster", None)
    monkeypatch.setattr(apps.orders.services, "_order_service", None)


@pytest.fixture
def cache_backend():
    return FakeRedisCache()


@pytest.fixture
def cache(cache_backend):
    return RedisCacheService(cache_backend)


@pytest.fixture
def channel_layer():
    return RecordingChannelLayer()


@pytest.fixture
def broadcaster(channel_layer):
    return TrackingBroadcaster(channel_layer=channel_layer)


@pytest.fixture
def events():
    return RecordingEvents()


@pytest.fixture
def identity():
    return StubIdentity(users={7: "asha"})


@pytest.fixture
def store():
    return OrderStore()


@pytest.fixture
def service(store, cache, broadcaster, identity, events):
    return OrderService(
        store=store,
        cache=cache,
        broadcaster=broadcaster,
        identity=identity,
        events=events,
        avg_speed_kmh=30,
        default_destination=DEFAULT_DESTINATION,
    )


def make_simulator(arrived=True, seed=3):
    return DeliveryRouteSimulator(
        route=ROUTE,
        default_destination=DEFAULT_DESTINATION,
        arrival_policy=FixedArrivalPolicy(arrived),
        avg_speed_kmh=30,
        jitter_degrees=0.0005,
        rng=random.Random(seed),
    )


@pytest.fixture
def simulator():
    return make_simulator()


@pytest.fixture
def make_order(db):
    def _make(**overrides):
        fields = {
            "user_id": 7,
            "customer_name": "Asha",
            "item": "Paneer Tikka",
            "status": OrderStatus.PLACED,
            "destination_latitude": 28.62,
            "destination_longitude": 77.21,
        }
        fields.update(overrides)
        return Order.objects.create(**fields)

    return _make
