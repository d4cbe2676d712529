import json
import logging

from confluent_kafka import KafkaException, Producer
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

logger = logging.getLogger(__name__)


class KafkaClient:
    def __init__(self, bootstrap_servers, client_id, producer=None):
        self.bootstrap_servers = bootstrap_servers
        self.client_id = client_id
        self._producer = producer

    @property
    def enabled(self):
        return bool(self.bootstrap_servers) or self._producer is not None

    @property
    def producer(self):
        if self._producer is None:
            self._producer = Producer(
                {
                    "bootstrap.servers": self.bootstrap_servers,
                    "client.id": self.client_id,
                }
            )
        return self._producer

    def publish(self, topic: str, event_data: dict, key=None, flush_timeout=5):
        """Publish an event to a Kafka topic; returns False instead of raising."""
        if not self.enabled:
            logger.debug(f"Kafka disabled, dropping event for topic: {topic}")
            return False

        delivery = {"failed": False, "error": None}

        def delivery_callback(err, msg):
            if err is not None:
                delivery["failed"] = True
                delivery["error"] = str(err)

        produce_kwargs = {
            "value": json.dumps(event_data, cls=DjangoJSONEncoder).encode("utf-8"),
            "callback": delivery_callback,
        }
        if key is not None:
            produce_kwargs["key"] = str(key).encode("utf-8")

        try:
            self.producer.produce(topic, **produce_kwargs)
            self.producer.poll(0)
            remaining = self.producer.flush(timeout=flush_timeout)
        except (KafkaException, BufferError) as e:
            logger.error(f"Kafka error publishing to {topic}: {e}")
            return False

        if delivery["failed"]:
            logger.error(f"Message delivery to {topic} failed: {delivery['error']}")
            return False
        if remaining:
            logger.error(f"Message to {topic} still undelivered after {flush_timeout}s")
            return False
        return True


_kafka_client = None


def get_kafka_client():
    global _kafka_client
    if _kafka_client is None:
        _kafka_client = KafkaClient(
            bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
            client_id=settings.KAFKA_CLIENT_ID,
        )
    return _kafka_client
