"""
Asynchronous event delivery over AMQP (RabbitMQ).

Publishing is fire-and-forget: the message is made durable and handed to
the broker, and no consumer acknowledgement is awaited.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping

import pika
from pika.exceptions import AMQPError

from ..core.canonical import canonical_json_bytes
from ..core.codec import check_event_value
from ..core.errors import MisuseError, QueueError

logger = logging.getLogger(__name__)

DEFAULT_QUEUE = "audit_events"


class EventPublisher(ABC):
    """Publishes {type, data} messages for later processing."""

    @abstractmethod
    def publish(self, event_type: str, event_data: Mapping[str, Any]) -> None:
        ...


def build_message(event_type: str, event_data: Mapping[str, Any]) -> bytes:
    """Canonical JSON body {"data": ..., "type": ...}."""
    if not event_type:
        raise MisuseError("event_type must be non-empty")
    check_event_value(event_data)
    return canonical_json_bytes({"type": event_type, "data": dict(event_data)})


class AmqpEventPublisher(EventPublisher):
    """
    RabbitMQ publisher using a short-lived blocking connection.

    Each publish declares the durable queue, sends one persistent message
    through the default exchange and closes the connection.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5672,
        username: str = "guest",
        password: str = "guest",
        queue: str = DEFAULT_QUEUE,
        virtual_host: str = "/",
    ):
        self.queue = queue
        self.parameters = pika.ConnectionParameters(
            host=host,
            port=port,
            virtual_host=virtual_host,
            credentials=pika.PlainCredentials(username, password),
        )

    def publish(self, event_type: str, event_data: Mapping[str, Any]) -> None:
        body = build_message(event_type, event_data)
        try:
            connection = pika.BlockingConnection(self.parameters)
            try:
                channel = connection.channel()
                channel.queue_declare(queue=self.queue, durable=True)
                channel.basic_publish(
                    exchange="",
                    routing_key=self.queue,
                    body=body,
                    properties=pika.BasicProperties(
                        content_type="application/json",
                        delivery_mode=pika.DeliveryMode.Persistent,
                    ),
                )
                channel.close()
            finally:
                connection.close()
        except AMQPError as ex:
            raise QueueError(f"cannot publish to {self.queue}: {ex}") from ex
        logger.debug("Published %s to queue %s", event_type, self.queue)
