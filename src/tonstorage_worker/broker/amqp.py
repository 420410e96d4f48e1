"""RabbitMQ session used by the one-shot workers."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Protocol

import pika
from pika.adapters.blocking_connection import BlockingChannel
from pika.spec import PERSISTENT_DELIVERY_MODE

from tonstorage_worker.broker.events import QueueEvent

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class QueueMessage:
    """One message fetched without auto-ack."""

    delivery_tag: int
    body: bytes


class BrokerSession(Protocol):
    """Operations the workers need from a broker channel."""

    def declare(self, queue: str) -> int:
        """Assert a durable queue and return its current message count."""
        raise NotImplementedError

    def publish(self, queue: str, event: QueueEvent) -> None:
        """Send one persistent event to a queue."""
        raise NotImplementedError

    def publish_body(self, queue: str, body: bytes) -> None:
        """Send an already encoded message body unchanged."""
        raise NotImplementedError

    def get(self, queue: str) -> QueueMessage | None:
        """Fetch one message, or None when the queue is empty."""
        raise NotImplementedError

    def ack(self, message: QueueMessage) -> None:
        """Acknowledge a fetched message."""
        raise NotImplementedError


class AmqpBrokerSession:
    """BrokerSession over a pika blocking channel."""

    def __init__(self, channel: BlockingChannel) -> None:
        self.channel = channel

    def declare(self, queue: str) -> int:
        frame = self.channel.queue_declare(queue=queue, durable=True)
        return int(frame.method.message_count)

    def publish(self, queue: str, event: QueueEvent) -> None:
        self.publish_body(queue, event.encode())
        logger.debug("Published %s to %s", event.event_name, queue)

    def publish_body(self, queue: str, body: bytes) -> None:
        self.channel.basic_publish(
            exchange="",
            routing_key=queue,
            body=body,
            properties=pika.BasicProperties(
                content_type="application/json",
                delivery_mode=PERSISTENT_DELIVERY_MODE,
            ),
        )

    def get(self, queue: str) -> QueueMessage | None:
        method, _properties, body = self.channel.basic_get(queue=queue, auto_ack=False)
        if method is None:
            return None
        return QueueMessage(delivery_tag=method.delivery_tag, body=body or b"")

    def ack(self, message: QueueMessage) -> None:
        self.channel.basic_ack(delivery_tag=message.delivery_tag)


@contextmanager
def open_broker(url: str) -> Iterator[AmqpBrokerSession]:
    """Open a connection and channel for one worker run; both closed on exit."""

    connection = pika.BlockingConnection(pika.URLParameters(url))
    try:
        channel = connection.channel()
        try:
            yield AmqpBrokerSession(channel)
        finally:
            if channel.is_open:
                channel.close()
                logger.info("Broker channel closed")
    finally:
        if connection.is_open:
            connection.close()
            logger.info("Broker connection closed")
