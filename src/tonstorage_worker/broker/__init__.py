"""Message broker events and sessions."""

from tonstorage_worker.broker.amqp import (
    AmqpBrokerSession,
    BrokerSession,
    QueueMessage,
    open_broker,
)
from tonstorage_worker.broker.events import (
    CLOSE_CONTRACT,
    REMOVE_TORRENT,
    EventDecodeError,
    QueueEvent,
)

__all__ = [
    "CLOSE_CONTRACT",
    "REMOVE_TORRENT",
    "AmqpBrokerSession",
    "BrokerSession",
    "EventDecodeError",
    "QueueEvent",
    "QueueMessage",
    "open_broker",
]
