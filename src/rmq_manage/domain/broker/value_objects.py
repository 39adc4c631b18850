"""Broker value objects."""

from enum import Enum


class ExchangeType(str, Enum):
    """Exchange routing types."""

    DIRECT = "direct"
    TOPIC = "topic"
    FANOUT = "fanout"
    HEADERS = "headers"


class DestinationType(str, Enum):
    """Kinds of binding destinations."""

    QUEUE = "queue"
    EXCHANGE = "exchange"

    @property
    def path_segment(self) -> str:
        """Single-letter segment used in management API binding paths."""
        return "e" if self is DestinationType.EXCHANGE else "q"
