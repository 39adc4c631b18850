"""Broker resource models as returned by the management API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from rmq_manage.domain.broker.value_objects import DestinationType, ExchangeType


class BrokerResource(BaseModel):
    """Common shape of queues and exchanges."""

    model_config = ConfigDict(extra="ignore")

    name: str
    vhost: str = "/"
    durable: bool = True
    auto_delete: bool = False
    arguments: dict[str, Any] = Field(default_factory=dict)

    def argument(self, key: str) -> Any:
        """Return an argument value or None."""
        return (self.arguments or {}).get(key)


class VHost(BaseModel):
    """Virtual host."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: Optional[str] = None
    tracing: Optional[bool] = None
    tags: list[str] = Field(default_factory=list)


class Queue(BrokerResource):
    """Queue as reported by the broker, including optional statistics."""

    state: Optional[str] = None
    messages: Optional[int] = None
    messages_ready: Optional[int] = None
    messages_unacknowledged: Optional[int] = None
    consumers: Optional[int] = None
    message_stats: Optional[dict[str, Any]] = None


class Exchange(BrokerResource):
    """Exchange as reported by the broker."""

    type: str = ExchangeType.DIRECT.value
    internal: bool = False


class Binding(BaseModel):
    """Binding from a source exchange to a queue or exchange."""

    model_config = ConfigDict(extra="ignore")

    source: str
    vhost: str = "/"
    destination: str
    destination_type: DestinationType = DestinationType.QUEUE
    routing_key: str = ""
    properties_key: Optional[str] = None
    arguments: dict[str, Any] = Field(default_factory=dict)
