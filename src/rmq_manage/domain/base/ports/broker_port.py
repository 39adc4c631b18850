"""Domain port for broker resource management."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from rmq_manage.domain.broker.resources import Binding, Exchange, Queue, VHost
from rmq_manage.domain.broker.value_objects import DestinationType


class BrokerPort(ABC):
    """Authenticated CRUD over broker resource collections, scoped by vhost.

    Contract relied on by the orchestrators:

    - ``list_vhosts`` may be cached; every other read always fetches fresh state.
    - ``get_queue``/``get_exchange`` and the delete/purge operations raise
      ``ResourceNotFoundError`` when the resource is absent.
    - ``create_queue``/``create_exchange`` are upserts; reuse decisions belong
      to the caller.
    - ``create_binding`` always appends; identical bindings are deduplicated by
      the broker.
    """

    @abstractmethod
    async def list_vhosts(self) -> list[VHost]:
        """List virtual hosts."""

    @abstractmethod
    async def list_queues(self, vhost: str) -> list[Queue]:
        """List queues in a vhost."""

    @abstractmethod
    async def get_queue(self, vhost: str, name: str) -> Queue:
        """Get a single queue."""

    @abstractmethod
    async def create_queue(
        self,
        vhost: str,
        name: str,
        durable: bool = True,
        auto_delete: bool = False,
        arguments: Optional[dict[str, Any]] = None,
    ) -> None:
        """Create or update a queue."""

    @abstractmethod
    async def delete_queue(self, vhost: str, name: str) -> None:
        """Delete a queue."""

    @abstractmethod
    async def purge_queue(self, vhost: str, name: str) -> None:
        """Remove all messages from a queue."""

    @abstractmethod
    async def list_exchanges(self, vhost: str) -> list[Exchange]:
        """List exchanges in a vhost."""

    @abstractmethod
    async def get_exchange(self, vhost: str, name: str) -> Exchange:
        """Get a single exchange."""

    @abstractmethod
    async def create_exchange(
        self,
        vhost: str,
        name: str,
        exchange_type: str = "direct",
        durable: bool = True,
        auto_delete: bool = False,
        internal: bool = False,
        arguments: Optional[dict[str, Any]] = None,
    ) -> None:
        """Create or update an exchange."""

    @abstractmethod
    async def delete_exchange(self, vhost: str, name: str) -> None:
        """Delete an exchange."""

    @abstractmethod
    async def list_bindings(self, vhost: str) -> list[Binding]:
        """List bindings in a vhost."""

    @abstractmethod
    async def create_binding(
        self,
        vhost: str,
        source: str,
        destination: str,
        destination_type: DestinationType = DestinationType.QUEUE,
        routing_key: str = "",
        arguments: Optional[dict[str, Any]] = None,
    ) -> None:
        """Bind a source exchange to a queue or exchange."""
