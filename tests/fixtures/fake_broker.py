"""In-memory broker for exercising orchestrators without a network."""

from typing import Any, Optional

from rmq_manage.domain.base.ports.broker_port import BrokerPort
from rmq_manage.domain.broker.resources import Binding, Exchange, Queue, VHost
from rmq_manage.domain.broker.value_objects import DestinationType
from rmq_manage.providers.rabbitmq.exceptions import RequestFailedError, ResourceNotFoundError


class FakeBroker(BrokerPort):
    """Models one broker: deleting a queue or exchange also drops its bindings."""

    def __init__(self, vhosts: Optional[list[str]] = None) -> None:
        self.vhosts = [VHost(name=name) for name in (vhosts or ["/"])]
        self.queues: dict[tuple[str, str], Queue] = {}
        self.exchanges: dict[tuple[str, str], Exchange] = {}
        self.bindings: list[Binding] = []
        self.calls: list[tuple[str, ...]] = []
        self.failing_exchange_deletes: set[str] = set()

    # Seeding helpers --------------------------------------------------

    def add_queue(self, name: str, vhost: str = "/", **fields: Any) -> Queue:
        queue = Queue(name=name, vhost=vhost, **fields)
        self.queues[(vhost, name)] = queue
        return queue

    def add_exchange(self, name: str, vhost: str = "/", **fields: Any) -> Exchange:
        exchange = Exchange(name=name, vhost=vhost, **fields)
        self.exchanges[(vhost, name)] = exchange
        return exchange

    def add_binding(
        self,
        source: str,
        destination: str,
        vhost: str = "/",
        destination_type: DestinationType = DestinationType.QUEUE,
        routing_key: str = "",
        arguments: Optional[dict[str, Any]] = None,
    ) -> Binding:
        binding = Binding(
            source=source,
            destination=destination,
            vhost=vhost,
            destination_type=destination_type,
            routing_key=routing_key,
            arguments=arguments or {},
        )
        self.bindings.append(binding)
        return binding

    def mutating_calls(self) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0].startswith(("create", "delete", "purge"))]

    # BrokerPort -------------------------------------------------------

    async def list_vhosts(self) -> list[VHost]:
        self.calls.append(("list_vhosts",))
        return list(self.vhosts)

    async def list_queues(self, vhost: str) -> list[Queue]:
        self.calls.append(("list_queues", vhost))
        return [q for (v, _), q in self.queues.items() if v == vhost]

    async def get_queue(self, vhost: str, name: str) -> Queue:
        self.calls.append(("get_queue", vhost, name))
        if (vhost, name) not in self.queues:
            raise ResourceNotFoundError(f"/queues/{vhost}/{name}")
        return self.queues[(vhost, name)]

    async def create_queue(
        self,
        vhost: str,
        name: str,
        durable: bool = True,
        auto_delete: bool = False,
        arguments: Optional[dict[str, Any]] = None,
    ) -> None:
        self.calls.append(("create_queue", vhost, name))
        self.add_queue(name, vhost, durable=durable, auto_delete=auto_delete, arguments=arguments or {})

    async def delete_queue(self, vhost: str, name: str) -> None:
        self.calls.append(("delete_queue", vhost, name))
        if (vhost, name) not in self.queues:
            raise ResourceNotFoundError(f"/queues/{vhost}/{name}")
        del self.queues[(vhost, name)]
        self.bindings = [
            b
            for b in self.bindings
            if not (
                b.vhost == vhost
                and b.destination == name
                and b.destination_type is DestinationType.QUEUE
            )
        ]

    async def purge_queue(self, vhost: str, name: str) -> None:
        self.calls.append(("purge_queue", vhost, name))
        if (vhost, name) not in self.queues:
            raise ResourceNotFoundError(f"/queues/{vhost}/{name}/contents")

    async def list_exchanges(self, vhost: str) -> list[Exchange]:
        self.calls.append(("list_exchanges", vhost))
        return [e for (v, _), e in self.exchanges.items() if v == vhost]

    async def get_exchange(self, vhost: str, name: str) -> Exchange:
        self.calls.append(("get_exchange", vhost, name))
        if (vhost, name) not in self.exchanges:
            raise ResourceNotFoundError(f"/exchanges/{vhost}/{name}")
        return self.exchanges[(vhost, name)]

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
        self.calls.append(("create_exchange", vhost, name))
        self.add_exchange(
            name,
            vhost,
            type=exchange_type,
            durable=durable,
            auto_delete=auto_delete,
            internal=internal,
            arguments=arguments or {},
        )

    async def delete_exchange(self, vhost: str, name: str) -> None:
        self.calls.append(("delete_exchange", vhost, name))
        if name in self.failing_exchange_deletes:
            raise RequestFailedError(f"/exchanges/{vhost}/{name}", 500, "Internal Server Error")
        if (vhost, name) not in self.exchanges:
            raise ResourceNotFoundError(f"/exchanges/{vhost}/{name}")
        del self.exchanges[(vhost, name)]
        self.bindings = [
            b
            for b in self.bindings
            if not (
                b.vhost == vhost
                and (
                    b.source == name
                    or (b.destination == name and b.destination_type is DestinationType.EXCHANGE)
                )
            )
        ]

    async def list_bindings(self, vhost: str) -> list[Binding]:
        self.calls.append(("list_bindings", vhost))
        return [b for b in self.bindings if b.vhost == vhost]

    async def create_binding(
        self,
        vhost: str,
        source: str,
        destination: str,
        destination_type: DestinationType = DestinationType.QUEUE,
        routing_key: str = "",
        arguments: Optional[dict[str, Any]] = None,
    ) -> None:
        self.calls.append(("create_binding", vhost, source, destination))
        self.add_binding(
            source,
            destination,
            vhost=vhost,
            destination_type=DestinationType(destination_type),
            routing_key=routing_key,
            arguments=arguments,
        )
