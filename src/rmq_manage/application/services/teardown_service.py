"""Discovery and teardown of managed systems."""

import time
from collections.abc import Sequence

from rmq_manage.domain.base.ports.broker_port import BrokerPort
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.broker.resources import Binding, Exchange
from rmq_manage.domain.broker.value_objects import DestinationType
from rmq_manage.domain.system.aggregate import (
    DeletionReport,
    ForceDeleteResult,
    ManagedSystem,
    RemainingExchange,
    SystemResources,
    SystemSnapshot,
)
from rmq_manage.domain.system.membership import (
    DEFAULT_RESERVED_PREFIXES,
    distinct_tags,
    filter_by_tag,
    group_by_tag,
    is_protected_exchange,
    tag_of,
)
from rmq_manage.domain.system.value_objects import (
    CREATED_AT_KEY,
    SYSTEM_ID_KEY,
    TEMPLATE_KEY,
    VERSION_KEY,
    RemovalReason,
)
from rmq_manage.providers.rabbitmq.exceptions import GatewayError


def _outgoing_binding_count(bindings: Sequence[Binding], exchange_name: str) -> int:
    return sum(1 for binding in bindings if binding.source == exchange_name)


class TeardownService:
    """Enumerates managed systems from resource tags and deletes them."""

    def __init__(
        self,
        broker: BrokerPort,
        logger: LoggingPort,
        reserved_prefixes: Sequence[str] = DEFAULT_RESERVED_PREFIXES,
    ) -> None:
        self._broker = broker
        self._logger = logger
        self._reserved_prefixes = tuple(reserved_prefixes)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def list_managed_systems(self, vhost: str) -> list[ManagedSystem]:
        """
        Reconstruct the systems on a vhost from queue tags.

        Only queues carrying both a system id and a template name define a
        system; exchanges are counted only for systems found that way.
        """
        queues = await self._broker.list_queues(vhost)
        exchanges = await self._broker.list_exchanges(vhost)

        tagged_queues = [q for q in queues if tag_of(q, TEMPLATE_KEY) is not None]
        systems: dict[str, ManagedSystem] = {}
        for system_id, members in group_by_tag(tagged_queues, SYSTEM_ID_KEY).items():
            first = members[0]
            systems[system_id] = ManagedSystem(
                system_id=system_id,
                template=first.argument(TEMPLATE_KEY),
                version=tag_of(first, VERSION_KEY) or "unknown",
                created_at=tag_of(first, CREATED_AT_KEY) or "",
                queue_count=len(members),
            )

        for system_id, members in group_by_tag(exchanges, SYSTEM_ID_KEY).items():
            if system_id in systems:
                systems[system_id].exchange_count = len(members)

        return sorted(systems.values(), key=lambda s: s.created_at, reverse=True)

    async def get_system_resources(self, vhost: str, system_id: str) -> SystemResources:
        """Queues and exchanges tagged with system_id, freshly fetched."""
        queues = await self._broker.list_queues(vhost)
        exchanges = await self._broker.list_exchanges(vhost)
        return SystemResources(
            queues=filter_by_tag(queues, SYSTEM_ID_KEY, system_id),
            exchanges=filter_by_tag(exchanges, SYSTEM_ID_KEY, system_id),
        )

    async def get_system_snapshot(self, vhost: str, system_id: str) -> SystemSnapshot:
        """Detailed state of every queue in a system."""
        resources = await self.get_system_resources(vhost, system_id)
        details = []
        for queue in resources.queues:
            details.append(await self._broker.get_queue(vhost, queue.name))
        return SystemSnapshot(timestamp=int(time.time() * 1000), queues=details)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def delete_system(self, vhost: str, system_id: str) -> DeletionReport:
        """
        Delete a system's queues and every exchange left without bindings.

        Exchanges bound to the system's queues are candidates whether the system
        created them or reused them. Candidates are deleted in rounds until a
        round makes no progress; whatever remains is classified in the report.
        Queue deletion failures propagate.
        """
        report = DeletionReport()
        resources = await self.get_system_resources(vhost, system_id)
        queue_names = {q.name for q in resources.queues}

        bindings_before = await self._broker.list_bindings(vhost)
        used_exchanges = {
            b.source
            for b in bindings_before
            if b.destination_type is DestinationType.QUEUE and b.destination in queue_names
        }

        for queue in resources.queues:
            await self._broker.delete_queue(vhost, queue.name)
            report.deleted_queues.append(queue.name)
            self._logger.debug("Deleted queue %s", queue.name)

        existing_system_ids = distinct_tags(await self._broker.list_queues(vhost), SYSTEM_ID_KEY)

        candidates = [
            e
            for e in await self._broker.list_exchanges(vhost)
            if e.name in used_exchanges and not is_protected_exchange(e.name, self._reserved_prefixes)
        ]

        remaining, report.converged = await self._delete_unbound_exchanges(
            vhost, candidates, report.deleted_exchanges
        )
        remaining_names = {e.name for e in remaining}
        report.deleted_exchanges = [n for n in report.deleted_exchanges if n not in remaining_names]
        if not report.converged:
            self._logger.warning(
                "Exchange cleanup for %s stopped after %d rounds without converging; "
                "%d exchanges left",
                system_id,
                len(candidates) + 1,
                len(remaining),
            )

        if remaining:
            final_bindings = await self._broker.list_bindings(vhost)
            report.remaining_exchanges = [
                self._classify(exchange, system_id, existing_system_ids, final_bindings)
                for exchange in remaining
            ]

        self._logger.info(
            "Deleted system %s: %d queues, %d exchanges, %d exchanges remaining",
            system_id,
            len(report.deleted_queues),
            len(report.deleted_exchanges),
            len(report.remaining_exchanges),
        )
        return report

    async def _delete_unbound_exchanges(
        self, vhost: str, candidates: list[Exchange], deleted: list[str]
    ) -> tuple[list[Exchange], bool]:
        """
        Fixed-point loop: delete candidates with no outgoing bindings until stable.

        Candidates are re-read from the broker after every round, so one that was
        deleted and has since been re-declared is tried again. Each round on a
        stable broker removes at least one candidate; more than
        len(candidates) + 1 rounds means the broker is changing under us.
        """
        candidate_names = [exchange.name for exchange in candidates]
        remaining = list(candidates)
        max_rounds = len(candidates) + 1

        for _ in range(max_rounds):
            if not remaining:
                return remaining, True
            bindings = await self._broker.list_bindings(vhost)
            progressed = False
            kept: list[Exchange] = []
            for exchange in remaining:
                if _outgoing_binding_count(bindings, exchange.name):
                    kept.append(exchange)
                    continue
                try:
                    await self._broker.delete_exchange(vhost, exchange.name)
                except GatewayError as e:
                    self._logger.warning("Failed to delete exchange %s: %s", exchange.name, e)
                    kept.append(exchange)
                    continue
                if exchange.name not in deleted:
                    deleted.append(exchange.name)
                progressed = True
            if not progressed:
                return kept, True

            present = {e.name: e for e in await self._broker.list_exchanges(vhost)}
            remaining = [present[name] for name in candidate_names if name in present]

        return remaining, not remaining

    @staticmethod
    def _classify(
        exchange: Exchange,
        system_id: str,
        existing_system_ids: set[str],
        bindings: Sequence[Binding],
    ) -> RemainingExchange:
        created_by = tag_of(exchange, SYSTEM_ID_KEY)
        orphaned = (
            created_by is not None
            and created_by != system_id
            and created_by not in existing_system_ids
        )
        return RemainingExchange(
            name=exchange.name,
            reason=RemovalReason.ORPHANED_EXCHANGE if orphaned else RemovalReason.HAS_BINDINGS,
            binding_count=_outgoing_binding_count(bindings, exchange.name),
            is_managed=created_by is not None,
            created_by=created_by,
        )

    async def force_delete_exchanges(self, vhost: str, names: Sequence[str]) -> ForceDeleteResult:
        """Delete exchanges regardless of bindings; a failure never stops the rest."""
        result = ForceDeleteResult()
        for name in names:
            try:
                await self._broker.delete_exchange(vhost, name)
            except GatewayError as e:
                self._logger.warning("Force delete of exchange %s failed: %s", name, e)
                result.failed[name] = str(e)
                continue
            result.deleted.append(name)
        return result
