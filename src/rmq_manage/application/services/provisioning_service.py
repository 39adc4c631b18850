"""Provisioning orchestrator: creates a rendered system on the broker."""

import json
from typing import Any, Optional, Union

from rmq_manage.domain.base.exceptions import ResourceConflictError
from rmq_manage.domain.base.ports.broker_port import BrokerPort
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.broker.resources import Exchange, Queue
from rmq_manage.domain.system.aggregate import ProvisioningResult
from rmq_manage.domain.system.value_objects import (
    QUEUE_PREFIX_PARAMETER,
    VHOST_PARAMETER,
    build_metadata,
    derive_system_id,
)
from rmq_manage.domain.template.template_aggregate import (
    ExchangeSpec,
    QueueSpec,
    RenderedSystemConfig,
)
from rmq_manage.providers.rabbitmq.exceptions import ResourceNotFoundError


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def find_mismatches(actual: Union[Exchange, Queue], expected: dict[str, Any]) -> list[str]:
    """
    Compare declared attributes against an existing resource.

    Top-level keys are compared directly; ``arguments`` is compared key by key.
    """
    mismatches: list[str] = []
    for key, expected_value in expected.items():
        if key == "arguments" and isinstance(expected_value, dict):
            for arg_key, arg_value in expected_value.items():
                actual_arg = actual.argument(arg_key)
                if actual_arg != arg_value:
                    mismatches.append(
                        f"{arg_key}: expected {json.dumps(arg_value)}, actual {json.dumps(actual_arg)}"
                    )
            continue
        actual_value = getattr(actual, key, None)
        if actual_value != expected_value:
            mismatches.append(
                f"{key}: expected {_format_value(expected_value)}, actual {_format_value(actual_value)}"
            )
    return mismatches


class ProvisioningService:
    """Creates exchanges, then queues, then bindings, applying the reuse policy.

    Not transactional: a failure leaves already created resources in place.
    """

    def __init__(self, broker: BrokerPort, logger: LoggingPort) -> None:
        self._broker = broker
        self._logger = logger

    async def create_system(
        self,
        rendered: RenderedSystemConfig,
        template_name: str,
        template_version: str,
        user_params: dict[str, Any],
    ) -> ProvisioningResult:
        """
        Provision a rendered system.

        Args:
            rendered: Fully substituted resource set
            template_name: Name recorded in ownership metadata
            template_version: Version recorded in ownership metadata
            user_params: Parameter values; supply the vhost fallback and queue prefix

        Returns:
            ProvisioningResult listing created and reused resources

        Raises:
            ValueError: If no vhost can be determined
            ResourceConflictError: If an existing resource violates the reuse policy
            GatewayError: On broker failures
        """
        vhost = rendered.vhost or user_params.get(VHOST_PARAMETER)
        if not vhost:
            raise ValueError("A vhost is required to provision a system")
        vhost = str(vhost)

        system_id = derive_system_id(template_name, vhost, user_params.get(QUEUE_PREFIX_PARAMETER))
        metadata = build_metadata(system_id, template_name, template_version)
        result = ProvisioningResult(system_id=system_id, vhost=vhost)

        self._logger.info("Provisioning system %s on vhost %s", system_id, vhost)
        try:
            for exchange in rendered.exchanges:
                await self._provision_exchange(vhost, exchange, metadata, result)
            for queue in rendered.queues:
                await self._provision_queue(queue.vhost or vhost, queue, metadata, result)
            for binding in rendered.bindings:
                await self._broker.create_binding(
                    vhost,
                    binding.source,
                    binding.destination,
                    destination_type=binding.destination_type,
                    routing_key=binding.routing_key,
                    arguments={**binding.arguments, **metadata},
                )
                result.bindings_created += 1
        except Exception:
            self._logger.error(
                "Provisioning of %s failed; resources created so far: %s",
                system_id,
                result.model_dump(),
            )
            raise

        self._logger.info(
            "Provisioned system %s: %d exchanges, %d queues, %d bindings",
            system_id,
            len(result.created_exchanges),
            len(result.created_queues),
            result.bindings_created,
        )
        return result

    async def _provision_exchange(
        self,
        vhost: str,
        spec: ExchangeSpec,
        metadata: dict[str, str],
        result: ProvisioningResult,
    ) -> None:
        existing = await self._find_exchange(vhost, spec.name)
        if existing is not None:
            self._check_reuse("Exchange", spec, existing)
            self._logger.info("Reusing existing exchange %s", spec.name)
            result.reused_exchanges.append(spec.name)
            return

        await self._broker.create_exchange(
            vhost,
            spec.name,
            exchange_type=spec.type.value,
            durable=spec.durable,
            auto_delete=spec.auto_delete,
            internal=spec.internal,
            arguments={**spec.arguments, **metadata},
        )
        result.created_exchanges.append(spec.name)

    async def _provision_queue(
        self,
        vhost: str,
        spec: QueueSpec,
        metadata: dict[str, str],
        result: ProvisioningResult,
    ) -> None:
        existing = await self._find_queue(vhost, spec.name)
        if existing is not None:
            self._check_reuse("Queue", spec, existing)
            self._logger.info("Reusing existing queue %s", spec.name)
            result.reused_queues.append(spec.name)
            return

        await self._broker.create_queue(
            vhost,
            spec.name,
            durable=spec.durable,
            auto_delete=spec.auto_delete,
            arguments={**spec.arguments, **metadata},
        )
        result.created_queues.append(spec.name)

    @staticmethod
    def _check_reuse(
        resource_kind: str,
        spec: Union[ExchangeSpec, QueueSpec],
        existing: Union[Exchange, Queue],
    ) -> None:
        if not spec.reuse_if_exists:
            raise ResourceConflictError(resource_kind, spec.name)
        if spec.validate_if_exists:
            mismatches = find_mismatches(existing, spec.validate_if_exists)
            if mismatches:
                raise ResourceConflictError(resource_kind, spec.name, mismatches)

    async def _find_exchange(self, vhost: str, name: str) -> Optional[Exchange]:
        try:
            return await self._broker.get_exchange(vhost, name)
        except ResourceNotFoundError:
            return None

    async def _find_queue(self, vhost: str, name: str) -> Optional[Queue]:
        try:
            return await self._broker.get_queue(vhost, name)
        except ResourceNotFoundError:
            return None
