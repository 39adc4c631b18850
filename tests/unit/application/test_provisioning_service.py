"""Tests for the provisioning orchestrator."""

import pytest

from rmq_manage.application.services.provisioning_service import (
    ProvisioningService,
    find_mismatches,
)
from rmq_manage.domain.base.exceptions import ResourceConflictError
from rmq_manage.domain.broker.resources import Queue
from rmq_manage.domain.broker.value_objects import DestinationType
from rmq_manage.domain.system.value_objects import SYSTEM_ID_KEY, TEMPLATE_KEY, VERSION_KEY
from rmq_manage.domain.template.template_aggregate import RenderedSystemConfig
from rmq_manage.providers.rabbitmq.exceptions import RequestFailedError


@pytest.fixture
def service(fake_broker, logger):
    return ProvisioningService(fake_broker, logger)


def _config(**sections) -> RenderedSystemConfig:
    data = {"vhost": "/", "exchanges": [], "queues": [], "bindings": []}
    data.update(sections)
    return RenderedSystemConfig.model_validate(data)


@pytest.mark.unit
class TestCreateSystem:
    """Creation order, tagging and the reuse policy."""

    async def test_creates_resources_with_metadata(self, service, fake_broker):
        """Exchanges, queues and bindings are created and tagged."""
        rendered = _config(
            exchanges=[{"name": "orders.retry", "type": "topic", "arguments": {SYSTEM_ID_KEY: "spoofed"}}],
            queues=[{"name": "orders.work", "arguments": {"x-message-ttl": 1000}}],
            bindings=[{"source": "orders.retry", "destination": "orders.work", "routing_key": "rk"}],
        )

        result = await service.create_system(rendered, "retry-system", "1.0.0", {"queue_prefix": "orders"})

        assert result.system_id == "retry-system@/:orders"
        assert result.created_exchanges == ["orders.retry"]
        assert result.created_queues == ["orders.work"]
        assert result.bindings_created == 1

        exchange = fake_broker.exchanges[("/", "orders.retry")]
        assert exchange.type == "topic"
        # Ownership metadata wins over declared arguments.
        assert exchange.arguments[SYSTEM_ID_KEY] == "retry-system@/:orders"
        queue = fake_broker.queues[("/", "orders.work")]
        assert queue.arguments["x-message-ttl"] == 1000
        assert queue.arguments[TEMPLATE_KEY] == "retry-system"
        assert queue.arguments[VERSION_KEY] == "1.0.0"
        binding = fake_broker.bindings[0]
        assert binding.routing_key == "rk"
        assert binding.destination_type is DestinationType.QUEUE
        assert binding.arguments[SYSTEM_ID_KEY] == "retry-system@/:orders"

        assert [c[0] for c in fake_broker.mutating_calls()] == [
            "create_exchange",
            "create_queue",
            "create_binding",
        ]

    async def test_vhost_falls_back_to_user_params(self, service, fake_broker):
        """Without a rendered vhost the vhost parameter is used."""
        fake_broker.vhosts.append(fake_broker.vhosts[0].model_copy(update={"name": "prod"}))
        rendered = _config(vhost=None, queues=[{"name": "q"}])

        result = await service.create_system(rendered, "t", "1", {"vhost": "prod"})

        assert result.system_id == "t@prod:unnamed"
        assert ("prod", "q") in fake_broker.queues

    async def test_missing_vhost_raises(self, service):
        """A vhost is required."""
        with pytest.raises(ValueError):
            await service.create_system(_config(vhost=None, queues=[{"name": "q"}]), "t", "1", {})

    async def test_queue_vhost_override(self, service, fake_broker):
        """A queue with its own vhost is looked up and created there."""
        rendered = _config(queues=[{"name": "q", "vhost": "other"}])

        await service.create_system(rendered, "t", "1", {})

        assert ("other", "q") in fake_broker.queues
        assert ("get_queue", "other", "q") in fake_broker.calls

    async def test_existing_exchange_without_reuse_conflicts(self, service, fake_broker):
        """Existing resources are a conflict unless reuse is allowed."""
        fake_broker.add_exchange("orders.retry")
        rendered = _config(exchanges=[{"name": "orders.retry"}], queues=[{"name": "q"}])

        with pytest.raises(ResourceConflictError) as exc_info:
            await service.create_system(rendered, "t", "1", {})

        assert str(exc_info.value) == 'Exchange "orders.retry" already exists'
        assert fake_broker.mutating_calls() == []

    async def test_reuse_without_validation_skips(self, service, fake_broker):
        """Reused resources are left untouched."""
        fake_broker.add_exchange("shared", type="fanout")
        fake_broker.add_queue("q", durable=False)
        rendered = _config(
            exchanges=[{"name": "shared", "reuseIfExists": True}],
            queues=[{"name": "q", "reuse_if_exists": True}],
        )

        result = await service.create_system(rendered, "t", "1", {})

        assert result.reused_exchanges == ["shared"]
        assert result.reused_queues == ["q"]
        assert fake_broker.mutating_calls() == []
        assert fake_broker.exchanges[("/", "shared")].arguments == {}

    async def test_reuse_with_validation_mismatch(self, service, fake_broker):
        """A mismatch aborts with every difference listed and nothing mutated."""
        fake_broker.add_queue("Q", durable=True, arguments={"x-message-ttl": 100})
        rendered = _config(
            queues=[
                {
                    "name": "Q",
                    "reuseIfExists": True,
                    "validateIfExists": {"durable": False, "arguments": {"x-message-ttl": 200}},
                }
            ]
        )

        with pytest.raises(ResourceConflictError) as exc_info:
            await service.create_system(rendered, "t", "1", {})

        error = exc_info.value
        assert error.resource_kind == "Queue"
        assert error.name == "Q"
        assert error.mismatches == [
            "durable: expected false, actual true",
            "x-message-ttl: expected 200, actual 100",
        ]
        assert fake_broker.mutating_calls() == []

    async def test_reuse_with_matching_validation(self, service, fake_broker):
        """Matching declared attributes allow reuse."""
        fake_broker.add_exchange("shared", type="topic")
        rendered = _config(
            exchanges=[{"name": "shared", "reuseIfExists": True, "validateIfExists": {"type": "topic"}}],
            queues=[{"name": "q"}],
        )

        result = await service.create_system(rendered, "t", "1", {})

        assert result.reused_exchanges == ["shared"]
        assert result.created_queues == ["q"]

    async def test_failure_leaves_partial_state(self, service, fake_broker, logger):
        """No rollback: earlier resources stay and the failure is logged."""
        fake_broker.add_queue("taken")
        rendered = _config(
            exchanges=[{"name": "e"}],
            queues=[{"name": "fresh"}, {"name": "taken"}],
        )

        with pytest.raises(ResourceConflictError):
            await service.create_system(rendered, "t", "1", {})

        assert ("/", "e") in fake_broker.exchanges
        assert ("/", "fresh") in fake_broker.queues
        logger.error.assert_called_once()

    async def test_gateway_errors_propagate(self, service, fake_broker):
        """Lookup failures other than not-found are fatal."""

        async def broken(vhost, name):
            raise RequestFailedError("/exchanges", 503, "Service Unavailable")

        fake_broker.get_exchange = broken

        with pytest.raises(RequestFailedError):
            await service.create_system(_config(exchanges=[{"name": "e"}], queues=[{"name": "q"}]), "t", "1", {})


@pytest.mark.unit
class TestFindMismatches:
    """Attribute comparison for validated reuse."""

    def test_unknown_attribute_is_a_mismatch(self):
        """Declared keys the resource lacks never match."""
        assert find_mismatches(Queue(name="q"), {"exclusive": True}) == [
            "exclusive: expected true, actual null"
        ]

    def test_missing_argument(self):
        """Argument keys are compared one by one."""
        queue = Queue(name="q", arguments={"a": 1})

        assert find_mismatches(queue, {"arguments": {"a": 1, "b": "x"}}) == ['b: expected "x", actual null']
