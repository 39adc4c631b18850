"""Global test configuration and fixtures."""

from unittest.mock import Mock

import pytest

from rmq_manage.application.services.template_service import TemplateService
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from tests.fixtures.fake_broker import FakeBroker


@pytest.fixture(autouse=True)
def quiet_console(monkeypatch):
    """Keep Rich status lines out of captured output unless a test opts in."""
    monkeypatch.setenv("RMQ_MANAGE_CONSOLE_ENABLED", "false")


@pytest.fixture
def logger():
    """Mock logger implementing the LoggingPort surface."""
    return Mock(spec=LoggingPort)


@pytest.fixture
def fake_broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def template_service(logger) -> TemplateService:
    return TemplateService(logger)


@pytest.fixture
def minimal_template_data() -> dict:
    """Smallest document that parses, with one parameter of each kind."""
    return {
        "template": {
            "name": "demo",
            "version": "1.0.0",
            "description": "Demo system",
            "tags": ["demo"],
        },
        "parameters": [
            {"name": "vhost", "label": "Vhost", "type": "string", "required": True, "default": "/"},
            {"name": "queue_prefix", "label": "Prefix", "type": "string", "required": True},
            {
                "name": "ttl",
                "label": "TTL",
                "type": "number",
                "required": False,
                "default": 5000,
                "validation": {"min": 1000, "max": 60000},
            },
            {"name": "durable", "label": "Durable", "type": "boolean", "required": False, "default": True},
        ],
        "exchanges": [{"name": "${queue_prefix}.events", "type": "topic", "durable": "${durable}"}],
        "queues": [
            {
                "name": "${queue_prefix}.work",
                "durable": "${durable}",
                "arguments": {"x-message-ttl": "${ttl}", "x-label": "ttl-${ttl}"},
            }
        ],
        "bindings": [
            {
                "source": "${queue_prefix}.events",
                "destination": "${queue_prefix}.work",
                "routing_key": "work.#",
            }
        ],
    }
