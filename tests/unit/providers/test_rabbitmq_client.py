"""Tests for the RabbitMQ management API client."""

import asyncio
import json
from unittest.mock import Mock

import pytest
import requests

from rmq_manage.domain.broker.value_objects import DestinationType
from rmq_manage.providers.rabbitmq.exceptions import (
    AuthorizationError,
    GatewayError,
    MalformedResponseError,
    RequestFailedError,
    ResourceNotFoundError,
    UnauthenticatedError,
)
from rmq_manage.providers.rabbitmq.infrastructure.rabbitmq_client import RabbitMQClient

API_URL = "http://broker:15672/api"


def _response(status=200, body=None, text=None, content_type="application/json", reason="OK"):
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    if body is not None:
        response._content = json.dumps(body).encode()
    else:
        response._content = (text or "").encode()
    response.headers["Content-Type"] = content_type
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(session, logger):
    client = RabbitMQClient(API_URL, logger, session=session)
    client.set_credentials("guest", "secret")
    return client


def _called_url(session, index=-1):
    args, _ = session.request.call_args_list[index]
    return args[0], args[1]


@pytest.mark.unit
class TestCredentials:
    """Credential handling."""

    async def test_calls_without_credentials_fail(self, session, logger):
        """No request is sent before credentials are set."""
        client = RabbitMQClient(API_URL, logger, session=session)

        with pytest.raises(UnauthenticatedError):
            await client.list_queues("/")
        session.request.assert_not_called()

    async def test_clear_credentials(self, client, session):
        """Cleared credentials make subsequent calls fail."""
        client.clear_credentials()

        assert not client.has_credentials()
        assert client.get_credentials() is None
        with pytest.raises(UnauthenticatedError):
            await client.list_exchanges("/")

    async def test_basic_auth_sent_per_request(self, client, session):
        """Credentials travel as basic auth on each request."""
        session.request.return_value = _response(body=[])

        await client.list_queues("/")

        _, kwargs = session.request.call_args
        assert kwargs["auth"] == ("guest", "secret")
        assert client.username == "guest"
        assert client.get_credentials() == ("guest", "secret")


@pytest.mark.unit
class TestErrorMapping:
    """HTTP status and body handling."""

    async def test_unauthorized(self, client, session):
        """401 reports a credential failure, not a generic error."""
        session.request.return_value = _response(401, text="", reason="Unauthorized")

        with pytest.raises(AuthorizationError, match="invalid username or password"):
            await client.list_queues("/")

    async def test_not_found(self, client, session):
        """404 maps to ResourceNotFoundError."""
        session.request.return_value = _response(404, body={"error": "Object Not Found"})

        with pytest.raises(ResourceNotFoundError):
            await client.get_exchange("/", "missing")

    async def test_other_failure_keeps_status(self, client, session):
        """Other non-2xx statuses carry the status code."""
        session.request.return_value = _response(500, text="boom", reason="Internal Server Error")

        with pytest.raises(RequestFailedError) as exc_info:
            await client.delete_queue("/", "q")

        assert exc_info.value.status_code == 500

    async def test_malformed_json(self, client, session):
        """A JSON response that does not decode is MalformedResponseError."""
        session.request.return_value = _response(text="{not json")

        with pytest.raises(MalformedResponseError):
            await client.list_bindings("/")

    async def test_transport_failure(self, client, session):
        """requests exceptions surface as GatewayError."""
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(GatewayError, match="Network request failed"):
            await client.list_queues("/")

    async def test_no_decode_for_no_content(self, client, session):
        """PUT/DELETE and 201/204 responses are never parsed."""
        session.request.return_value = _response(201, text="not json")
        assert await client.create_binding("/", "e", "q") is None

        session.request.return_value = _response(204, text="")
        assert await client.delete_exchange("/", "e") is None

    async def test_non_json_body_is_none(self, client, session):
        """Bodies not declared as JSON decode to None."""
        session.request.return_value = _response(text="hello", content_type="text/plain")

        assert await client.list_queues("/") == []


@pytest.mark.unit
class TestEndpoints:
    """URL construction and payloads."""

    async def test_vhost_is_percent_encoded(self, client, session):
        """The default vhost "/" becomes %2F."""
        session.request.return_value = _response(body=[])

        await client.list_exchanges("/")

        assert _called_url(session) == ("GET", f"{API_URL}/exchanges/%2F")

    async def test_get_queue_parses_model(self, client, session):
        """Queue details are parsed, ignoring unknown fields."""
        session.request.return_value = _response(
            body={"name": "a b", "vhost": "/", "durable": False, "messages": 3, "node": "rabbit@x"}
        )

        queue = await client.get_queue("/", "a b")

        assert _called_url(session) == ("GET", f"{API_URL}/queues/%2F/a%20b")
        assert queue.name == "a b"
        assert queue.messages == 3
        assert queue.durable is False

    async def test_create_exchange_payload(self, client, session):
        """Exchanges are PUT with type, flags and arguments."""
        session.request.return_value = _response(201)

        await client.create_exchange("v1", "orders.retry", "topic", arguments={"k": "v"})

        assert _called_url(session) == ("PUT", f"{API_URL}/exchanges/v1/orders.retry")
        assert session.request.call_args.kwargs["json"] == {
            "type": "topic",
            "durable": True,
            "auto_delete": False,
            "internal": False,
            "arguments": {"k": "v"},
        }

    async def test_create_binding_path(self, client, session):
        """Exchange-to-exchange bindings use the "e" destination segment."""
        session.request.return_value = _response(201)

        await client.create_binding(
            "/", "src", "dst", DestinationType.EXCHANGE, routing_key="rk", arguments={"a": 1}
        )

        assert _called_url(session) == ("POST", f"{API_URL}/bindings/%2F/e/src/e/dst")
        assert session.request.call_args.kwargs["json"] == {"routing_key": "rk", "arguments": {"a": 1}}

    async def test_purge_queue(self, client, session):
        """Purging deletes the queue contents resource."""
        session.request.return_value = _response(204)

        await client.purge_queue("/", "q")

        assert _called_url(session) == ("DELETE", f"{API_URL}/queues/%2F/q/contents")


@pytest.mark.unit
class TestVhostCache:
    """Cached, single-flight vhost listing."""

    async def test_concurrent_callers_share_one_request(self, client, session):
        """N concurrent callers issue one HTTP request."""
        session.request.return_value = _response(body=[{"name": "/"}, {"name": "prod"}])

        results = await asyncio.gather(*(client.list_vhosts() for _ in range(5)))

        assert session.request.call_count == 1
        assert all([v.name for v in r] == ["/", "prod"] for r in results)

    async def test_cache_reused_until_credentials_change(self, client, session):
        """set_credentials invalidates the cache."""
        session.request.return_value = _response(body=[{"name": "/"}])

        await client.list_vhosts()
        await client.list_vhosts()
        assert session.request.call_count == 1

        client.set_credentials("admin", "other")
        await client.list_vhosts()
        assert session.request.call_count == 2

    async def test_failure_reaches_every_waiter_and_is_not_cached(self, client, session):
        """A failed fetch propagates to all waiters and the next call retries."""
        session.request.side_effect = requests.ConnectionError("down")

        results = await asyncio.gather(
            *(client.list_vhosts() for _ in range(3)), return_exceptions=True
        )

        assert session.request.call_count == 1
        assert all(isinstance(r, GatewayError) for r in results)

        session.request.side_effect = None
        session.request.return_value = _response(body=[{"name": "/"}])
        vhosts = await client.list_vhosts()
        assert [v.name for v in vhosts] == ["/"]
        assert session.request.call_count == 2

    async def test_cleared_credentials_drop_cached_vhosts(self, client, session):
        """After clear_credentials the cached list is not served."""
        session.request.return_value = _response(body=[{"name": "/"}, {"name": "tenant-a"}])
        await client.list_vhosts()

        client.clear_credentials()

        with pytest.raises(UnauthenticatedError):
            await client.list_vhosts()
        assert session.request.call_count == 1
