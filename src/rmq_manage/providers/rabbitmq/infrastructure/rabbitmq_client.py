"""RabbitMQ management API client.

Credentials are held in process memory only and are never persisted.
"""

import asyncio
from typing import Any, Optional
from urllib.parse import quote

import requests

from rmq_manage.domain.base.ports.broker_port import BrokerPort
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.broker.resources import Binding, Exchange, Queue, VHost
from rmq_manage.domain.broker.value_objects import DestinationType
from rmq_manage.providers.rabbitmq.exceptions.rabbitmq_exceptions import (
    AuthorizationError,
    GatewayError,
    MalformedResponseError,
    RequestFailedError,
    ResourceNotFoundError,
    UnauthenticatedError,
)

# Responses to these are never decoded, whatever their content type.
_NO_CONTENT_STATUSES = (201, 204)
_NO_CONTENT_METHODS = ("PUT", "DELETE")


def _segment(value: str) -> str:
    """Encode a single path segment; "/" in vhost names must become %2F."""
    return quote(value, safe="")


class RabbitMQClient(BrokerPort):
    """Async wrapper around the RabbitMQ management REST API."""

    def __init__(
        self,
        api_url: str,
        logger: LoggingPort,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_url: Management API base URL, e.g. http://localhost:15672/api
            logger: Logger for request tracing
            session: Optional requests session (connection pooling, testing)
            timeout: Per-request timeout in seconds; None leaves the transport default
        """
        self._base_url = api_url.rstrip("/")
        self._logger = logger
        self._session = session or requests.Session()
        self._timeout = timeout
        self._username = ""
        self._password = ""

        self._vhosts_cache: Optional[list[VHost]] = None
        self._vhosts_inflight: Optional[asyncio.Future] = None
        self._cache_generation = 0

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def set_credentials(self, username: str, password: str) -> None:
        """Replace credentials and invalidate every cache."""
        self._username = username
        self._password = password
        self.clear_cache()

    def clear_credentials(self) -> None:
        """Unset credentials and invalidate every cache."""
        self._username = ""
        self._password = ""
        self.clear_cache()

    def has_credentials(self) -> bool:
        return bool(self._username) and bool(self._password)

    @property
    def username(self) -> str:
        return self._username

    def get_credentials(self) -> Optional[tuple[str, str]]:
        """Current (username, password) pair, or None when unset."""
        if not self.has_credentials():
            return None
        return self._username, self._password

    def clear_cache(self) -> None:
        """Drop the vhost cache and detach any in-flight fetch."""
        self._vhosts_cache = None
        self._vhosts_inflight = None
        self._cache_generation += 1

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, endpoint: str, body: Optional[dict[str, Any]] = None) -> Any:
        if not self.has_credentials():
            raise UnauthenticatedError()
        auth = (self._username, self._password)
        return await asyncio.to_thread(self._send, method, endpoint, body, auth)

    def _send(
        self,
        method: str,
        endpoint: str,
        body: Optional[dict[str, Any]],
        auth: tuple[str, str],
    ) -> Any:
        url = f"{self._base_url}{endpoint}"
        self._logger.debug("%s %s", method, endpoint)

        try:
            response = self._session.request(
                method,
                url,
                auth=auth,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise GatewayError(
                f"Network request failed: {e}", details={"endpoint": endpoint}
            ) from e

        if response.status_code == 401:
            raise AuthorizationError(endpoint)
        if response.status_code == 404:
            raise ResourceNotFoundError(endpoint)
        if not 200 <= response.status_code < 300:
            raise RequestFailedError(endpoint, response.status_code, response.reason or "")

        if response.status_code in _NO_CONTENT_STATUSES or method in _NO_CONTENT_METHODS:
            return None

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return None
        text = response.text
        if not text:
            return None
        try:
            return response.json()
        except ValueError as e:
            self._logger.error("Failed to decode JSON from %s", endpoint)
            raise MalformedResponseError(endpoint, text) from e

    # ------------------------------------------------------------------
    # Virtual hosts
    # ------------------------------------------------------------------

    async def get_overview(self) -> dict[str, Any]:
        """Cluster overview; used to verify credentials."""
        return await self._request("GET", "/overview") or {}

    async def list_vhosts(self) -> list[VHost]:
        """
        List virtual hosts, cached until credentials change.

        Concurrent callers share a single in-flight fetch.
        """
        if self._vhosts_cache is not None:
            return list(self._vhosts_cache)

        if self._vhosts_inflight is None:
            task = asyncio.ensure_future(self._fetch_vhosts(self._cache_generation))
            task.add_done_callback(self._clear_inflight)
            self._vhosts_inflight = task

        vhosts = await asyncio.shield(self._vhosts_inflight)
        return list(vhosts)

    async def _fetch_vhosts(self, generation: int) -> list[VHost]:
        data = await self._request("GET", "/vhosts")
        vhosts = [VHost.model_validate(item) for item in data or []]
        if generation == self._cache_generation:
            self._vhosts_cache = vhosts
        return vhosts

    def _clear_inflight(self, task: asyncio.Future) -> None:
        if self._vhosts_inflight is task:
            self._vhosts_inflight = None

    # ------------------------------------------------------------------
    # Queues
    # ------------------------------------------------------------------

    async def list_queues(self, vhost: str) -> list[Queue]:
        data = await self._request("GET", f"/queues/{_segment(vhost)}")
        return [Queue.model_validate(item) for item in data or []]

    async def get_queue(self, vhost: str, name: str) -> Queue:
        data = await self._request("GET", f"/queues/{_segment(vhost)}/{_segment(name)}")
        if data is None:
            raise MalformedResponseError(f"/queues/{vhost}/{name}", "")
        return Queue.model_validate(data)

    async def create_queue(
        self,
        vhost: str,
        name: str,
        durable: bool = True,
        auto_delete: bool = False,
        arguments: Optional[dict[str, Any]] = None,
    ) -> None:
        body = {"durable": durable, "auto_delete": auto_delete, "arguments": arguments or {}}
        await self._request("PUT", f"/queues/{_segment(vhost)}/{_segment(name)}", body)

    async def delete_queue(self, vhost: str, name: str) -> None:
        await self._request("DELETE", f"/queues/{_segment(vhost)}/{_segment(name)}")

    async def purge_queue(self, vhost: str, name: str) -> None:
        await self._request("DELETE", f"/queues/{_segment(vhost)}/{_segment(name)}/contents")

    # ------------------------------------------------------------------
    # Exchanges
    # ------------------------------------------------------------------

    async def list_exchanges(self, vhost: str) -> list[Exchange]:
        data = await self._request("GET", f"/exchanges/{_segment(vhost)}")
        return [Exchange.model_validate(item) for item in data or []]

    async def get_exchange(self, vhost: str, name: str) -> Exchange:
        data = await self._request("GET", f"/exchanges/{_segment(vhost)}/{_segment(name)}")
        if data is None:
            raise MalformedResponseError(f"/exchanges/{vhost}/{name}", "")
        return Exchange.model_validate(data)

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
        body = {
            "type": exchange_type,
            "durable": durable,
            "auto_delete": auto_delete,
            "internal": internal,
            "arguments": arguments or {},
        }
        await self._request("PUT", f"/exchanges/{_segment(vhost)}/{_segment(name)}", body)

    async def delete_exchange(self, vhost: str, name: str) -> None:
        await self._request("DELETE", f"/exchanges/{_segment(vhost)}/{_segment(name)}")

    # ------------------------------------------------------------------
    # Bindings
    # ------------------------------------------------------------------

    async def list_bindings(self, vhost: str) -> list[Binding]:
        data = await self._request("GET", f"/bindings/{_segment(vhost)}")
        return [Binding.model_validate(item) for item in data or []]

    async def create_binding(
        self,
        vhost: str,
        source: str,
        destination: str,
        destination_type: DestinationType = DestinationType.QUEUE,
        routing_key: str = "",
        arguments: Optional[dict[str, Any]] = None,
    ) -> None:
        destination_type = DestinationType(destination_type)
        endpoint = (
            f"/bindings/{_segment(vhost)}/e/{_segment(source)}"
            f"/{destination_type.path_segment}/{_segment(destination)}"
        )
        body = {"routing_key": routing_key, "arguments": arguments or {}}
        await self._request("POST", endpoint, body)
