"""RabbitMQ provider exceptions."""

from rmq_manage.providers.rabbitmq.exceptions.rabbitmq_exceptions import (
    AuthorizationError,
    GatewayError,
    MalformedResponseError,
    RequestFailedError,
    ResourceNotFoundError,
    UnauthenticatedError,
)

__all__: list[str] = [
    "AuthorizationError",
    "GatewayError",
    "MalformedResponseError",
    "RequestFailedError",
    "ResourceNotFoundError",
    "UnauthenticatedError",
]
