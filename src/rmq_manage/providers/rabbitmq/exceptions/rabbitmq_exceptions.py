"""RabbitMQ management API exceptions."""

from typing import Any, Optional

from rmq_manage.domain.base.exceptions import InfrastructureError


class GatewayError(InfrastructureError):
    """Base class for broker gateway failures."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, error_code=error_code or "GATEWAY_ERROR", details=details)


class UnauthenticatedError(GatewayError):
    """Raised when a call is made before credentials are set."""

    def __init__(self) -> None:
        super().__init__(
            "No credentials set; call set_credentials() first",
            error_code="UNAUTHENTICATED",
        )


class AuthorizationError(GatewayError):
    """Raised when the broker rejects the credentials (HTTP 401)."""

    def __init__(self, endpoint: str) -> None:
        super().__init__(
            "Authentication failed: invalid username or password",
            error_code="UNAUTHORIZED",
            details={"endpoint": endpoint, "status_code": 401},
        )


class ResourceNotFoundError(GatewayError):
    """Raised when the requested broker resource does not exist (HTTP 404)."""

    def __init__(self, endpoint: str) -> None:
        super().__init__(
            f"Resource not found: {endpoint}",
            error_code="NOT_FOUND",
            details={"endpoint": endpoint, "status_code": 404},
        )
        self.endpoint = endpoint


class RequestFailedError(GatewayError):
    """Raised for any other non-2xx response."""

    def __init__(self, endpoint: str, status_code: int, reason: str = "") -> None:
        super().__init__(
            f"API request failed: {status_code} {reason}".rstrip(),
            error_code="REQUEST_FAILED",
            details={"endpoint": endpoint, "status_code": status_code, "reason": reason},
        )
        self.status_code = status_code


class MalformedResponseError(GatewayError):
    """Raised when a JSON response body cannot be decoded."""

    def __init__(self, endpoint: str, body: str) -> None:
        super().__init__(
            "Broker returned a malformed response",
            error_code="MALFORMED_RESPONSE",
            details={"endpoint": endpoint, "body": body[:500]},
        )
