"""Domain exception hierarchy."""

from typing import Any, Optional


class DomainException(Exception):
    """Base class for all domain exceptions."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a serialisable dictionary."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DomainException):
    """Raised when application configuration is invalid."""


class InfrastructureError(DomainException):
    """Raised when an infrastructure collaborator fails."""


class MalformedTemplateError(DomainException):
    """Raised when a template fails structural validation."""

    def __init__(self, message: str, cause: Optional[str] = None) -> None:
        super().__init__(
            message,
            error_code="MALFORMED_TEMPLATE",
            details={"cause": cause} if cause else None,
        )


class TemplateNotFoundError(DomainException):
    """Raised when a template name is not registered."""

    def __init__(self, template_name: str) -> None:
        super().__init__(
            f"Template not found: {template_name}",
            error_code="TEMPLATE_NOT_FOUND",
            details={"template_name": template_name},
        )
        self.template_name = template_name


class TemplateRegistryError(DomainException):
    """Raised when a template registry operation is not allowed."""


class ParameterValidationFailedError(DomainException):
    """Raised when parameter values fail template validation.

    Carries the per-field validation errors so callers can display them.
    """

    def __init__(self, errors: list) -> None:
        fields = ", ".join(error.field for error in errors)
        super().__init__(
            f"Parameter validation failed for: {fields}",
            error_code="PARAMETER_VALIDATION_FAILED",
            details={"errors": [error.model_dump() for error in errors]},
        )
        self.errors = errors


class ResourceConflictError(DomainException):
    """Raised when an existing broker resource violates the reuse policy."""

    def __init__(
        self,
        resource_kind: str,
        name: str,
        mismatches: Optional[list[str]] = None,
    ) -> None:
        mismatches = mismatches or []
        if mismatches:
            message = f'{resource_kind} "{name}" already exists but does not match:\n' + "\n".join(
                mismatches
            )
        else:
            message = f'{resource_kind} "{name}" already exists'
        super().__init__(
            message,
            error_code="RESOURCE_CONFLICT",
            details={"resource_kind": resource_kind, "name": name, "mismatches": mismatches},
        )
        self.resource_kind = resource_kind
        self.name = name
        self.mismatches = mismatches
