"""Template value objects."""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ParameterKind(str, Enum):
    """Supported parameter kinds."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    COMBOBOX = "combobox"


class DynamicResourceKind(str, Enum):
    """Broker collections a parameter can draw its options from."""

    VHOSTS = "vhosts"
    EXCHANGES = "exchanges"
    QUEUES = "queues"


class ResourceFilter(BaseModel):
    """Attribute filter applied to dynamically loaded resources."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Optional[str] = None
    durable: Optional[bool] = None
    auto_delete: Optional[bool] = None
    arguments: Optional[dict[str, Any]] = None


class ParameterValidation(BaseModel):
    """Validation rules for a parameter value."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    allowed_values: Optional[list[Any]] = Field(
        default=None,
        validation_alias=AliasChoices("enum", "allowed_values", "allowedValues"),
    )


class DynamicDataSource(BaseModel):
    """Where a parameter's selectable options come from."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    resource_kind: DynamicResourceKind = Field(
        validation_alias=AliasChoices("type", "resource_kind", "resourceKind"),
    )
    depends_on: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("dependsOn", "depends_on", "dependsOnParameter"),
    )
    filter: Optional[ResourceFilter] = None


class TemplateValidationError(BaseModel):
    """A single non-fatal, field-keyed parameter validation failure."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ParameterOption(BaseModel):
    """A selectable value for a dynamic parameter."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str
