"""Template aggregate and resource specifications.

A ``Template`` holds its exchange, queue and binding sections as raw
blueprints: any field may still carry a ``${param}`` placeholder, so typing is
only enforced once the blueprint has been rendered into the specs below.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from rmq_manage.domain.broker.value_objects import DestinationType, ExchangeType
from rmq_manage.domain.template.value_objects import (
    DynamicDataSource,
    ParameterKind,
    ParameterValidation,
)


class TemplateMetadata(BaseModel):
    """Descriptive template header."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    version: str
    description: str
    author: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    icon: Optional[str] = None


class TemplateParameter(BaseModel):
    """A user-supplied value referenced from the template body."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    label: str
    kind: ParameterKind = Field(validation_alias=AliasChoices("type", "kind"))
    required: bool
    default: Any = None
    description: Optional[str] = None
    validation: Optional[ParameterValidation] = None
    dynamic_source: Optional[DynamicDataSource] = Field(
        default=None,
        validation_alias=AliasChoices("dataSource", "dynamic_source", "dynamicSource"),
    )

    @property
    def has_default(self) -> bool:
        return self.default is not None


class ResourceSpec(BaseModel):
    """Fields shared by rendered exchange and queue specs."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    durable: bool = True
    auto_delete: bool = False
    arguments: dict[str, Any] = Field(default_factory=dict)
    reuse_if_exists: bool = Field(
        default=False,
        validation_alias=AliasChoices("reuseIfExists", "reuse_if_exists"),
    )
    validate_if_exists: Optional[dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("validateIfExists", "validate_if_exists"),
    )


class ExchangeSpec(ResourceSpec):
    """Rendered exchange definition."""

    type: ExchangeType = ExchangeType.DIRECT
    internal: bool = False


class QueueSpec(ResourceSpec):
    """Rendered queue definition."""

    vhost: Optional[str] = None


class BindingSpec(BaseModel):
    """Rendered binding definition."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source: str
    destination: str
    destination_type: DestinationType = Field(
        default=DestinationType.QUEUE,
        validation_alias=AliasChoices("destination_type", "destinationType", "destinationKind"),
    )
    routing_key: str = Field(
        default="",
        validation_alias=AliasChoices("routing_key", "routingKey"),
    )
    arguments: dict[str, Any] = Field(default_factory=dict)


class RenderedSystemConfig(BaseModel):
    """Fully substituted resource set ready for provisioning."""

    vhost: Optional[str] = None
    exchanges: list[ExchangeSpec] = Field(default_factory=list)
    queues: list[QueueSpec] = Field(default_factory=list)
    bindings: list[BindingSpec] = Field(default_factory=list)


class Template(BaseModel):
    """Parsed, immutable resource template."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    metadata: TemplateMetadata = Field(validation_alias=AliasChoices("template", "metadata"))
    parameters: list[TemplateParameter]
    exchanges: list[dict[str, Any]] = Field(default_factory=list)
    queues: list[dict[str, Any]]
    bindings: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def version(self) -> str:
        return self.metadata.version

    def get_parameter(self, name: str) -> Optional[TemplateParameter]:
        """Return the parameter with the given name, if declared."""
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        return None
