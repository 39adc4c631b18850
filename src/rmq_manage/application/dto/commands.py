"""Command DTOs for application layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateSystemCommand(BaseModel):
    """Command to provision a system from a template."""

    model_config = ConfigDict(frozen=True)

    template_name: str
    values: dict[str, Any] = Field(default_factory=dict)


class DeleteSystemCommand(BaseModel):
    """Command to tear down a system."""

    model_config = ConfigDict(frozen=True)

    vhost: str
    system_id: str


class ForceDeleteExchangesCommand(BaseModel):
    """Command to delete exchanges regardless of their bindings."""

    model_config = ConfigDict(frozen=True)

    vhost: str
    exchange_names: list[str]
