"""Query DTOs for application layer."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ListManagedSystemsQuery(BaseModel):
    """Query to list the systems on a vhost."""

    model_config = ConfigDict(frozen=True)

    vhost: str


class GetSystemResourcesQuery(BaseModel):
    """Query to get the queues and exchanges of a system."""

    model_config = ConfigDict(frozen=True)

    vhost: str
    system_id: str


class GetSystemSnapshotQuery(BaseModel):
    """Query to get detailed queue state of a system."""

    model_config = ConfigDict(frozen=True)

    vhost: str
    system_id: str


class GetSystemCredentialsQuery(BaseModel):
    """Query to get the credentials issued to a system."""

    model_config = ConfigDict(frozen=True)

    vhost: str
    system_id: str


class ListTemplatesQuery(BaseModel):
    """Query to list templates, optionally filtered by tag or search text."""

    model_config = ConfigDict(frozen=True)

    tag: str | None = None
    search: str | None = None


class GetTemplateQuery(BaseModel):
    """Query to get a single template by name."""

    model_config = ConfigDict(frozen=True)

    template_name: str
