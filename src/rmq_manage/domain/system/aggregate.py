"""Managed system views and lifecycle reports.

None of these are persisted: they are reconstructed from resource arguments on
the broker, or returned as the outcome of a lifecycle operation.
"""

from typing import Optional

from pydantic import BaseModel, Field

from rmq_manage.domain.broker.resources import Exchange, Queue
from rmq_manage.domain.system.value_objects import RemovalReason


class ManagedSystem(BaseModel):
    """Summary of a system discovered from tagged queues."""

    system_id: str
    template: str
    version: str = "unknown"
    created_at: str = ""
    queue_count: int = 0
    exchange_count: int = 0


class SystemResources(BaseModel):
    """Queues and exchanges tagged with one system id."""

    queues: list[Queue] = Field(default_factory=list)
    exchanges: list[Exchange] = Field(default_factory=list)

    @property
    def resource_names(self) -> set[str]:
        return {q.name for q in self.queues} | {e.name for e in self.exchanges}


class RemainingExchange(BaseModel):
    """An exchange teardown could not delete, and why."""

    name: str
    reason: RemovalReason
    binding_count: int
    is_managed: bool
    created_by: Optional[str] = None


class DeletionReport(BaseModel):
    """Outcome of a system teardown."""

    deleted_queues: list[str] = Field(default_factory=list)
    deleted_exchanges: list[str] = Field(default_factory=list)
    remaining_exchanges: list[RemainingExchange] = Field(default_factory=list)
    converged: bool = True


class ForceDeleteResult(BaseModel):
    """Outcome of a best-effort exchange cleanup."""

    deleted: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)


class ProvisioningResult(BaseModel):
    """What a provisioning run created or adopted."""

    system_id: str
    vhost: str
    created_exchanges: list[str] = Field(default_factory=list)
    reused_exchanges: list[str] = Field(default_factory=list)
    created_queues: list[str] = Field(default_factory=list)
    reused_queues: list[str] = Field(default_factory=list)
    bindings_created: int = 0


class SystemSnapshot(BaseModel):
    """Point-in-time queue details for a system."""

    timestamp: int
    queues: list[Queue] = Field(default_factory=list)
