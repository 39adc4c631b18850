"""Query handlers for systems and templates."""

from rmq_manage.application.base.handlers import BaseQueryHandler
from rmq_manage.application.dto.queries import (
    GetSystemCredentialsQuery,
    GetSystemResourcesQuery,
    GetSystemSnapshotQuery,
    GetTemplateQuery,
    ListManagedSystemsQuery,
    ListTemplatesQuery,
)
from rmq_manage.application.services.credential_service import CredentialService
from rmq_manage.application.services.teardown_service import TeardownService
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.credential.value_objects import SystemCredentials
from rmq_manage.domain.system.aggregate import ManagedSystem, SystemResources, SystemSnapshot
from rmq_manage.domain.template.template_aggregate import Template
from rmq_manage.infrastructure.template.template_registry import TemplateRegistry


class ListManagedSystemsHandler(BaseQueryHandler[ListManagedSystemsQuery, list[ManagedSystem]]):
    def __init__(self, teardown_service: TeardownService, logger: LoggingPort) -> None:
        super().__init__(logger)
        self._teardown_service = teardown_service

    async def execute_query(self, query: ListManagedSystemsQuery) -> list[ManagedSystem]:
        return await self._teardown_service.list_managed_systems(query.vhost)


class GetSystemResourcesHandler(BaseQueryHandler[GetSystemResourcesQuery, SystemResources]):
    def __init__(self, teardown_service: TeardownService, logger: LoggingPort) -> None:
        super().__init__(logger)
        self._teardown_service = teardown_service

    async def execute_query(self, query: GetSystemResourcesQuery) -> SystemResources:
        return await self._teardown_service.get_system_resources(query.vhost, query.system_id)


class GetSystemSnapshotHandler(BaseQueryHandler[GetSystemSnapshotQuery, SystemSnapshot]):
    def __init__(self, teardown_service: TeardownService, logger: LoggingPort) -> None:
        super().__init__(logger)
        self._teardown_service = teardown_service

    async def execute_query(self, query: GetSystemSnapshotQuery) -> SystemSnapshot:
        return await self._teardown_service.get_system_snapshot(query.vhost, query.system_id)


class GetSystemCredentialsHandler(
    BaseQueryHandler[GetSystemCredentialsQuery, SystemCredentials]
):
    def __init__(self, credential_service: CredentialService, logger: LoggingPort) -> None:
        super().__init__(logger)
        self._credential_service = credential_service

    async def execute_query(self, query: GetSystemCredentialsQuery) -> SystemCredentials:
        return await self._credential_service.get_system_credentials(query.vhost, query.system_id)


class ListTemplatesHandler(BaseQueryHandler[ListTemplatesQuery, list[Template]]):
    """Lists templates; tag and search filters combine."""

    def __init__(self, registry: TemplateRegistry, logger: LoggingPort) -> None:
        super().__init__(logger)
        self._registry = registry

    async def execute_query(self, query: ListTemplatesQuery) -> list[Template]:
        templates = self._registry.get_all()
        if query.tag:
            tagged = {t.name for t in self._registry.get_by_tag(query.tag)}
            templates = [t for t in templates if t.name in tagged]
        if query.search:
            matched = {t.name for t in self._registry.search(query.search)}
            templates = [t for t in templates if t.name in matched]
        return templates


class GetTemplateHandler(BaseQueryHandler[GetTemplateQuery, Template]):
    def __init__(self, registry: TemplateRegistry, logger: LoggingPort) -> None:
        super().__init__(logger)
        self._registry = registry

    async def execute_query(self, query: GetTemplateQuery) -> Template:
        return self._registry.get(query.template_name)
