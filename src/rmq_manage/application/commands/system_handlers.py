"""Command handlers for system lifecycle operations."""

from rmq_manage.application.base.handlers import BaseCommandHandler
from rmq_manage.application.dto.commands import (
    CreateSystemCommand,
    DeleteSystemCommand,
    ForceDeleteExchangesCommand,
)
from rmq_manage.application.services.provisioning_service import ProvisioningService
from rmq_manage.application.services.teardown_service import TeardownService
from rmq_manage.application.services.template_service import TemplateService
from rmq_manage.domain.base.exceptions import ParameterValidationFailedError
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.system.aggregate import (
    DeletionReport,
    ForceDeleteResult,
    ProvisioningResult,
)
from rmq_manage.infrastructure.template.template_registry import TemplateRegistry


class CreateSystemHandler(BaseCommandHandler[CreateSystemCommand, ProvisioningResult]):
    """Handler for provisioning a system from a registered template."""

    def __init__(
        self,
        registry: TemplateRegistry,
        template_service: TemplateService,
        provisioning_service: ProvisioningService,
        logger: LoggingPort,
    ) -> None:
        super().__init__(logger)
        self._registry = registry
        self._template_service = template_service
        self._provisioning_service = provisioning_service

    async def validate_command(self, command: CreateSystemCommand) -> None:
        await super().validate_command(command)
        if not command.template_name:
            raise ValueError("template_name is required")

    async def execute_command(self, command: CreateSystemCommand) -> ProvisioningResult:
        template = self._registry.get(command.template_name)

        # Declared defaults fill in anything the caller left unset.
        values = self._template_service.default_values(template)
        values.update({k: v for k, v in command.values.items() if v is not None})

        rendered, errors = self._template_service.validate_and_render(template, values)
        if errors:
            raise ParameterValidationFailedError(errors)

        self.logger.info("Creating system from template %s v%s", template.name, template.version)
        return await self._provisioning_service.create_system(
            rendered, template.name, template.version, values
        )


class DeleteSystemHandler(BaseCommandHandler[DeleteSystemCommand, DeletionReport]):
    """Handler for tearing down a system."""

    def __init__(self, teardown_service: TeardownService, logger: LoggingPort) -> None:
        super().__init__(logger)
        self._teardown_service = teardown_service

    async def validate_command(self, command: DeleteSystemCommand) -> None:
        await super().validate_command(command)
        if not command.vhost:
            raise ValueError("vhost is required")
        if not command.system_id:
            raise ValueError("system_id is required")

    async def execute_command(self, command: DeleteSystemCommand) -> DeletionReport:
        self.logger.info("Deleting system %s on vhost %s", command.system_id, command.vhost)
        return await self._teardown_service.delete_system(command.vhost, command.system_id)


class ForceDeleteExchangesHandler(
    BaseCommandHandler[ForceDeleteExchangesCommand, ForceDeleteResult]
):
    """Handler for best-effort exchange cleanup."""

    def __init__(self, teardown_service: TeardownService, logger: LoggingPort) -> None:
        super().__init__(logger)
        self._teardown_service = teardown_service

    async def validate_command(self, command: ForceDeleteExchangesCommand) -> None:
        await super().validate_command(command)
        if not command.vhost:
            raise ValueError("vhost is required")
        if not command.exchange_names:
            raise ValueError("exchange_names must not be empty")

    async def execute_command(self, command: ForceDeleteExchangesCommand) -> ForceDeleteResult:
        return await self._teardown_service.force_delete_exchanges(
            command.vhost, command.exchange_names
        )
