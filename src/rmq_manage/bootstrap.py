"""Wires configuration, gateway, services and handlers together."""

from pathlib import Path
from typing import Optional

import requests

from rmq_manage.application.commands.system_handlers import (
    CreateSystemHandler,
    DeleteSystemHandler,
    ForceDeleteExchangesHandler,
)
from rmq_manage.application.queries.system_handlers import (
    GetSystemCredentialsHandler,
    GetSystemResourcesHandler,
    GetSystemSnapshotHandler,
    GetTemplateHandler,
    ListManagedSystemsHandler,
    ListTemplatesHandler,
)
from rmq_manage.application.services.credential_service import CredentialService
from rmq_manage.application.services.parameter_options_service import ParameterOptionsService
from rmq_manage.application.services.provisioning_service import ProvisioningService
from rmq_manage.application.services.teardown_service import TeardownService
from rmq_manage.application.services.template_service import TemplateService
from rmq_manage.config.platform_dirs import get_builtin_templates_location
from rmq_manage.config.schemas.app_schema import AppConfig
from rmq_manage.domain.base.ports.broker_port import BrokerPort
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.infrastructure.adapters.logging_adapter import LoggingAdapter
from rmq_manage.infrastructure.template.template_registry import TemplateRegistry
from rmq_manage.infrastructure.template.yaml_template_loader import YAMLTemplateLoader
from rmq_manage.providers.rabbitmq.infrastructure.rabbitmq_client import RabbitMQClient


class Application:
    """Holds one configured instance of every service for a CLI invocation.

    The broker gateway is created here and passed to each service; nothing
    is shared through module-level state.
    """

    def __init__(
        self,
        config: AppConfig,
        broker: Optional[BrokerPort] = None,
        logger: Optional[LoggingPort] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.logger = logger or LoggingAdapter()

        if broker is None:
            client = RabbitMQClient(
                config.broker.api_url,
                self.logger,
                session=session,
                timeout=config.broker.request_timeout,
            )
            if config.broker.username and config.broker.password:
                client.set_credentials(config.broker.username, config.broker.password)
            broker = client
        self.broker = broker

        self.template_service = TemplateService(self.logger)
        extra_dir = Path(config.templates.extra_dir) if config.templates.extra_dir else None
        self.template_registry = TemplateRegistry(
            YAMLTemplateLoader(
                self.template_service,
                self.logger,
                builtin_dir=get_builtin_templates_location(),
                extra_dir=extra_dir,
            ),
            self.logger,
        )

        self.provisioning_service = ProvisioningService(self.broker, self.logger)
        self.teardown_service = TeardownService(
            self.broker, self.logger, config.broker.reserved_exchange_prefixes
        )
        self.credential_service = CredentialService(
            self.broker,
            self.teardown_service,
            self.logger,
            credential_exchange=config.broker.credential_exchange,
        )
        self.parameter_options_service = ParameterOptionsService(self.broker, self.logger)

        self.create_system_handler = CreateSystemHandler(
            self.template_registry, self.template_service, self.provisioning_service, self.logger
        )
        self.delete_system_handler = DeleteSystemHandler(self.teardown_service, self.logger)
        self.force_delete_handler = ForceDeleteExchangesHandler(self.teardown_service, self.logger)
        self.list_systems_handler = ListManagedSystemsHandler(self.teardown_service, self.logger)
        self.system_resources_handler = GetSystemResourcesHandler(
            self.teardown_service, self.logger
        )
        self.system_snapshot_handler = GetSystemSnapshotHandler(self.teardown_service, self.logger)
        self.credentials_handler = GetSystemCredentialsHandler(
            self.credential_service, self.logger
        )
        self.list_templates_handler = ListTemplatesHandler(self.template_registry, self.logger)
        self.get_template_handler = GetTemplateHandler(self.template_registry, self.logger)
