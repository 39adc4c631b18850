"""Discovery of system credentials stored in credential-registry bindings."""

from rmq_manage.application.services.teardown_service import TeardownService
from rmq_manage.domain.base.ports.broker_port import BrokerPort
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.credential.value_objects import (
    Credential,
    CredentialKind,
    SystemCredentials,
)
from rmq_manage.domain.system.value_objects import (
    CREATED_AT_KEY,
    CREDENTIAL_TYPE_KEY,
    PASSWORD_KEY,
    USERNAME_KEY,
    utc_timestamp,
)

DEFAULT_CREDENTIAL_EXCHANGE = ".manage.credentials"


class CredentialService:
    """Reads primary and secondary credentials issued to a system.

    Credentials live in the arguments of bindings from the credential-registry
    exchange; a binding belongs to a system when its destination is one of the
    system's queues or exchanges.
    """

    def __init__(
        self,
        broker: BrokerPort,
        teardown_service: TeardownService,
        logger: LoggingPort,
        credential_exchange: str = DEFAULT_CREDENTIAL_EXCHANGE,
    ) -> None:
        self._broker = broker
        self._systems = teardown_service
        self._logger = logger
        self._credential_exchange = credential_exchange

    async def get_system_credentials(self, vhost: str, system_id: str) -> SystemCredentials:
        resources = await self._systems.get_system_resources(vhost, system_id)
        resource_names = resources.resource_names
        bindings = await self._broker.list_bindings(vhost)

        credentials = SystemCredentials()
        for binding in bindings:
            if binding.source != self._credential_exchange:
                continue
            if binding.destination not in resource_names:
                continue

            args = binding.arguments or {}
            username = args.get(USERNAME_KEY)
            password = args.get(PASSWORD_KEY)
            kind = args.get(CREDENTIAL_TYPE_KEY)
            if not username or not password or kind not in {k.value for k in CredentialKind}:
                self._logger.warning(
                    "Skipping invalid credential binding %s -> %s",
                    binding.source,
                    binding.destination,
                )
                continue

            credential = Credential(
                username=str(username),
                password=str(password),
                created_at=args.get(CREATED_AT_KEY) or utc_timestamp(),
                kind=CredentialKind(kind),
            )
            if credential.kind is CredentialKind.PRIMARY:
                credentials.primary = credential
            else:
                credentials.secondary = credential

        return credentials
