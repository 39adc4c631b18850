"""Domain ports."""

from rmq_manage.domain.base.ports.broker_port import BrokerPort
from rmq_manage.domain.base.ports.logging_port import LoggingPort

__all__: list[str] = ["BrokerPort", "LoggingPort"]
