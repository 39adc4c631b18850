"""Resolution of selectable options for broker-backed template parameters."""

from typing import Any

from rmq_manage.domain.base.ports.broker_port import BrokerPort
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.system.membership import matches_filter
from rmq_manage.domain.template.template_aggregate import TemplateParameter
from rmq_manage.domain.template.value_objects import DynamicResourceKind, ParameterOption


class ParameterOptionsService:
    """Loads vhosts, exchanges or queues as options for a parameter."""

    def __init__(self, broker: BrokerPort, logger: LoggingPort) -> None:
        self._broker = broker
        self._logger = logger

    async def resolve_options(
        self, parameter: TemplateParameter, values: dict[str, Any]
    ) -> list[ParameterOption]:
        """
        Options for a parameter given the values chosen so far.

        Returns an empty list when the parameter has no dynamic source or when
        the parameter it depends on has no value yet.
        """
        source = parameter.dynamic_source
        if source is None:
            return []

        vhost = ""
        if source.depends_on:
            vhost = values.get(source.depends_on) or ""
            if not vhost:
                return []

        if source.resource_kind is DynamicResourceKind.VHOSTS:
            vhosts = await self._broker.list_vhosts()
            return [
                ParameterOption(
                    value=v.name,
                    label=f"{v.name} ({v.description})" if v.description else v.name,
                )
                for v in vhosts
            ]

        if not vhost:
            self._logger.debug("Parameter %s has no vhost to load options from", parameter.name)
            return []

        if source.resource_kind is DynamicResourceKind.EXCHANGES:
            exchanges = await self._broker.list_exchanges(str(vhost))
            return [
                ParameterOption(value=e.name, label=f"{e.name} ({e.type})")
                for e in exchanges
                if e.name and matches_filter(e, source.filter)
            ]

        queues = await self._broker.list_queues(str(vhost))
        return [
            ParameterOption(value=q.name, label=q.name)
            for q in queues
            if matches_filter(q, source.filter)
        ]
