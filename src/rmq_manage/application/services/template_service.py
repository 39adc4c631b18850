"""Template engine: parsing, parameter validation and rendering."""

import copy
import math
import re
from collections.abc import Mapping
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from rmq_manage.domain.base.exceptions import MalformedTemplateError
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.system.value_objects import VHOST_PARAMETER
from rmq_manage.domain.template.template_aggregate import (
    RenderedSystemConfig,
    Template,
    TemplateParameter,
)
from rmq_manage.domain.template.value_objects import ParameterKind, TemplateValidationError

ParameterValues = dict[str, Any]

_PLACEHOLDER = re.compile(r"\$\{([A-Za-z0-9_]+)\}")
_LONE_PLACEHOLDER = re.compile(r"^\$\{([A-Za-z0-9_]+)\}$")


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _to_number(value: Any) -> Optional[float]:
    """Numeric reading of a value, or None if it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _stringify(value: Any) -> str:
    """Text used when a placeholder is embedded in a longer string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_bound(bound: float) -> str:
    return _stringify(bound)


class TemplateService:
    """Parses templates, validates parameter values and renders resource sets."""

    def __init__(self, logger: LoggingPort) -> None:
        self._logger = logger

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, raw: Union[str, Mapping[str, Any]]) -> Template:
        """
        Parse and structurally validate a template.

        :param raw: YAML text or an already-loaded mapping.
        :return: The immutable Template.
        :raises MalformedTemplateError: If any structural check fails.
        """
        try:
            return self._parse(raw)
        except MalformedTemplateError:
            raise
        except (yaml.YAMLError, ValidationError, TypeError, ValueError) as e:
            raise MalformedTemplateError(f"Failed to parse template: {e}", cause=str(e)) from e

    def _parse(self, raw: Union[str, Mapping[str, Any]]) -> Template:
        data = yaml.safe_load(raw) if isinstance(raw, str) else raw
        if not isinstance(data, Mapping):
            self._fail("template document must be a mapping")

        metadata = data.get("template", data.get("metadata"))
        if not isinstance(metadata, Mapping):
            self._fail("missing required section: template")
        for key in ("name", "version", "description"):
            if not metadata.get(key):
                self._fail(f"missing required field: template.{key}")

        parameters = data.get("parameters")
        if not isinstance(parameters, list) or not parameters:
            self._fail("template must declare a non-empty parameters list")
        queues = data.get("queues")
        if not isinstance(queues, list) or not queues:
            self._fail("template must declare a non-empty queues list")
        exchanges = data.get("exchanges") or []
        bindings = data.get("bindings") or []
        if not isinstance(exchanges, list):
            self._fail("exchanges must be a list")
        if not isinstance(bindings, list):
            self._fail("bindings must be a list")

        seen: set[str] = set()
        for parameter in parameters:
            if not isinstance(parameter, Mapping) or not parameter.get("name"):
                self._fail("parameter is missing field: name")
            name = parameter["name"]
            for key in ("label", "type"):
                if not parameter.get(key):
                    self._fail(f"parameter {name} is missing field: {key}")
            if parameter.get("required") is None:
                self._fail(f"parameter {name} is missing field: required")
            if name in seen:
                self._fail(f"duplicate parameter name: {name}")
            seen.add(name)

        for section, blueprints, required_keys in (
            ("exchanges", exchanges, ("name",)),
            ("queues", queues, ("name",)),
            ("bindings", bindings, ("source", "destination")),
        ):
            for index, blueprint in enumerate(blueprints):
                if not isinstance(blueprint, Mapping):
                    self._fail(f"{section}[{index}] must be a mapping")
                for key in required_keys:
                    if blueprint.get(key) is None:
                        self._fail(f"{section}[{index}] is missing field: {key}")

        template = Template.model_validate(
            {
                "template": dict(metadata),
                "parameters": [dict(p) for p in parameters],
                "exchanges": [dict(e) for e in exchanges],
                "queues": [dict(q) for q in queues],
                "bindings": [dict(b) for b in bindings],
            }
        )

        for parameter in template.parameters:
            source = parameter.dynamic_source
            if source and source.depends_on and source.depends_on not in seen:
                self._fail(
                    f"parameter {parameter.name} depends on unknown parameter: {source.depends_on}"
                )

        self._logger.debug("Parsed template %s v%s", template.name, template.version)
        return template

    @staticmethod
    def _fail(reason: str) -> None:
        raise MalformedTemplateError(f"Failed to parse template: {reason}", cause=reason)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def default_values(self, template: Template) -> ParameterValues:
        """Declared defaults, omitting parameters without one."""
        return {p.name: p.default for p in template.parameters if p.has_default}

    def validate(self, template: Template, values: ParameterValues) -> list[TemplateValidationError]:
        """Check values against every parameter rule; one error per failing rule."""
        errors: list[TemplateValidationError] = []
        for parameter in template.parameters:
            errors.extend(self._validate_parameter(parameter, values.get(parameter.name)))
        return errors

    def _validate_parameter(
        self, parameter: TemplateParameter, value: Any
    ) -> list[TemplateValidationError]:
        label = parameter.label
        rules = parameter.validation

        def error(message: str) -> TemplateValidationError:
            return TemplateValidationError(field=parameter.name, message=message)

        if _is_empty(value):
            return [error(f"{label} is required")] if parameter.required else []

        errors: list[TemplateValidationError] = []

        if parameter.kind is ParameterKind.NUMBER:
            number = _to_number(value)
            if number is None:
                return [error(f"{label} must be a number")]
            if rules and rules.min is not None and number < rules.min:
                errors.append(error(f"{label} must not be less than {_format_bound(rules.min)}"))
            if rules and rules.max is not None and number > rules.max:
                errors.append(error(f"{label} must not be greater than {_format_bound(rules.max)}"))

        if parameter.kind is ParameterKind.STRING and rules and rules.pattern:
            if not re.search(rules.pattern, str(value)):
                errors.append(error(f"{label} has an invalid format"))

        if parameter.kind is ParameterKind.BOOLEAN and not isinstance(value, bool):
            errors.append(error(f"{label} must be a boolean"))

        if rules and rules.allowed_values is not None and value not in rules.allowed_values:
            allowed = ", ".join(_stringify(v) for v in rules.allowed_values)
            errors.append(error(f"{label} must be one of: {allowed}"))

        return errors

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, template: Template, values: ParameterValues) -> RenderedSystemConfig:
        """
        Substitute parameter values into the template's resource sections.

        A field that is exactly one ``${name}`` placeholder takes the parameter's
        native value; placeholders inside longer strings are stringified, and
        unknown names become the empty string. The template is not modified.
        """
        final_values: ParameterValues = {}
        for parameter in template.parameters:
            if values.get(parameter.name) is not None:
                final_values[parameter.name] = values[parameter.name]
            elif parameter.has_default:
                final_values[parameter.name] = parameter.default

        sections = copy.deepcopy(
            {
                "exchanges": template.exchanges,
                "queues": template.queues,
                "bindings": template.bindings,
            }
        )
        rendered = self._substitute(sections, final_values)

        vhost = final_values.get(VHOST_PARAMETER)
        rendered["vhost"] = _stringify(vhost) if not _is_empty(vhost) else None

        try:
            return RenderedSystemConfig.model_validate(rendered)
        except ValidationError as e:
            raise MalformedTemplateError(
                f"Rendered template {template.name} is invalid: {e}", cause=str(e)
            ) from e

    def _substitute(self, node: Any, values: ParameterValues) -> Any:
        if isinstance(node, str):
            lone = _LONE_PLACEHOLDER.match(node)
            if lone:
                value = values.get(lone.group(1))
                return value if value is not None else ""
            return _PLACEHOLDER.sub(
                lambda m: _stringify(values[m.group(1)]) if values.get(m.group(1)) is not None else "",
                node,
            )
        if isinstance(node, list):
            return [self._substitute(item, values) for item in node]
        if isinstance(node, dict):
            return {key: self._substitute(value, values) for key, value in node.items()}
        return node

    def validate_and_render(
        self, template: Template, values: ParameterValues
    ) -> tuple[Optional[RenderedSystemConfig], list[TemplateValidationError]]:
        """Validate first; render only when there are no errors."""
        errors = self.validate(template, values)
        if errors:
            return None, errors
        return self.render(template, values), []
