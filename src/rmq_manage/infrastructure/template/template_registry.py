"""In-memory registry of available templates."""

from typing import Any, Optional, Union

from rmq_manage.domain.base.exceptions import TemplateNotFoundError, TemplateRegistryError
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.template.template_aggregate import Template
from rmq_manage.infrastructure.template.yaml_template_loader import YAMLTemplateLoader


class TemplateRegistry:
    """Templates keyed by name, loaded once at construction.

    Built-in templates cannot be removed; custom templates added at runtime
    replace any template of the same name.
    """

    def __init__(self, loader: YAMLTemplateLoader, logger: LoggingPort) -> None:
        self.loader = loader
        self.logger = logger
        self._templates: dict[str, Template] = {}
        self._builtin_names: set[str] = set()
        self._load()

    def _load(self) -> None:
        for template in self.loader.load_builtin():
            self._templates[template.name] = template
            self._builtin_names.add(template.name)
        for template in self.loader.load_extra():
            self._templates[template.name] = template
        self.logger.info("Loaded %d templates", len(self._templates))

    def get_all(self) -> list[Template]:
        return list(self._templates.values())

    def find(self, name: str) -> Optional[Template]:
        return self._templates.get(name)

    def get(self, name: str) -> Template:
        """Return the named template or raise TemplateNotFoundError."""
        template = self._templates.get(name)
        if template is None:
            raise TemplateNotFoundError(name)
        return template

    def get_by_tag(self, tag: str) -> list[Template]:
        return [t for t in self._templates.values() if tag in t.metadata.tags]

    def search(self, query: str) -> list[Template]:
        """Case-insensitive substring match on name or description."""
        needle = query.lower()
        return [
            t
            for t in self._templates.values()
            if needle in t.metadata.name.lower() or needle in t.metadata.description.lower()
        ]

    def add_custom(self, raw: Union[str, dict[str, Any]]) -> Template:
        """Parse and register a template under its own name."""
        template = self.loader.template_service.parse(raw)
        self._templates[template.name] = template
        self.logger.info("Registered custom template %s", template.name)
        return template

    def remove_custom(self, name: str) -> bool:
        """Remove a custom template; returns False if none was registered."""
        if name in self._builtin_names:
            raise TemplateRegistryError(f"Built-in template cannot be removed: {name}")
        return self._templates.pop(name, None) is not None

    def is_builtin(self, name: str) -> bool:
        return name in self._builtin_names

    def all_tags(self) -> list[str]:
        return sorted({tag for t in self._templates.values() for tag in t.metadata.tags})
