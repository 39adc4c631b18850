"""Loads template documents from YAML files."""

from pathlib import Path
from typing import Optional

from rmq_manage.application.services.template_service import TemplateService
from rmq_manage.domain.base.exceptions import MalformedTemplateError
from rmq_manage.domain.base.ports.logging_port import LoggingPort
from rmq_manage.domain.template.template_aggregate import Template

TEMPLATE_SUFFIXES = (".yaml", ".yml")


class YAMLTemplateLoader:
    """Reads ``*.yaml`` template files from a set of directories."""

    def __init__(
        self,
        template_service: TemplateService,
        logger: LoggingPort,
        builtin_dir: Path,
        extra_dir: Optional[Path] = None,
    ) -> None:
        """
        Initialize the loader.

        :param template_service: Engine used to parse each document.
        :param logger: Logger for skipped files.
        :param builtin_dir: Directory of templates shipped with the package.
        :param extra_dir: Optional directory of site-specific templates.
        """
        self.template_service = template_service
        self.logger = logger
        self.builtin_dir = builtin_dir
        self.extra_dir = extra_dir

    def load_file(self, path: Path) -> Template:
        """Parse a single template file."""
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise MalformedTemplateError(f"Failed to parse template: {e}", cause=str(e)) from e
        return self.template_service.parse(text)

    def load_directory(self, directory: Optional[Path]) -> list[Template]:
        """Parse every template file in a directory; invalid ones are logged and skipped."""
        if directory is None or not directory.is_dir():
            return []

        templates = []
        for path in sorted(directory.iterdir()):
            if path.suffix not in TEMPLATE_SUFFIXES:
                continue
            try:
                templates.append(self.load_file(path))
            except MalformedTemplateError as e:
                self.logger.error("Skipping template %s: %s", path.name, e.message)
        return templates

    def load_builtin(self) -> list[Template]:
        return self.load_directory(self.builtin_dir)

    def load_extra(self) -> list[Template]:
        return self.load_directory(self.extra_dir)
