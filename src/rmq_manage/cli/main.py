"""CLI entry point with resource-action structure."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml
from pydantic import BaseModel

from rmq_manage import __version__
from rmq_manage.application.dto.commands import (
    CreateSystemCommand,
    DeleteSystemCommand,
    ForceDeleteExchangesCommand,
)
from rmq_manage.application.dto.queries import (
    GetSystemCredentialsQuery,
    GetSystemResourcesQuery,
    GetSystemSnapshotQuery,
    GetTemplateQuery,
    ListManagedSystemsQuery,
    ListTemplatesQuery,
)
from rmq_manage.bootstrap import Application
from rmq_manage.cli.console import print_error, print_json, print_success, print_table, print_warning
from rmq_manage.config.settings import load_config
from rmq_manage.domain.base.exceptions import DomainException, ParameterValidationFailedError
from rmq_manage.domain.system.value_objects import parse_system_id
from rmq_manage.infrastructure.logging.logger import setup_logging

DEFAULT_VHOST = "/"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for ``rmq-manage <resource> <action>``."""
    parser = argparse.ArgumentParser(
        prog="rmq-manage",
        description="Provision and tear down template-defined RabbitMQ resource systems.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to a settings file (yaml, toml or json).")
    parser.add_argument("--api-url", help="Management API base URL.")
    parser.add_argument("--username", help="Management API username.")
    parser.add_argument("--password", help="Management API password.")
    parser.add_argument(
        "--format", choices=["json", "table"], default="json", help="Output format."
    )
    parser.add_argument("--log-level", help="Override the configured log level.")

    resources = parser.add_subparsers(dest="resource", required=True)

    templates = resources.add_parser("templates", help="Inspect available templates.")
    template_actions = templates.add_subparsers(dest="action", required=True)
    list_templates = template_actions.add_parser("list", help="List templates.")
    list_templates.add_argument("--tag", help="Only templates carrying this tag.")
    list_templates.add_argument("--search", help="Case-insensitive name/description filter.")
    show_template = template_actions.add_parser("show", help="Show a template.")
    show_template.add_argument("name")
    options = template_actions.add_parser(
        "options", help="List broker-backed options for a template parameter."
    )
    options.add_argument("name")
    options.add_argument("parameter")
    _add_value_arguments(options)

    systems = resources.add_parser("systems", help="Manage provisioned systems.")
    system_actions = systems.add_subparsers(dest="action", required=True)
    list_systems = system_actions.add_parser("list", help="List managed systems on a vhost.")
    list_systems.add_argument("--vhost", default=DEFAULT_VHOST)
    show_system = system_actions.add_parser("show", help="Show a system's resources.")
    show_system.add_argument("system_id")
    show_system.add_argument("--vhost")
    show_system.add_argument(
        "--snapshot", action="store_true", help="Fetch detailed queue state instead."
    )
    create_system = system_actions.add_parser("create", help="Create a system from a template.")
    create_system.add_argument("template")
    _add_value_arguments(create_system)
    delete_system = system_actions.add_parser("delete", help="Delete a system.")
    delete_system.add_argument("system_id")
    delete_system.add_argument("--vhost")
    force_delete = system_actions.add_parser(
        "force-delete", help="Delete exchanges regardless of their bindings."
    )
    force_delete.add_argument("exchanges", nargs="+")
    force_delete.add_argument("--vhost", default=DEFAULT_VHOST)

    credentials = resources.add_parser("credentials", help="Inspect system credentials.")
    credential_actions = credentials.add_subparsers(dest="action", required=True)
    show_credentials = credential_actions.add_parser("show", help="Show a system's credentials.")
    show_credentials.add_argument("system_id")
    show_credentials.add_argument("--vhost")

    broker = resources.add_parser("broker", help="Inspect the broker connection.")
    broker_actions = broker.add_subparsers(dest="action", required=True)
    broker_actions.add_parser("overview", help="Show the cluster overview; verifies credentials.")

    return parser


def _add_value_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Parameter value; VALUE is read as JSON when possible.",
    )
    parser.add_argument("--data", help="Parameter values as a JSON object.")
    parser.add_argument("-f", "--file", help="YAML or JSON file with parameter values.")


def parse_assignment(assignment: str) -> tuple[str, Any]:
    """Split ``name=value``; the value keeps its JSON type when it parses as JSON."""
    name, sep, raw = assignment.partition("=")
    if not sep or not name:
        raise ValueError(f"Expected NAME=VALUE, got: {assignment}")
    try:
        return name, json.loads(raw)
    except ValueError:
        return name, raw


def load_values(args: argparse.Namespace) -> dict[str, Any]:
    """Merge parameter values from --file, then --data, then each --set."""
    values: dict[str, Any] = {}
    if args.file:
        loaded = yaml.safe_load(Path(args.file).read_text(encoding="utf-8"))
        if not isinstance(loaded, dict):
            raise ValueError(f"Values file must contain a mapping: {args.file}")
        values.update(loaded)
    if args.data:
        loaded = json.loads(args.data)
        if not isinstance(loaded, dict):
            raise ValueError("--data must be a JSON object")
        values.update(loaded)
    for assignment in args.assignments:
        name, value = parse_assignment(assignment)
        values[name] = value
    return values


def _system_vhost(args: argparse.Namespace) -> str:
    """Explicit --vhost, else the vhost embedded in the system id."""
    if args.vhost:
        return args.vhost
    parsed = parse_system_id(args.system_id)
    return parsed.vhost if parsed else DEFAULT_VHOST


def _dump(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, list):
        return [_dump(item) for item in result]
    return result


def _template_summary(app: Application, template) -> dict[str, Any]:
    return {
        "name": template.name,
        "version": template.version,
        "description": template.metadata.description,
        "tags": list(template.metadata.tags),
        "builtin": app.template_registry.is_builtin(template.name),
    }


async def run_command(app: Application, args: argparse.Namespace) -> tuple[Any, str]:
    """Dispatch a parsed command; returns (JSON-ready data, title)."""
    resource, action = args.resource, args.action

    if resource == "templates":
        if action == "list":
            templates = await app.list_templates_handler.handle(
                ListTemplatesQuery(tag=args.tag, search=args.search)
            )
            return [_template_summary(app, t) for t in templates], "Templates"
        if action == "show":
            template = await app.get_template_handler.handle(GetTemplateQuery(template_name=args.name))
            return _dump(template), template.name
        if action == "options":
            template = await app.get_template_handler.handle(GetTemplateQuery(template_name=args.name))
            parameter = template.get_parameter(args.parameter)
            if parameter is None:
                raise ValueError(f"Template {template.name} has no parameter {args.parameter}")
            values = app.template_service.default_values(template)
            values.update(load_values(args))
            options = await app.parameter_options_service.resolve_options(parameter, values)
            return _dump(options), f"Options for {parameter.name}"

    if resource == "systems":
        if action == "list":
            systems = await app.list_systems_handler.handle(ListManagedSystemsQuery(vhost=args.vhost))
            return _dump(systems), "Systems"
        if action == "show":
            vhost = _system_vhost(args)
            if args.snapshot:
                snapshot = await app.system_snapshot_handler.handle(
                    GetSystemSnapshotQuery(vhost=vhost, system_id=args.system_id)
                )
                return _dump(snapshot), args.system_id
            resources = await app.system_resources_handler.handle(
                GetSystemResourcesQuery(vhost=vhost, system_id=args.system_id)
            )
            return _dump(resources), args.system_id
        if action == "create":
            result = await app.create_system_handler.handle(
                CreateSystemCommand(template_name=args.template, values=load_values(args))
            )
            return _dump(result), "Created"
        if action == "delete":
            report = await app.delete_system_handler.handle(
                DeleteSystemCommand(vhost=_system_vhost(args), system_id=args.system_id)
            )
            if report.remaining_exchanges:
                print_warning(
                    f"{len(report.remaining_exchanges)} exchanges were left in place; "
                    "see remaining_exchanges"
                )
            return _dump(report), "Deleted"
        if action == "force-delete":
            result = await app.force_delete_handler.handle(
                ForceDeleteExchangesCommand(vhost=args.vhost, exchange_names=args.exchanges)
            )
            return _dump(result), "Force delete"

    if resource == "credentials" and action == "show":
        credentials = await app.credentials_handler.handle(
            GetSystemCredentialsQuery(vhost=_system_vhost(args), system_id=args.system_id)
        )
        return _dump(credentials), "Credentials"

    if resource == "broker" and action == "overview":
        overview = await app.broker.get_overview()
        print_success("Connected to broker")
        return overview, "Overview"

    raise ValueError(f"Unsupported command: {resource} {action}")


def _emit(data: Any, output_format: str, title: str) -> None:
    if output_format == "table" and isinstance(data, (list, dict)):
        print_table(data, title)
    else:
        print_json(data)


def _report_error(error: DomainException, output_format: str) -> None:
    if output_format == "json":
        print_json({"error": error.to_dict()})
        return
    print_error(error.message)
    if isinstance(error, ParameterValidationFailedError):
        for field_error in error.errors:
            print_error(f"  {field_error.field}: {field_error.message}")


async def main(argv: Optional[Sequence[str]] = None, app: Optional[Application] = None) -> int:
    """Run one CLI command and return its exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if app is None:
            config = load_config(args.config)
            if args.api_url:
                config.broker.api_url = args.api_url
            if args.username:
                config.broker.username = args.username
            if args.password:
                config.broker.password = args.password
            setup_logging(
                log_level=args.log_level or config.logging.level,
                log_destination=config.logging.destination,
                log_dir=config.logging.log_dir,
                log_filename=config.logging.log_filename,
                log_format=config.logging.format,
            )
            app = Application(config)

        data, title = await run_command(app, args)
    except DomainException as e:
        _report_error(e, args.format)
        return 1
    except (ValueError, OSError, yaml.YAMLError) as e:
        print_error(str(e))
        return 1

    _emit(data, args.format, title)
    return 0


def cli_main() -> None:
    """Entry point function for console scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli_main()
