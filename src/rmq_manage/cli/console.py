"""Shared Rich console for CLI output."""

import json
import os
from functools import wraps
from typing import Any

from rich.console import Console
from rich.table import Table

_console = Console()
_error_console = Console(stderr=True)


def _should_print() -> bool:
    """Check if console output is enabled."""
    return os.environ.get("RMQ_MANAGE_CONSOLE_ENABLED", "true").lower() == "true"


def _console_output(func):
    """Decorator to check if console output is enabled."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        if _should_print():
            return func(*args, **kwargs)

    return wrapper


@_console_output
def print_success(message: str):
    """Print success message."""
    _console.print(f"[green]{message}[/green]")


@_console_output
def print_error(message: str):
    """Print error message to stderr."""
    _error_console.print(f"[red]{message}[/red]")


@_console_output
def print_warning(message: str):
    """Print warning message."""
    _console.print(f"[yellow]{message}[/yellow]")


def _cell(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    if value is None:
        return ""
    return str(value)


def print_table(data: Any, title: str = "") -> None:
    """Render a list of records as columns, or a single record as key/value rows."""
    table = Table(title=title or None)
    if isinstance(data, list):
        if not data:
            _console.print(f"[yellow]No {title.lower() or 'results'} found[/yellow]")
            return
        columns = list(data[0].keys())
        for column in columns:
            table.add_column(column)
        for row in data:
            table.add_row(*(_cell(row.get(column)) for column in columns))
    else:
        table.add_column("field")
        table.add_column("value")
        for key, value in data.items():
            table.add_row(key, _cell(value))
    _console.print(table)


def print_json(data: Any):
    """Print JSON data (always outputs, ignores RMQ_MANAGE_CONSOLE_ENABLED)."""
    print(json.dumps(data, indent=2, default=str))
