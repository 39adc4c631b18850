"""Base classes for command and query handlers."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from rmq_manage.domain.base.ports.logging_port import LoggingPort

TCommand = TypeVar("TCommand")
TQuery = TypeVar("TQuery")
TResult = TypeVar("TResult")


class BaseCommandHandler(ABC, Generic[TCommand, TResult]):
    """Validates a command, executes it and logs failures."""

    def __init__(self, logger: LoggingPort) -> None:
        self.logger = logger

    async def handle(self, command: TCommand) -> TResult:
        """Validate then execute a command."""
        command_name = type(command).__name__
        self.logger.debug("Handling %s", command_name)
        try:
            await self.validate_command(command)
            return await self.execute_command(command)
        except Exception as e:
            self.logger.error("%s failed: %s", command_name, e)
            raise

    async def validate_command(self, command: TCommand) -> None:
        """Validate the command; subclasses extend with their own checks."""
        if command is None:
            raise ValueError("Command cannot be None")

    @abstractmethod
    async def execute_command(self, command: TCommand) -> TResult:
        """Execute the command."""


class BaseQueryHandler(ABC, Generic[TQuery, TResult]):
    """Executes a read-only query."""

    def __init__(self, logger: LoggingPort) -> None:
        self.logger = logger

    async def handle(self, query: TQuery) -> TResult:
        query_name = type(query).__name__
        self.logger.debug("Handling %s", query_name)
        try:
            return await self.execute_query(query)
        except Exception as e:
            self.logger.error("%s failed: %s", query_name, e)
            raise

    @abstractmethod
    async def execute_query(self, query: TQuery) -> TResult:
        """Execute the query."""
