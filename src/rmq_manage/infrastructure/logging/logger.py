"""Structured logging setup using structlog over the standard logging module."""

import logging
import os
from typing import Optional

import structlog

from rmq_manage.config.platform_dirs import get_logs_location

DEFAULT_LOGGER_NAME = "rmq_manage"

_configured = False


def setup_logging(
    log_level: str = "INFO",
    log_destination: str = "stdout",
    log_dir: Optional[str] = None,
    log_filename: Optional[str] = None,
    log_format: str = "console",
) -> None:
    """
    Set up structured logging for the application using structlog.

    :param log_level: Logging level (e.g., DEBUG, INFO, WARNING, ERROR, CRITICAL).
    :param log_destination: Where to send logs ("file", "stdout", or "both").
    :param log_dir: Directory where the log file will be stored.
    :param log_filename: Name of the log file.
    :param log_format: Rendering of log lines ("console" or "json").
    """
    global _configured

    handlers: list[logging.Handler] = []
    if log_destination in ("file", "both"):
        log_dir = log_dir or str(get_logs_location())
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.FileHandler(os.path.join(log_dir, log_filename or "rmq_manage.log"))
        )
    if log_destination in ("stdout", "both") or not handlers:
        handlers.append(logging.StreamHandler())

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
    )
    for handler in handlers:
        handler.setFormatter(formatter)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    _configured = True


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, configuring defaults on first use."""
    if not _configured:
        setup_logging()
    return structlog.get_logger(name)
