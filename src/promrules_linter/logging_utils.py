"""
Structured logging utilities for the rules linter, built on structlog.

Log records are operational telemetry and always go to stderr, next to the
diagnostic lines the CLI prints there. Output is human-readable by default;
set LOG_FORMAT=json for machine consumption.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.typing import Processor

from promrules_linter.config import LogFormat


def add_tool_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Tag every record with the tool name.

    Args:
        logger: The logger instance (unused but required by structlog)
        method_name: The logging method name (unused but required by structlog)
        event_dict: The log event dictionary to enrich

    Returns:
        Enriched event dictionary
    """
    event_dict.setdefault("tool", "promrules-lint")
    return event_dict


def configure_logging(
    log_level: str = "WARNING",
    log_format: LogFormat = LogFormat.CONSOLE,
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        log_level: Logging level name (e.g. "INFO")
        log_format: Renderer to use for log output
    """
    shared: list[Processor] = [
        merge_contextvars,
        add_tool_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]

    if log_format == LogFormat.JSON:
        processors = [
            *shared,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared,
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    logging.basicConfig(
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        level=getattr(logging, log_level.upper(), logging.WARNING),
        force=True,
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_service_logger(name: str | None = None) -> Any:
    """
    Create a logger with optional name binding.

    Args:
        name: Optional logger name (e.g., "validator", "prometheus_client")

    Returns:
        A lazy structlog logger proxy; the pipeline is resolved on first
        use, so module-level loggers pick up configure_logging
    """
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()
