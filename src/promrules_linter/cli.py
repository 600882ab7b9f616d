"""Command-line entry point for the Prometheus rules linter.

Usage:
    promrules-lint --url http://prometheus:9090

    # or via environment
    PROMRULES_PROMETHEUS_URL=http://prometheus:9090 promrules-lint

Exit Codes:
    0: All rule metrics exist
    1: At least one rule references a missing metric
    2: Configuration error or the rules could not be listed
    3: Some rules or metrics could not be validated (parse or backend errors)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import typer

from promrules_linter.config import LinterSettings, load_settings
from promrules_linter.di import create_container
from promrules_linter.exceptions import BackendError, ConfigError, RuleParseError
from promrules_linter.logging_utils import configure_logging, create_service_logger
from promrules_linter.models import RuleQuery, ValidationFinding, ValidationSummary
from promrules_linter.validator import RuleValidator

APP = typer.Typer(help="Prometheus rules linter", add_completion=False)
logger = create_service_logger("promrules.cli")


class ExitCode(int, Enum):
    """CLI exit codes."""

    CLEAN = 0
    MISSING_METRICS = 1
    FATAL = 2
    INCOMPLETE = 3


class ConsoleReporter:
    """Writes one diagnostic line per event to stderr."""

    def finding(self, finding: ValidationFinding) -> None:
        typer.echo(finding.describe(), err=True)

    def parse_error(self, rule: RuleQuery, error: RuleParseError) -> None:
        typer.echo(str(error), err=True)

    def check_error(self, rule: RuleQuery, metric: str, error: BackendError) -> None:
        typer.echo(str(error), err=True)


def determine_exit_code(summary: ValidationSummary) -> ExitCode:
    """Map a finished run to its exit code.

    Errors take precedence over findings: a run with skipped rules or
    metrics did not validate everything.
    """
    if summary.has_errors:
        return ExitCode.INCOMPLETE
    if summary.findings > 0:
        return ExitCode.MISSING_METRICS
    return ExitCode.CLEAN


def run(settings: LinterSettings) -> ExitCode:
    """Validate all rules of the configured backend.

    Raises:
        ConfigError: If the backend address is invalid
        BackendError: If the rules cannot be listed
    """
    # Fails before any HTTP client exists.
    settings.backend_url()

    container = create_container(settings)
    try:
        validator = container.get(RuleValidator)
        summary = validator.run(ConsoleReporter())
    finally:
        container.close()

    return determine_exit_code(summary)


@APP.command()
def lint(
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Prometheus base URL (overrides PROMRULES_PROMETHEUS_URL)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log progress at DEBUG level",
    ),
) -> None:
    """Report rule expressions that reference metrics Prometheus does not know."""
    overrides: dict[str, object] = {}
    if url is not None:
        overrides["PROMETHEUS_URL"] = url
    if verbose:
        overrides["LOG_LEVEL"] = "DEBUG"

    try:
        settings = load_settings(**overrides)
        configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
        exit_code = run(settings)
    except (ConfigError, BackendError) as exc:
        logger.debug("Run aborted", error_code=exc.error_code.value)
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=ExitCode.FATAL.value)

    raise typer.Exit(code=exit_code.value)


def main() -> None:
    APP()


if __name__ == "__main__":
    main()
