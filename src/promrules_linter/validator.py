"""Validation driver: checks every rule query against the series index.

For each rule the driver parses the query, extracts the referenced metric
names and checks each one. A rule that does not parse, or a metric whose
check fails, is reported and skipped; only a failure to list the rules
aborts the run.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from promrules_linter.exceptions import BackendError, RuleParseError
from promrules_linter.expression import extract_metric_names
from promrules_linter.logging_utils import create_service_logger
from promrules_linter.models import RuleQuery, ValidationFinding, ValidationSummary
from promrules_linter.protocols import (
    ExpressionParserProtocol,
    MetricExistenceCheckerProtocol,
    RuleSourceProtocol,
    ValidationReporter,
)

logger = create_service_logger("promrules.validator")


@dataclass(frozen=True)
class _CheckFailure:
    metric: str
    error: BackendError


_RuleEvent = ValidationFinding | _CheckFailure


@dataclass
class _RuleOutcome:
    """Events produced while validating one rule, in production order."""

    rule: RuleQuery
    parse_error: RuleParseError | None = None
    events: list[_RuleEvent] = field(default_factory=list)


class RuleValidator:
    """Validates the metric references of every rule the source lists."""

    def __init__(
        self,
        rule_source: RuleSourceProtocol,
        parser: ExpressionParserProtocol,
        checker: MetricExistenceCheckerProtocol,
        max_workers: int = 1,
    ) -> None:
        self._rule_source = rule_source
        self._parser = parser
        self._checker = checker
        self._max_workers = max(1, max_workers)

    def run(self, reporter: ValidationReporter) -> ValidationSummary:
        """Validate all rules, streaming events to the reporter.

        Raises:
            BackendError: If the rules cannot be listed
        """
        rules = self._rule_source.list_rule_queries()
        summary = ValidationSummary(rules_total=len(rules))

        if self._max_workers == 1:
            for rule in rules:
                self._record(self._validate_rule(rule, reporter), summary)
        else:
            # Events are buffered per rule and reported in listing order.
            with ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="promrules"
            ) as pool:
                for outcome in pool.map(self._validate_rule, rules):
                    self._replay(outcome, reporter)
                    self._record(outcome, summary)

        logger.info(
            "Validation finished",
            rules_total=summary.rules_total,
            rules_validated=summary.rules_validated,
            parse_errors=summary.parse_errors,
            check_errors=summary.check_errors,
            findings=summary.findings,
        )
        return summary

    def _validate_rule(
        self, rule: RuleQuery, reporter: ValidationReporter | None = None
    ) -> _RuleOutcome:
        """Validate one rule, reporting immediately when a reporter is given."""
        outcome = _RuleOutcome(rule=rule)

        try:
            root = self._parser.parse(rule.query)
        except RuleParseError as exc:
            logger.warning("Rule query does not parse", group=rule.group_name, rule=rule.rule_name)
            outcome.parse_error = exc
            if reporter is not None:
                reporter.parse_error(rule, exc)
            return outcome

        for metric in extract_metric_names(root):
            event: _RuleEvent
            try:
                if self._checker.exists(metric):
                    continue
                event = ValidationFinding(rule=rule, metric=metric)
            except BackendError as exc:
                logger.warning("Metric existence check failed", metric=metric, error=str(exc))
                event = _CheckFailure(metric=metric, error=exc)

            outcome.events.append(event)
            if reporter is not None:
                self._emit(rule, event, reporter)

        return outcome

    def _replay(self, outcome: _RuleOutcome, reporter: ValidationReporter) -> None:
        if outcome.parse_error is not None:
            reporter.parse_error(outcome.rule, outcome.parse_error)
        for event in outcome.events:
            self._emit(outcome.rule, event, reporter)

    @staticmethod
    def _emit(rule: RuleQuery, event: _RuleEvent, reporter: ValidationReporter) -> None:
        if isinstance(event, ValidationFinding):
            reporter.finding(event)
        else:
            reporter.check_error(rule, event.metric, event.error)

    @staticmethod
    def _record(outcome: _RuleOutcome, summary: ValidationSummary) -> None:
        if outcome.parse_error is not None:
            summary.parse_errors += 1
            return
        summary.rules_validated += 1
        for event in outcome.events:
            if isinstance(event, ValidationFinding):
                summary.findings += 1
            else:
                summary.check_errors += 1
