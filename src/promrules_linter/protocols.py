"""Protocol definitions for the rules linter.

Defines the seams between the validation driver and its collaborators so
each can be replaced in tests or wired by the DI container.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from promrules_linter.exceptions import BackendError, RuleParseError
    from promrules_linter.models import (
        PrometheusRuleGroup,
        RuleQuery,
        ValidationFinding,
    )


class PrometheusApiProtocol(Protocol):
    """Protocol for the two Prometheus API calls the linter needs."""

    def list_rule_groups(self) -> list[PrometheusRuleGroup]:
        """List all rule groups loaded by the backend.

        Raises:
            BackendError: On transport, status or decode failures
        """
        ...

    def series(
        self, matchers: list[str], start: datetime, end: datetime
    ) -> list[dict[str, Any]]:
        """Return the label sets of series matching any of the selectors.

        Raises:
            BackendError: On transport, status or decode failures
        """
        ...


class RuleSourceProtocol(Protocol):
    """Protocol for sources of rule queries."""

    def list_rule_queries(self) -> list[RuleQuery]:
        """Return every recording/alerting rule query in listing order."""
        ...


class ExpressionNode(Protocol):
    """Capability set every wrapped query-expression node exposes."""

    def selector_name(self) -> str | None:
        """Metric name when the node is an instant/range selector, else None."""
        ...

    def children(self) -> Iterable[ExpressionNode]:
        """Direct sub-expressions of this node."""
        ...


class ExpressionParserProtocol(Protocol):
    """Protocol for the query-expression parser."""

    def parse(self, query: str) -> ExpressionNode:
        """Parse a query into its expression tree.

        Raises:
            RuleParseError: If the query is not valid
        """
        ...


class ExistenceCacheProtocol(Protocol):
    """Protocol for the metric name -> exists verdict cache."""

    def get(self, name: str) -> bool | None:
        """Cached verdict, or None when the name has not been resolved."""
        ...

    def put(self, name: str, exists: bool) -> None:
        ...


class MetricExistenceCheckerProtocol(Protocol):
    """Protocol for metric existence checks."""

    def exists(self, name: str) -> bool:
        """Whether any series with this metric name has samples up to now.

        Raises:
            BackendError: If the backend check fails
        """
        ...


class ValidationReporter(Protocol):
    """Receives validation events as they are produced."""

    def finding(self, finding: ValidationFinding) -> None:
        ...

    def parse_error(self, rule: RuleQuery, error: RuleParseError) -> None:
        ...

    def check_error(self, rule: RuleQuery, metric: str, error: BackendError) -> None:
        ...
