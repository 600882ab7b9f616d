"""Data models for the rules linter.

Wire models mirror the Prometheus HTTP API envelopes consumed by
PrometheusApiClient. Domain models (RuleQuery, ValidationFinding,
ValidationSummary) flow between the rule source, the validator and the
reporter.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RuleKind(str, Enum):
    """Rule kinds whose queries are validated."""

    RECORDING = "recording"
    ALERTING = "alerting"


# --- Prometheus API wire models ---


class PrometheusRule(BaseModel):
    """Single rule as returned by GET /api/v1/rules.

    Only the fields the linter needs are declared; health, labels,
    annotations and alert state are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    type: str = Field(..., description="Rule kind: recording, alerting or unknown")
    name: str = Field(default="", description="Record name or alert name")
    query: str = Field(default="", description="PromQL expression of the rule")


class PrometheusRuleGroup(BaseModel):
    """Rule group as returned by GET /api/v1/rules."""

    model_config = ConfigDict(extra="ignore")

    name: str
    file: str = ""
    rules: list[PrometheusRule] = Field(default_factory=list)


class RuleGroupsData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    groups: list[PrometheusRuleGroup] = Field(default_factory=list)


class ApiEnvelope(BaseModel):
    """Common Prometheus API response envelope."""

    model_config = ConfigDict(extra="ignore")

    status: str
    error_type: str | None = Field(default=None, alias="errorType")
    error: str | None = None


class RulesResponse(ApiEnvelope):
    data: RuleGroupsData | None = None


class SeriesResponse(ApiEnvelope):
    data: list[dict[str, Any]] | None = None


# --- Domain models ---


class RuleQuery(BaseModel):
    """Query expression of one rule, tagged with where it came from."""

    model_config = ConfigDict(frozen=True)

    query: str
    kind: RuleKind
    group_name: str = ""
    rule_name: str = ""


class ValidationFinding(BaseModel):
    """A metric referenced by a rule that has no series in the backend."""

    model_config = ConfigDict(frozen=True)

    rule: RuleQuery
    metric: str

    def describe(self) -> str:
        return f"rule {_quote(self.rule.query)}: metric {_quote(self.metric)} not found!"


class ValidationSummary(BaseModel):
    """Counters accumulated over one validation run."""

    rules_total: int = 0
    rules_validated: int = 0
    parse_errors: int = 0
    check_errors: int = 0
    findings: int = 0

    @property
    def has_errors(self) -> bool:
        return self.parse_errors > 0 or self.check_errors > 0


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)
