"""Tests for the validation driver."""

from __future__ import annotations

import pytest

from promrules_linter.exceptions import BackendError
from promrules_linter.existence import InMemoryExistenceCache, MetricExistenceChecker
from promrules_linter.expression import PromQLExpressionParser
from promrules_linter.models import RuleKind, RuleQuery
from promrules_linter.rule_source import PrometheusRuleSource
from promrules_linter.validator import RuleValidator

from ._fakes import FakePrometheusApi, RecordingReporter, make_group


def build_validator(api: FakePrometheusApi, max_workers: int = 1) -> RuleValidator:
    return RuleValidator(
        PrometheusRuleSource(api),
        PromQLExpressionParser(),
        MetricExistenceChecker(api, InMemoryExistenceCache()),
        max_workers=max_workers,
    )


class TestRuleValidatorScenarios:
    def test_missing_metric_in_recording_rule_is_reported(
        self, reporter: RecordingReporter
    ) -> None:
        api = FakePrometheusApi(
            groups=[make_group("api", ("recording", "rate(http_requests_total[5m])"))]
        )

        summary = build_validator(api).run(reporter)

        assert [(f.rule.query, f.metric) for f in reporter.findings] == [
            ("rate(http_requests_total[5m])", "http_requests_total")
        ]
        assert reporter.findings[0].rule.kind == RuleKind.RECORDING
        assert summary.findings == 1
        assert summary.rules_validated == 1

    def test_existing_metric_in_alerting_rule_is_clean(self, reporter: RecordingReporter) -> None:
        api = FakePrometheusApi(groups=[make_group("node", ("alerting", "up == 0"))], existing={"up"})

        summary = build_validator(api).run(reporter)

        assert reporter.findings == []
        assert reporter.parse_errors == []
        assert summary.findings == 0
        assert not summary.has_errors

    def test_malformed_rule_is_skipped_and_others_validated(
        self, reporter: RecordingReporter
    ) -> None:
        api = FakePrometheusApi(
            groups=[
                make_group(
                    "mixed",
                    ("alerting", "up == 0"),
                    ("recording", "sum(rate(broken_total[5m]"),
                    ("recording", "rate(missing_total[1m])"),
                )
            ],
            existing={"up"},
        )

        summary = build_validator(api).run(reporter)

        assert len(reporter.parse_errors) == 1
        rule, error = reporter.parse_errors[0]
        assert rule.query == "sum(rate(broken_total[5m]"
        assert error.query == rule.query
        assert [f.metric for f in reporter.findings] == ["missing_total"]
        assert summary.rules_total == 3
        assert summary.rules_validated == 2
        assert summary.parse_errors == 1
        assert "broken_total" not in api.series_calls

    def test_metric_shared_by_rules_is_checked_once(self, reporter: RecordingReporter) -> None:
        api = FakePrometheusApi(
            groups=[
                make_group("a", ("recording", "sum(node_cpu_seconds_total)")),
                make_group(
                    "b",
                    ("alerting", "rate(node_cpu_seconds_total[5m]) > 0.9"),
                    ("alerting", "node_cpu_seconds_total offset 1h"),
                ),
            ]
        )

        build_validator(api).run(reporter)

        assert api.series_calls == ["node_cpu_seconds_total"]
        # still reported for every rule that references it
        assert len(reporter.findings) == 3

    def test_check_failure_is_reported_and_remaining_metrics_checked(
        self, reporter: RecordingReporter
    ) -> None:
        api = FakePrometheusApi(
            groups=[make_group("g", ("recording", "flaky_total + absent_total"))],
        )
        api.failures["flaky_total"] = 1

        summary = build_validator(api).run(reporter)

        assert [(metric, rule.query) for rule, metric, _ in reporter.check_errors] == [
            ("flaky_total", "flaky_total + absent_total")
        ]
        assert [f.metric for f in reporter.findings] == ["absent_total"]
        assert summary.check_errors == 1
        assert summary.findings == 1

    def test_failed_check_is_retried_by_a_later_rule(self, reporter: RecordingReporter) -> None:
        api = FakePrometheusApi(
            groups=[make_group("g", ("recording", "flaky_total"), ("alerting", "flaky_total > 1"))],
            existing={"flaky_total"},
        )
        api.failures["flaky_total"] = 1

        build_validator(api).run(reporter)

        assert len(reporter.check_errors) == 1
        assert reporter.findings == []
        assert api.series_calls == ["flaky_total", "flaky_total"]

    def test_listing_failure_aborts_the_run(self, reporter: RecordingReporter) -> None:
        api = FakePrometheusApi()
        api.list_error = BackendError("connection refused")

        with pytest.raises(BackendError, match="failed to get rules"):
            build_validator(api).run(reporter)

        assert api.series_calls == []

    def test_only_recording_and_alerting_rules_are_validated(
        self, reporter: RecordingReporter
    ) -> None:
        api = FakePrometheusApi(groups=[make_group("g", ("other", "not_checked_total"))])

        summary = build_validator(api).run(reporter)

        assert summary.rules_total == 0
        assert api.series_calls == []


class TestRuleValidatorStreaming:
    def test_findings_are_reported_in_listing_order(self, reporter: RecordingReporter) -> None:
        queries = [f"rate(metric_{i}_total[5m])" for i in range(6)]
        api = FakePrometheusApi(groups=[make_group("g", *[("recording", q) for q in queries])])

        build_validator(api).run(reporter)

        assert [f.rule.query for f in reporter.findings] == queries

    def test_parallel_run_matches_sequential_run(self) -> None:
        groups = [
            make_group(
                "g",
                *[("recording", f"shared_total + rate(metric_{i}_total[5m])") for i in range(20)],
                ("alerting", "up == 0 and ("),
            )
        ]
        sequential, parallel = RecordingReporter(), RecordingReporter()
        seq_api = FakePrometheusApi(groups=groups, existing={"metric_3_total"})
        par_api = FakePrometheusApi(groups=groups, existing={"metric_3_total"})

        seq_summary = build_validator(seq_api).run(sequential)
        par_summary = build_validator(par_api, max_workers=4).run(parallel)

        assert par_summary == seq_summary
        assert [(f.rule.query, f.metric) for f in parallel.findings] == [
            (f.rule.query, f.metric) for f in sequential.findings
        ]
        assert len(parallel.parse_errors) == 1
        assert par_api.series_calls.count("shared_total") == 1
        assert sorted(par_api.series_calls) == sorted(seq_api.series_calls)


class TestRuleValidatorWithStubs:
    def test_rule_is_parsed_once_and_every_metric_checked(
        self, reporter: RecordingReporter
    ) -> None:
        rule = RuleQuery(query="a + b", kind=RuleKind.RECORDING)

        class StubSource:
            def list_rule_queries(self) -> list[RuleQuery]:
                return [rule]

        class StubChecker:
            def __init__(self) -> None:
                self.checked: list[str] = []

            def exists(self, name: str) -> bool:
                self.checked.append(name)
                return name == "a"

        checker = StubChecker()
        validator = RuleValidator(StubSource(), PromQLExpressionParser(), checker)

        validator.run(reporter)

        assert sorted(checker.checked) == ["a", "b"]
        assert [(f.rule, f.metric) for f in reporter.findings] == [(rule, "b")]
