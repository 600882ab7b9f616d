"""Dependency Injection providers for the rules linter.

Provides a Dishka container with APP-scoped infrastructure: settings, the
shared HTTP client, the Prometheus API client and the validation pipeline.
"""

from __future__ import annotations

from collections.abc import Iterator

import httpx
from dishka import Container, Provider, Scope, make_container, provide

from promrules_linter.clients.prometheus_client import PrometheusApiClient
from promrules_linter.config import LinterSettings
from promrules_linter.existence import InMemoryExistenceCache, MetricExistenceChecker
from promrules_linter.expression import PromQLExpressionParser
from promrules_linter.protocols import (
    ExistenceCacheProtocol,
    ExpressionParserProtocol,
    MetricExistenceCheckerProtocol,
    PrometheusApiProtocol,
    RuleSourceProtocol,
)
from promrules_linter.rule_source import PrometheusRuleSource
from promrules_linter.validator import RuleValidator


class LinterProvider(Provider):
    """Infrastructure provider for one validation run."""

    scope = Scope.APP

    def __init__(self, settings: LinterSettings) -> None:
        super().__init__()
        self._settings = settings

    @provide
    def get_config(self) -> LinterSettings:
        """Provide the run's settings."""
        return self._settings

    @provide
    def get_http_client(self, config: LinterSettings) -> Iterator[httpx.Client]:
        """Provide shared HTTP client with connection pooling."""
        with httpx.Client(
            timeout=httpx.Timeout(
                config.HTTP_CLIENT_TIMEOUT_SECONDS,
                connect=config.HTTP_CLIENT_CONNECT_TIMEOUT_SECONDS,
            ),
            limits=httpx.Limits(max_connections=max(10, config.MAX_WORKERS)),
        ) as client:
            yield client

    @provide
    def provide_prometheus_api(
        self, http_client: httpx.Client, config: LinterSettings
    ) -> PrometheusApiProtocol:
        return PrometheusApiClient(http_client, config.backend_url())

    @provide
    def provide_rule_source(self, api: PrometheusApiProtocol) -> RuleSourceProtocol:
        return PrometheusRuleSource(api)

    @provide
    def provide_parser(self) -> ExpressionParserProtocol:
        return PromQLExpressionParser()

    @provide
    def provide_existence_cache(self) -> ExistenceCacheProtocol:
        """Fresh verdict cache; lives as long as the container."""
        return InMemoryExistenceCache()

    @provide
    def provide_existence_checker(
        self, api: PrometheusApiProtocol, cache: ExistenceCacheProtocol
    ) -> MetricExistenceCheckerProtocol:
        return MetricExistenceChecker(api, cache)

    @provide
    def provide_validator(
        self,
        rule_source: RuleSourceProtocol,
        parser: ExpressionParserProtocol,
        checker: MetricExistenceCheckerProtocol,
        config: LinterSettings,
    ) -> RuleValidator:
        return RuleValidator(rule_source, parser, checker, max_workers=config.MAX_WORKERS)


def create_container(settings: LinterSettings) -> Container:
    """Build the container for one run. The caller closes it."""
    return make_container(LinterProvider(settings))
