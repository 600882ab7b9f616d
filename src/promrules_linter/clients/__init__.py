"""HTTP clients for the Prometheus API."""

from promrules_linter.clients.prometheus_client import PrometheusApiClient, metric_name_matcher

__all__ = ["PrometheusApiClient", "metric_name_matcher"]
