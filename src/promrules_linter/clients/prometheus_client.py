"""Prometheus HTTP API client."""

from __future__ import annotations

from datetime import datetime
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from promrules_linter.exceptions import BackendError
from promrules_linter.logging_utils import create_service_logger
from promrules_linter.models import (
    ApiEnvelope,
    PrometheusRuleGroup,
    RulesResponse,
    SeriesResponse,
)

logger = create_service_logger("promrules.prometheus_client")

EnvelopeT = TypeVar("EnvelopeT", bound=ApiEnvelope)


def metric_name_matcher(name: str) -> str:
    """Build a series selector matching exactly one metric name."""
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'{{__name__="{escaped}"}}'


def _format_time(value: datetime) -> str:
    return f"{value.timestamp():.3f}"


class PrometheusApiClient:
    """Client for the Prometheus /api/v1 endpoints used by the linter."""

    def __init__(self, http_client: httpx.Client, base_url: str) -> None:
        """Initialize with shared HTTP client.

        Args:
            http_client: Shared httpx Client instance
            base_url: Validated Prometheus base URL, without trailing slash
        """
        self._client = http_client
        self._base_url = base_url.rstrip("/")

    def list_rule_groups(self) -> list[PrometheusRuleGroup]:
        """Fetch all rule groups from GET /api/v1/rules.

        Returns:
            Rule groups in the order the backend reports them

        Raises:
            BackendError: On transport, HTTP status or decode errors
        """
        payload = self._get("/api/v1/rules", RulesResponse)
        groups = payload.data.groups if payload.data else []

        logger.info("Fetched rule groups", group_count=len(groups))
        return groups

    def series(
        self, matchers: list[str], start: datetime, end: datetime
    ) -> list[dict[str, Any]]:
        """Find series matching the selectors within [start, end].

        Args:
            matchers: Series selectors, sent as repeated match[] parameters
            start: Start of the time range
            end: End of the time range

        Returns:
            Label sets of the matching series, possibly empty

        Raises:
            BackendError: On transport, HTTP status or decode errors
        """
        params: list[tuple[str, str]] = [("match[]", m) for m in matchers]
        params.append(("start", _format_time(start)))
        params.append(("end", _format_time(end)))

        payload = self._get("/api/v1/series", SeriesResponse, params=params)
        series = payload.data or []

        logger.debug("Fetched series", matchers=matchers, series_count=len(series))
        return series

    def _get(
        self,
        path: str,
        model: type[EnvelopeT],
        params: list[tuple[str, str]] | None = None,
    ) -> EnvelopeT:
        url = f"{self._base_url}{path}"

        try:
            response = self._client.get(url, params=params)
            response.raise_for_status()
            payload = model.model_validate(response.json())
        except httpx.HTTPStatusError as exc:
            raise BackendError(
                f"{exc.request.method} {path} returned HTTP {exc.response.status_code}: "
                f"{_error_detail(exc.response)}"
            ) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"GET {path} failed: {exc}") from exc
        except ValidationError as exc:
            raise BackendError(f"GET {path} returned an unexpected payload: {exc}") from exc
        except ValueError as exc:
            raise BackendError(f"GET {path} returned invalid JSON: {exc}") from exc

        if payload.status != "success":
            raise BackendError(
                f"GET {path} failed: {payload.error_type or 'error'}: {payload.error or 'unknown'}"
            )
        return payload


def _error_detail(response: httpx.Response) -> str:
    """Prefer the Prometheus error message over the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text.strip() or response.reason_phrase
