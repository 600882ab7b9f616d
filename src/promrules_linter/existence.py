"""Metric existence checks with a per-run verdict cache.

A metric exists when the backend reports at least one series with that
name between the Unix epoch and the time of the check. Verdicts are cached
for the rest of the run; failed checks are not. Concurrent checks for the
same unresolved name share one backend call.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from datetime import UTC, datetime

from promrules_linter.clients.prometheus_client import metric_name_matcher
from promrules_linter.exceptions import BackendError
from promrules_linter.logging_utils import create_service_logger
from promrules_linter.protocols import ExistenceCacheProtocol, PrometheusApiProtocol

logger = create_service_logger("promrules.existence")

SERIES_WINDOW_START = datetime.fromtimestamp(0, tz=UTC)


class InMemoryExistenceCache:
    """Grow-only name -> verdict map, safe to share between threads."""

    def __init__(self) -> None:
        self._verdicts: dict[str, bool] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> bool | None:
        with self._lock:
            return self._verdicts.get(name)

    def put(self, name: str, exists: bool) -> None:
        with self._lock:
            self._verdicts[name] = exists

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._verdicts

    def __len__(self) -> int:
        with self._lock:
            return len(self._verdicts)


class MetricExistenceChecker:
    """Checks metric names against the backend series index."""

    def __init__(self, api: PrometheusApiProtocol, cache: ExistenceCacheProtocol) -> None:
        self._api = api
        self._cache = cache
        self._in_flight: dict[str, Future[bool]] = {}
        self._lock = threading.Lock()

    def exists(self, name: str) -> bool:
        """Whether the metric has ever had samples up to now.

        Raises:
            BackendError: If the backend check fails; the name stays unresolved
        """
        with self._lock:
            cached = self._cache.get(name)
            if cached is not None:
                return cached
            pending = self._in_flight.get(name)
            if pending is None:
                pending = Future()
                self._in_flight[name] = pending
                owner = True
            else:
                owner = False

        if not owner:
            logger.debug("Waiting for in-flight existence check", metric=name)
            return pending.result()

        try:
            found = self._check(name)
        except BaseException as exc:
            pending.set_exception(exc)
            raise
        else:
            self._cache.put(name, found)
            pending.set_result(found)
            return found
        finally:
            with self._lock:
                del self._in_flight[name]

    def _check(self, name: str) -> bool:
        try:
            series = self._api.series(
                [metric_name_matcher(name)], SERIES_WINDOW_START, datetime.now(UTC)
            )
        except BackendError as exc:
            raise BackendError(f"failed to get metric {name!r}: {exc}") from exc

        logger.debug("Checked metric existence", metric=name, series_count=len(series))
        return len(series) > 0
