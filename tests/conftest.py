from __future__ import annotations

import pytest

from ._fakes import FakePrometheusApi, RecordingReporter


@pytest.fixture
def fake_api() -> FakePrometheusApi:
    """Provide a fake Prometheus API with no rules and no series."""
    return FakePrometheusApi()


@pytest.fixture
def reporter() -> RecordingReporter:
    """Provide a reporter that records every validation event."""
    return RecordingReporter()
