"""Pytest configuration and fixtures."""

import pytest
from unittest.mock import Mock

from profile_collector.core.collector import ProfileCollector
from profile_collector.core.context import ProcessContext, RequestContext
from profile_collector.core.decision import StaticDecision
from profile_collector.core.hooks import ManualRegistrar
from profile_collector.core.interfaces import Backend, ProfilerToggle
from profile_collector.monitoring.metrics import MetricsCollector


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_backend():
    """Backend that records every store call."""
    return Mock(spec=Backend)


@pytest.fixture
def profile_data():
    return {("app.py", 10, "handler"): (1, 1, 0.001, 0.002, {})}


@pytest.fixture
def mock_profiler(profile_data):
    profiler = Mock(spec=ProfilerToggle)
    profiler.disable.return_value = profile_data
    return profiler


@pytest.fixture
def registrar():
    return ManualRegistrar()


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def worker_context():
    return ProcessContext(argv=["/usr/local/bin/myscript", "--verbose"])


@pytest.fixture
def web_context():
    return RequestContext(method="GET", uri="/items?page=2")


@pytest.fixture
def make_collector(mock_backend, mock_profiler, registrar, metrics, clock, web_context):
    """Factory for collectors wired to fakes."""

    def factory(sampled: bool = True, context=None, **kwargs):
        return ProfileCollector(
            backend=mock_backend,
            starter=kwargs.pop("starter", StaticDecision(sampled)),
            profiler=kwargs.pop("profiler", mock_profiler),
            context=context or web_context,
            registrar=kwargs.pop("registrar", registrar),
            metrics=metrics,
            clock=clock,
            **kwargs
        )

    return factory
