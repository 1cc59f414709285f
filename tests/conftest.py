"""Shared pytest fixtures for the autofill test suite.

Fixture Organization:
    - Config fixtures: isolated AutofillConfig, singleton reset per test
    - Clock fixtures: deterministic time for caches and the rate limiter
    - Provider fixtures: scripted providers that never touch the network
    - State fixtures: PipelineState wired to the fake clock
"""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Add tests directory to sys.path so test modules can import
# classifier_test_helpers
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from classifier_test_helpers import FakeClock, StubProvider  # noqa: E402

from autofill.classifier.state import PipelineState  # noqa: E402
from autofill.config import AutofillConfig, reset_config  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_config_singleton():
    """Make sure no test sees another test's cached configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> AutofillConfig:
    return AutofillConfig(
        provider="gemini",
        gemini_api_key="test-key",
        requests_per_minute=60,
        requests_per_day=1500,
        cache_max_size=100,
        cache_ttl_seconds=24 * 60 * 60,
    )


@pytest.fixture
def state(config, clock) -> PipelineState:
    return PipelineState.from_config(config, clock=clock)


@pytest.fixture
def stub_provider() -> Callable[..., StubProvider]:
    """Factory: stub_provider(response_1, response_2, ...)."""

    def _make(*responses) -> StubProvider:
        return StubProvider(responses)

    return _make
