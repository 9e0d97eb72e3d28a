"""
Pytest configuration and shared fixtures for trust layer tests.

Engines and layers built here never persist snapshots or start background
threads, and run on a controllable clock.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from trustlayer.config import (  # noqa: E402
    AlertThresholds,
    ObservabilityConfig,
    SafetyConfig,
    TrustConfig,
    clear_config_cache,
)
from trustlayer.integration import TrustLayer  # noqa: E402
from trustlayer.logging import reset_logging  # noqa: E402
from trustlayer.observability.engine import ObservabilityEngine  # noqa: E402

TRUST_ENV_VARS = (
    "TRUST_ENV",
    "TRUST_LOG_LEVEL",
    "TRUST_LOG_FORMAT",
    "TRUST_CONFIG_PATH",
    "TRUST_SNAPSHOT_PATH",
    "TRUST_PROJECT_PATH",
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def reset_test_env(monkeypatch):
    """Reset environment variables and cached config before each test."""
    for name in TRUST_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()
    reset_logging()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def observability_config() -> ObservabilityConfig:
    return ObservabilityConfig(alert_thresholds=AlertThresholds(latency_ms=1000))


@pytest.fixture
def engine(observability_config, clock) -> ObservabilityEngine:
    return ObservabilityEngine(observability_config, clock=clock)


@pytest.fixture
def layer(observability_config, clock) -> TrustLayer:
    return TrustLayer(
        TrustConfig(safety=SafetyConfig(environment="development"), observability=observability_config),
        clock=clock,
    )


@pytest.fixture
def production_layer(observability_config, clock) -> TrustLayer:
    return TrustLayer(
        TrustConfig(safety=SafetyConfig(environment="production"), observability=observability_config),
        clock=clock,
    )


@pytest.fixture
def project_root() -> Path:
    """Return path to project root."""
    return Path(__file__).parent.parent
