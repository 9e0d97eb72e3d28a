"""Tests for trust.yaml loading and TRUST_* overrides."""

from pathlib import Path

import pytest

from trustlayer.config import (
    SafetyConfig,
    TrustConfig,
    TrustSettings,
    clear_config_cache,
    load_config,
)
from trustlayer.exceptions import TrustConfigError, TrustErrorCode


def write_config(root: Path, text: str) -> Path:
    path = root / "trust.yaml"
    path.write_text(text)
    return path


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config == TrustConfig()
    assert config.safety.environment == "development"
    assert config.safety.enable_strict_validation is True
    assert config.observability.snapshot_path is None
    assert config.observability.alert_thresholds.latency_ms == 1000


def test_loads_sections_from_yaml(tmp_path: Path) -> None:
    write_config(
        tmp_path,
        """
safety:
  environment: Staging
  block_placeholders: false
observability:
  metric_retention_days: 14
  alert_thresholds:
    latency_ms: 250
logging:
  level: DEBUG
  log_format: json
""",
    )

    config = load_config(tmp_path)

    assert config.safety.environment == "staging"
    assert config.safety.is_staging
    assert config.safety.block_placeholders is False
    assert config.observability.metric_retention_days == 14
    assert config.observability.alert_thresholds.latency_ms == 250
    assert config.observability.alert_thresholds.data_quality_score == 70
    assert config.logging.level == "DEBUG"
    assert config.logging.log_format == "json"


def test_environment_variables_override_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_config(tmp_path, "safety:\n  environment: staging\nlogging:\n  level: INFO\n")
    monkeypatch.setenv("TRUST_ENV", "production")
    monkeypatch.setenv("TRUST_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("TRUST_SNAPSHOT_PATH", str(tmp_path / "snap.json"))

    config = load_config(tmp_path)

    assert config.safety.is_production
    assert config.logging.level == "WARNING"
    assert config.observability.snapshot_path == tmp_path / "snap.json"


def test_explicit_config_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    custom = tmp_path / "conf" / "custom.yaml"
    custom.parent.mkdir()
    custom.write_text("safety:\n  environment: prod\n")
    monkeypatch.setenv("TRUST_CONFIG_PATH", str(custom))

    assert load_config(tmp_path / "elsewhere").safety.is_production


def test_project_path_env_locates_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_config(tmp_path, "safety:\n  environment: qa\n")
    monkeypatch.setenv("TRUST_PROJECT_PATH", str(tmp_path))

    assert load_config().safety.is_staging


def test_config_is_cached_until_cleared(tmp_path: Path) -> None:
    path = write_config(tmp_path, "safety:\n  environment: staging\n")
    first = load_config(tmp_path)

    path.write_text("safety:\n  environment: production\n")
    assert load_config(tmp_path) is first

    clear_config_cache()
    assert load_config(tmp_path).safety.is_production


def test_malformed_yaml_raises(tmp_path: Path) -> None:
    write_config(tmp_path, "safety: [unclosed\n")

    with pytest.raises(TrustConfigError) as exc_info:
        load_config(tmp_path)

    assert exc_info.value.code is TrustErrorCode.INVALID_CONFIG
    assert exc_info.value.cause is not None


def test_non_mapping_yaml_raises(tmp_path: Path) -> None:
    write_config(tmp_path, "- just\n- a list\n")

    with pytest.raises(TrustConfigError, match="mapping"):
        load_config(tmp_path)


def test_unreadable_config_path_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRUST_CONFIG_PATH", str(tmp_path))

    with pytest.raises(TrustConfigError) as exc_info:
        load_config()

    assert exc_info.value.code is TrustErrorCode.CONFIG_FILE_UNREADABLE
    assert isinstance(exc_info.value.cause, OSError)


def test_invalid_values_raise_with_field_paths(tmp_path: Path) -> None:
    write_config(tmp_path, "observability:\n  alert_thresholds:\n    error_rate: 3\n")

    with pytest.raises(TrustConfigError) as exc_info:
        load_config(tmp_path)

    assert any(s.startswith("observability.alert_thresholds.error_rate") for s in exc_info.value.suggestions)


def test_empty_environment_rejected() -> None:
    with pytest.raises(ValueError):
        SafetyConfig(environment="  ")


def test_settings_read_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRUST_LOG_FORMAT", "json")

    settings = TrustSettings()

    assert settings.log_format == "json"
    assert settings.env is None
