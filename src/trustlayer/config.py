"""
Trust Layer Configuration

Pydantic models for the safety, observability and logging sections of
``trust.yaml`` plus environment-driven settings (``TRUST_*`` variables).
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trustlayer.exceptions import TrustConfigError, TrustErrorCode
from trustlayer.logging import LoggingSettings

CONFIG_FILENAME = "trust.yaml"

PRODUCTION_ENVIRONMENTS = ("production", "prod")
STAGING_ENVIRONMENTS = ("staging", "stage", "qa")


class SafetyConfig(BaseModel):
    """Policy switches for the safety orchestrator.

    Example in trust.yaml:
        safety:
          environment: production
          block_placeholders: true
          enable_strict_validation: true
    """

    environment: str = Field(
        default="development",
        description="Deployment environment; production/staging escalate placeholder handling.",
    )
    enable_strict_validation: bool = Field(
        default=True,
        description="Block guarded writes whose data fails its contract.",
    )
    block_placeholders: bool = Field(
        default=True,
        description="Scan data for placeholders in production and staging.",
    )
    require_data_contracts: bool = Field(
        default=True,
        description="Report that contract validation is expected for data-bearing operations.",
    )
    enable_observability: bool = Field(
        default=True,
        description="Report observability hooks as part of every safety check.",
    )

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("environment cannot be empty")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment in PRODUCTION_ENVIRONMENTS

    @property
    def is_staging(self) -> bool:
        return self.environment in STAGING_ENVIRONMENTS


class AlertThresholds(BaseModel):
    """Thresholds that turn recorded metrics into alerts."""

    error_rate: float = Field(default=0.05, ge=0, le=1, description="Max error log ratio (0-1)")
    latency_ms: float = Field(default=1000, ge=0, description="Max duration/latency in ms")
    data_quality_score: float = Field(
        default=70, ge=0, le=100, description="Min data quality score (0-100)"
    )
    placeholder_count: int = Field(
        default=0, ge=0, description="Placeholder count above which alerts escalate to error"
    )


class ObservabilityConfig(BaseModel):
    """Observability engine configuration."""

    enable_metrics: bool = True
    enable_logging: bool = True
    enable_tracing: bool = True
    enable_alerts: bool = True
    enable_health_checks: bool = True
    metric_retention_days: float = Field(default=30, gt=0)
    log_retention_days: float = Field(default=7, gt=0)
    alert_thresholds: AlertThresholds = Field(default_factory=AlertThresholds)
    cleanup_interval_seconds: float = Field(default=60 * 60, gt=0)
    health_check_interval_seconds: float = Field(default=5 * 60, gt=0)
    snapshot_path: Optional[Path] = Field(
        default=None,
        description="JSON snapshot file for metrics/logs/alerts. None disables persistence.",
    )


class TrustConfig(BaseModel):
    """Complete trust layer configuration."""

    safety: SafetyConfig = Field(default_factory=SafetyConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class TrustSettings(BaseSettings):
    """Environment overrides for the trust layer."""

    model_config = SettingsConfigDict(
        env_prefix="TRUST_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    env: Optional[str] = Field(default=None, description="Overrides safety.environment")
    log_level: Optional[str] = Field(default=None, description="Overrides logging.level")
    log_format: Optional[Literal["console", "json"]] = Field(
        default=None, description="Overrides logging.log_format"
    )
    config_path: Optional[Path] = Field(
        default=None, description="Explicit path to trust.yaml"
    )
    snapshot_path: Optional[Path] = Field(
        default=None, description="Overrides observability.snapshot_path"
    )


def _read_yaml(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise TrustConfigError(
            f"Could not read {config_path}",
            suggestions=["Check that the path is a readable file"],
            cause=exc,
            code=TrustErrorCode.CONFIG_FILE_UNREADABLE,
        ) from exc
    except yaml.YAMLError as exc:
        raise TrustConfigError(
            f"Could not parse {config_path}",
            suggestions=["Check that the file is valid YAML"],
            cause=exc,
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TrustConfigError(
            f"{config_path} must contain a mapping at the top level",
            suggestions=["Use sections: safety, observability, logging"],
        )
    return data


def _apply_settings(data: dict[str, Any], settings: TrustSettings) -> dict[str, Any]:
    merged = {key: dict(value or {}) for key, value in data.items() if isinstance(value, dict)}
    if settings.env:
        merged.setdefault("safety", {})["environment"] = settings.env
    if settings.log_level:
        merged.setdefault("logging", {})["level"] = settings.log_level
    if settings.log_format:
        merged.setdefault("logging", {})["log_format"] = settings.log_format
    if settings.snapshot_path:
        merged.setdefault("observability", {})["snapshot_path"] = settings.snapshot_path
    return merged


@lru_cache(maxsize=1)
def load_config(project_root: Optional[Path] = None) -> TrustConfig:
    """Load configuration from trust.yaml, applying TRUST_* environment overrides.

    A missing file yields defaults; a malformed file raises TrustConfigError.
    """
    settings = TrustSettings()

    if settings.config_path is not None:
        config_path = settings.config_path
    else:
        root = project_root or Path(os.environ.get("TRUST_PROJECT_PATH") or Path.cwd())
        config_path = root / CONFIG_FILENAME

    data = _read_yaml(config_path) if config_path.exists() else {}

    try:
        return TrustConfig(**_apply_settings(data, settings))
    except ValidationError as exc:
        raise TrustConfigError(
            f"Invalid trust layer configuration in {config_path}",
            suggestions=[
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            ],
            cause=exc,
        ) from exc


def clear_config_cache() -> None:
    """Clear the configuration cache."""
    load_config.cache_clear()
