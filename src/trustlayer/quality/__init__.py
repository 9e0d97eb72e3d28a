"""Data quality scoring and anomaly detection."""

from trustlayer.quality.analyzer import (
    QUALITY_THRESHOLDS,
    SCORE_WEIGHTS,
    Anomaly,
    AnomalyType,
    DataQualityAnalyzer,
    DataQualityMetrics,
)

__all__ = [
    "QUALITY_THRESHOLDS",
    "SCORE_WEIGHTS",
    "Anomaly",
    "AnomalyType",
    "DataQualityAnalyzer",
    "DataQualityMetrics",
]
