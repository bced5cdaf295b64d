"""Data models for the health tracker."""

from .metric import (
    DateRange,
    Metric,
    MetricCreated,
    MetricDraft,
    MetricInput,
    MetricStats,
    StatusMessage,
    round_half_up,
)

__all__ = [
    "Metric",
    "MetricCreated",
    "MetricInput",
    "MetricStats",
    "MetricDraft",
    "DateRange",
    "StatusMessage",
    "round_half_up",
]
