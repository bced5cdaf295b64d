"""Business logic services."""

from .dashboard import DashboardViewModel
from .database import MetricsDB
from .errors import HealthTrackerError, NotFoundError, StoreError, ValidationError
from .storage import MetricStorage
from .store import MetricStore, open_store
from .validation import validate_metric

__all__ = [
    "MetricStore",
    "MetricsDB",
    "MetricStorage",
    "open_store",
    "validate_metric",
    "DashboardViewModel",
    "HealthTrackerError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
]
