"""Metric store interface and backend selection."""

from typing import Optional, Protocol

from ..models.metric import Metric, MetricStats
from ..utils.config import Settings, get_settings


class MetricStore(Protocol):
    """Single-table store of health entries.

    Implementations bind every parameter out-of-band and raise
    NotFoundError / StoreError from ``services.errors``.
    """

    def create(self, date: str, steps: int, heart_rate: int) -> Metric: ...

    def list(self, start: Optional[str] = None, end: Optional[str] = None) -> list[Metric]: ...

    def get(self, metric_id: int) -> Metric: ...

    def delete(self, metric_id: int) -> None: ...

    def stats(self) -> MetricStats: ...

    def close(self) -> None: ...


def open_store(settings: Optional[Settings] = None) -> MetricStore:
    """Open the store configured by ``storage_backend``."""
    settings = settings or get_settings()

    if settings.storage_backend == "tinydb":
        from .storage import MetricStorage
        return MetricStorage(settings.database_file)

    from .database import MetricsDB
    return MetricsDB(settings.database_file)
