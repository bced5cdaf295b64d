"""Local storage service using TinyDB."""

import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from tinydb import Query, TinyDB
from tinydb.storages import MemoryStorage
from tinydb.table import Document

from ..models.metric import Metric, MetricStats, round_half_up
from ..utils.log_config import get_logger
from .errors import NotFoundError, StoreError

logger = get_logger(__name__)


class MetricStorage:
    """
    Metric store on top of TinyDB.

    Data is stored as JSON at ``db_path``. Without a path the documents live
    in memory, which makes this the store of choice for tests. TinyDB
    document ids are the entry ids.
    """

    def __init__(self, db_path: Optional[Union[Path, str]] = None):
        self.db_path = Path(db_path) if db_path is not None else None
        self._db: Optional[TinyDB] = None
        self._lock = threading.RLock()

    @property
    def db(self) -> TinyDB:
        """Get the TinyDB instance."""
        if self._db is None:
            if self.db_path is None:
                self._db = TinyDB(storage=MemoryStorage)
            else:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                self._db = TinyDB(self.db_path)
                logger.info("Opened TinyDB store: %s", self.db_path)
        return self._db

    @staticmethod
    def _to_metric(doc: Document) -> Metric:
        return Metric(id=doc.doc_id, **doc)

    def create(self, date: str, steps: int, heart_rate: int) -> Metric:
        """Insert a document and return it with its assigned id."""
        record = {
            "date": date,
            "steps": steps,
            "heart_rate": heart_rate,
            "created_at": datetime.now().isoformat(),
        }
        try:
            with self._lock:
                doc_id = self.db.insert(record)
        except (OSError, ValueError) as e:
            logger.exception("Error saving metric")
            raise StoreError("Failed to save metric") from e
        return Metric(id=doc_id, **record)

    def list(self, start: Optional[str] = None, end: Optional[str] = None) -> list[Metric]:
        """List entries ascending by date, optionally within [start, end]."""
        Entry = Query()
        condition = None
        if start:
            condition = Entry.date >= start
        if end:
            upper = Entry.date <= end
            condition = upper if condition is None else condition & upper

        try:
            with self._lock:
                docs = self.db.all() if condition is None else self.db.search(condition)
        except (OSError, ValueError) as e:
            logger.exception("Error fetching metrics")
            raise StoreError("Failed to fetch metrics") from e

        docs.sort(key=lambda d: (d["date"], d.doc_id))
        return [self._to_metric(d) for d in docs]

    def get(self, metric_id: int) -> Metric:
        try:
            with self._lock:
                doc = self.db.get(doc_id=metric_id)
        except (OSError, ValueError) as e:
            logger.exception("Error fetching metric %s", metric_id)
            raise StoreError("Failed to fetch metric") from e
        if doc is None:
            raise NotFoundError()
        return self._to_metric(doc)

    def delete(self, metric_id: int) -> None:
        try:
            with self._lock:
                if not self.db.contains(doc_id=metric_id):
                    raise NotFoundError()
                self.db.remove(doc_ids=[metric_id])
        except (OSError, ValueError) as e:
            logger.exception("Error deleting metric %s", metric_id)
            raise StoreError("Failed to delete metric") from e

    def stats(self) -> MetricStats:
        try:
            with self._lock:
                docs = self.db.all()
        except (OSError, ValueError) as e:
            logger.exception("Error computing statistics")
            raise StoreError("Failed to fetch statistics") from e

        if not docs:
            return MetricStats()

        steps = [d["steps"] for d in docs]
        heart_rates = [d["heart_rate"] for d in docs]
        return MetricStats(
            total_entries=len(docs),
            avg_steps=round_half_up(sum(steps) / len(steps)),
            avg_heart_rate=round_half_up(sum(heart_rates) / len(heart_rates)),
            max_steps=max(steps),
            min_steps=min(steps),
            max_heart_rate=max(heart_rates),
            min_heart_rate=min(heart_rates),
        )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._db:
                self._db.close()
                self._db = None

    def __enter__(self) -> "MetricStorage":
        return self

    def __exit__(self, *args) -> None:
        self.close()
