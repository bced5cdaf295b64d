"""DuckDB-backed metric store."""

import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import duckdb

from ..models.metric import Metric, MetricStats, round_half_up
from ..utils.config import get_settings
from ..utils.log_config import get_logger
from .errors import NotFoundError, StoreError

logger = get_logger(__name__)

METRIC_COLUMNS = "id, date, steps, heart_rate, created_at"


class MetricsDB:
    """
    DuckDB database holding the ``metrics`` table.

    One connection is shared by all callers; a lock serializes access to it,
    so concurrent creates commit in lock order.
    """

    def __init__(self, db_path: Optional[Union[Path, str]] = None):
        settings = get_settings()
        self.db_path = Path(db_path) if db_path is not None else settings.database_file
        if str(self.db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.RLock()

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = duckdb.connect(str(self.db_path))
            logger.info("Connected to DuckDB: %s", self.db_path)
            self._init_schema()
        return self._conn

    def _init_schema(self) -> None:
        """Create the metrics table if it does not exist yet."""
        self.conn.execute("CREATE SEQUENCE IF NOT EXISTS metrics_id_seq START 1")
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS metrics (
                id BIGINT PRIMARY KEY DEFAULT nextval('metrics_id_seq'),
                date VARCHAR NOT NULL,
                steps BIGINT NOT NULL,
                heart_rate INTEGER NOT NULL,
                created_at TIMESTAMP NOT NULL
            )
        """)
        logger.info("Database table ready")

    @staticmethod
    def _row_to_metric(row: tuple) -> Metric:
        return Metric(
            id=row[0],
            date=row[1],
            steps=row[2],
            heart_rate=row[3],
            created_at=row[4],
        )

    def create(self, date: str, steps: int, heart_rate: int) -> Metric:
        """Insert a row and return it with its assigned id."""
        created_at = datetime.now()
        try:
            with self._lock:
                row = self.conn.execute(
                    f"""
                    INSERT INTO metrics (date, steps, heart_rate, created_at)
                    VALUES (?, ?, ?, ?)
                    RETURNING {METRIC_COLUMNS}
                    """,
                    [date, steps, heart_rate, created_at],
                ).fetchone()
        except duckdb.Error as e:
            logger.exception("Error saving metric")
            raise StoreError("Failed to save metric") from e
        return self._row_to_metric(row)

    def list(self, start: Optional[str] = None, end: Optional[str] = None) -> list[Metric]:
        """List entries ascending by date, optionally within [start, end]."""
        query = f"SELECT {METRIC_COLUMNS} FROM metrics"
        conditions = []
        params = []

        if start:
            conditions.append("date >= ?")
            params.append(start)
        if end:
            conditions.append("date <= ?")
            params.append(end)

        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        query += " ORDER BY date ASC, id ASC"

        try:
            with self._lock:
                rows = self.conn.execute(query, params).fetchall()
        except duckdb.Error as e:
            logger.exception("Error fetching metrics")
            raise StoreError("Failed to fetch metrics") from e
        return [self._row_to_metric(row) for row in rows]

    def get(self, metric_id: int) -> Metric:
        try:
            with self._lock:
                row = self.conn.execute(
                    f"SELECT {METRIC_COLUMNS} FROM metrics WHERE id = ?",
                    [metric_id],
                ).fetchone()
        except duckdb.Error as e:
            logger.exception("Error fetching metric %s", metric_id)
            raise StoreError("Failed to fetch metric") from e
        if row is None:
            raise NotFoundError()
        return self._row_to_metric(row)

    def delete(self, metric_id: int) -> None:
        try:
            with self._lock:
                deleted = self.conn.execute(
                    "DELETE FROM metrics WHERE id = ? RETURNING id",
                    [metric_id],
                ).fetchall()
        except duckdb.Error as e:
            logger.exception("Error deleting metric %s", metric_id)
            raise StoreError("Failed to delete metric") from e
        if not deleted:
            raise NotFoundError()

    def stats(self) -> MetricStats:
        """Count, averages and extremes over all entries in one query."""
        try:
            with self._lock:
                row = self.conn.execute("""
                    SELECT
                        COUNT(*) AS total_entries,
                        AVG(steps) AS avg_steps,
                        AVG(heart_rate) AS avg_heart_rate,
                        MAX(steps) AS max_steps,
                        MIN(steps) AS min_steps,
                        MAX(heart_rate) AS max_heart_rate,
                        MIN(heart_rate) AS min_heart_rate
                    FROM metrics
                """).fetchone()
        except duckdb.Error as e:
            logger.exception("Error computing statistics")
            raise StoreError("Failed to fetch statistics") from e

        total, avg_steps, avg_hr, max_steps, min_steps, max_hr, min_hr = row
        return MetricStats(
            total_entries=total or 0,
            avg_steps=round_half_up(avg_steps),
            avg_heart_rate=round_half_up(avg_hr),
            max_steps=max_steps or 0,
            min_steps=min_steps or 0,
            max_heart_rate=max_hr or 0,
            min_heart_rate=min_hr or 0,
        )

    def close(self) -> None:
        """Close database connection with checkpoint."""
        with self._lock:
            if self._conn:
                # Checkpoint to flush WAL
                try:
                    self._conn.execute("CHECKPOINT")
                except duckdb.Error as e:
                    logger.warning("Checkpoint failed on close: %s", e)
                self._conn.close()
                self._conn = None
                logger.info("Database connection closed")

    def __enter__(self) -> "MetricsDB":
        return self

    def __exit__(self, *args) -> None:
        self.close()
