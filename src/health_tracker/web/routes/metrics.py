"""Routes for health metrics.

Handlers are plain functions registered under every path that serves them,
so ``/entries`` and ``/entry-stats`` stay available for older clients.
"""

import re
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from ...models.metric import Metric, MetricCreated, MetricStats, StatusMessage
from ...services.errors import NotFoundError
from ...services.store import MetricStore
from ...services.validation import MAX_STORED_INTEGER, validate_metric
from ...utils.log_config import get_logger

logger = get_logger(__name__)

ID_PATTERN = re.compile(r"-?[0-9]+")

router = APIRouter()


def get_store(request: Request) -> MetricStore:
    """Store attached to the running app."""
    return request.app.state.store


def _parse_id(metric_id: str) -> int:
    # An id that can't match any row is simply not found
    if not ID_PATTERN.fullmatch(metric_id):
        raise NotFoundError()
    value = int(metric_id)
    if not -MAX_STORED_INTEGER - 1 <= value <= MAX_STORED_INTEGER:
        raise NotFoundError()
    return value


def health_check() -> StatusMessage:
    """Health check endpoint."""
    return StatusMessage(status="ok", message="Health Tracker API is running")


def list_metrics(
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
    store: MetricStore = Depends(get_store),
) -> list[Metric]:
    """List metrics, ascending by date, optionally within [start, end]."""
    return store.list(start=start, end=end)


def create_metric(
    payload: Any = Body(default=None),
    store: MetricStore = Depends(get_store),
) -> MetricCreated:
    """Validate and save a new metric.

    Anything other than a JSON object (an array, a form post) is read as an
    empty payload.
    """
    metric = validate_metric(payload if isinstance(payload, dict) else {})
    saved = store.create(metric.date, metric.steps, metric.heart_rate)
    logger.info("Saved metric %s for %s", saved.id, saved.date)
    return MetricCreated(**saved.model_dump())


def get_metric(metric_id: str, store: MetricStore = Depends(get_store)) -> Metric:
    return store.get(_parse_id(metric_id))


def delete_metric(metric_id: str, store: MetricStore = Depends(get_store)) -> StatusMessage:
    store.delete(_parse_id(metric_id))
    logger.info("Deleted metric %s", metric_id)
    return StatusMessage(message="Metric deleted successfully")


def get_stats(store: MetricStore = Depends(get_store)) -> MetricStats:
    """Aggregate statistics over all metrics."""
    return store.stats()


router.add_api_route("/health", health_check, methods=["GET"], response_model=StatusMessage)

for collection in ("/metrics", "/entries"):
    router.add_api_route(
        collection, list_metrics, methods=["GET"], response_model=list[Metric],
    )
    router.add_api_route(
        collection, create_metric, methods=["POST"], status_code=201,
        response_model=MetricCreated,
    )
    router.add_api_route(
        collection + "/{metric_id}", get_metric, methods=["GET"], response_model=Metric,
    )
    router.add_api_route(
        collection + "/{metric_id}", delete_metric, methods=["DELETE"],
        response_model=StatusMessage, response_model_exclude_none=True,
    )

for stats_path in ("/stats", "/entry-stats"):
    router.add_api_route(stats_path, get_stats, methods=["GET"], response_model=MetricStats)
