"""HTTP client for the Health Tracker REST API."""

import time
from typing import Any, Optional

import httpx

from ..models.metric import Metric, MetricCreated, MetricStats, StatusMessage
from ..utils.config import Settings, get_settings


class APIError(Exception):
    """A failed API call. ``status_code`` is 0 for transport failures."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class HealthTrackerClient:
    """
    Client for the metrics API.

    Pass ``http`` to reuse an existing httpx client (FastAPI's TestClient
    works too); its base URL must point at the ``/api`` prefix.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.settings = settings or get_settings()
        self._client = http

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.settings.resolved_api_url,
                timeout=self.settings.request_timeout,
            )
        return self._client

    def _request(self, method: str, path: str, fallback: str, **kwargs) -> Any:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise APIError(0, f"{fallback}: {e}") from e

        if response.is_error:
            try:
                message = response.json().get("error") or fallback
            except (ValueError, AttributeError):
                message = fallback
            raise APIError(response.status_code, message)
        return response.json()

    def health(self) -> StatusMessage:
        data = self._request("GET", "health", "Health check failed")
        return StatusMessage.model_validate(data)

    def list_metrics(self, start: Optional[str] = None, end: Optional[str] = None) -> list[Metric]:
        """Fetch entries, bypassing any HTTP cache on the way."""
        params = {}
        if start:
            params["start"] = start
        if end:
            params["end"] = end
        params["t"] = str(time.time_ns() // 1_000_000)  # cache-buster

        data = self._request(
            "GET",
            "metrics",
            "Failed to fetch metrics",
            params=params,
            headers={"Cache-Control": "no-store"},
        )
        return [Metric.model_validate(row) for row in data]

    def create_metric(self, date: Any, steps: Any, heart_rate: Any) -> MetricCreated:
        """Send raw field values; the server validates and parses them."""
        data = self._request(
            "POST",
            "metrics",
            "Failed to save metric",
            json={"date": date, "steps": steps, "heart_rate": heart_rate},
        )
        return MetricCreated.model_validate(data)

    def get_metric(self, metric_id: int) -> Metric:
        data = self._request("GET", f"metrics/{metric_id}", "Failed to fetch metric")
        return Metric.model_validate(data)

    def delete_metric(self, metric_id: int) -> StatusMessage:
        data = self._request("DELETE", f"metrics/{metric_id}", "Failed to delete metric")
        return StatusMessage.model_validate(data)

    def get_stats(self) -> MetricStats:
        data = self._request("GET", "stats", "Failed to fetch statistics")
        return MetricStats.model_validate(data)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "HealthTrackerClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
