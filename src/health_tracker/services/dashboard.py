"""Client-side view-model for the metrics dashboard."""

import time
from datetime import date
from typing import Callable, Optional

from ..clients.api import APIError, HealthTrackerClient
from ..models.metric import DateRange, Metric, MetricDraft, round_half_up


def _sort_entries(entries: list[Metric]) -> list[Metric]:
    return sorted(entries, key=lambda m: m.date)


def _normalize(values: list[float]) -> list[float]:
    """Min-max scale to [0, 1]; a flat series sits at 0.5."""
    if not values:
        return []
    low, high = min(values), max(values)
    if high == low:
        return [0.5 for _ in values]
    return [(v - low) / (high - low) for v in values]


class DashboardViewModel:
    """
    State behind the dashboard: the loaded entries, the form draft, the date
    filter and transient loading/error/success flags.

    The server is the only source of validation truth: drafts are sent as raw
    strings. After a successful submit the saved row is appended locally and
    then replaced by a full refetch, which always wins.

    ``avg_steps``/``avg_heart_rate`` are computed from the loaded (possibly
    filtered) entries and can differ from the server's ``/stats``.
    """

    SUCCESS_WINDOW_SECONDS = 3.0
    SUCCESS_MESSAGE = "Metric saved successfully!"

    def __init__(
        self,
        client: HealthTrackerClient,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = date.today,
    ):
        self.client = client
        self._clock = clock
        self._today = today

        self.entries: list[Metric] = []
        self.draft = MetricDraft(date=today().isoformat())
        self.date_range = DateRange()
        self.loading = False
        self.error = ""
        self._success = ""
        self._success_until = 0.0

    # --- Flags ---

    @property
    def success(self) -> str:
        """The success message while its display window is open, else ''."""
        if self._success and self._clock() < self._success_until:
            return self._success
        return ""

    def _flash_success(self, message: str) -> None:
        self._success = message
        self._success_until = self._clock() + self.SUCCESS_WINDOW_SECONDS

    # --- Loading ---

    def load(self) -> None:
        """Refetch the filtered list from the server."""
        self.loading = True
        try:
            entries = self.client.list_metrics(self.date_range.start, self.date_range.end)
            self.entries = _sort_entries(entries)
            self.error = ""
        except APIError as e:
            self.error = e.message or "Failed to fetch metrics"
        finally:
            self.loading = False

    def set_date_range(self, start: Optional[str] = None, end: Optional[str] = None) -> None:
        self.date_range = DateRange(start=start or None, end=end or None)
        self.load()

    def clear_date_range(self) -> None:
        self.set_date_range(None, None)

    # --- Form ---

    def update_draft(self, **fields: str) -> None:
        self.draft = self.draft.model_copy(update=fields)

    def reset_draft(self) -> None:
        self.draft = MetricDraft(date=self._today().isoformat())

    def submit(self) -> bool:
        """Send the draft to the server. Returns True if it was saved.

        Does nothing while a request is outstanding.
        """
        if self.loading:
            return False

        self.loading = True
        self.error = ""
        self._success = ""
        try:
            saved = self.client.create_metric(
                self.draft.date, self.draft.steps, self.draft.heart_rate
            )
        except APIError as e:
            self.error = e.message or "Failed to save metric"
            self.loading = False
            return False

        # Optimistic update with the saved row
        echoed = Metric.model_validate(saved.model_dump(exclude={"message"}))
        self.entries = _sort_entries([*self.entries, echoed])
        self._flash_success(self.SUCCESS_MESSAGE)
        self.reset_draft()
        self.loading = False

        # Keep state canonical
        self.load()
        return True

    # --- Derived aggregates ---

    @property
    def total_entries(self) -> int:
        return len(self.entries)

    @property
    def avg_steps(self) -> int:
        if not self.entries:
            return 0
        return round_half_up(sum(m.steps for m in self.entries) / len(self.entries))

    @property
    def avg_heart_rate(self) -> int:
        if not self.entries:
            return 0
        return round_half_up(sum(m.heart_rate for m in self.entries) / len(self.entries))

    def trend_series(self, overlay: bool = False) -> list[dict]:
        """Chart points for the loaded entries.

        With ``overlay`` both series are scaled to [0, 1] so steps and heart
        rate can share one axis.
        """
        if not overlay:
            return [
                {"date": m.date, "steps": m.steps, "heart_rate": m.heart_rate}
                for m in self.entries
            ]

        steps = _normalize([float(m.steps) for m in self.entries])
        heart_rates = _normalize([float(m.heart_rate) for m in self.entries])
        return [
            {"date": m.date, "steps": s, "heart_rate": hr}
            for m, s, hr in zip(self.entries, steps, heart_rates)
        ]
