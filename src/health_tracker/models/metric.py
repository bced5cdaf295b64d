"""Health metric models."""

import math
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


def round_half_up(value: Optional[float]) -> int:
    """Round to the nearest integer, halves going up. None rounds to 0."""
    if value is None:
        return 0
    return int(math.floor(value + 0.5))


class MetricInput(BaseModel):
    """A validated, normalized metric payload ready for the store."""

    date: str
    steps: int
    heart_rate: int


class Metric(BaseModel):
    """A single health-metric entry."""

    id: int
    date: str  # YYYY-MM-DD
    steps: int
    heart_rate: int
    created_at: Optional[datetime] = None


class MetricCreated(Metric):
    """Create response: the saved entry echoed back with a message."""

    message: str = "Metric saved successfully"


class MetricStats(BaseModel):
    """Store-wide aggregate over all entries."""

    total_entries: int = 0
    avg_steps: int = 0
    avg_heart_rate: int = 0
    max_steps: int = 0
    min_steps: int = 0
    max_heart_rate: int = 0
    min_heart_rate: int = 0


class StatusMessage(BaseModel):
    status: Optional[str] = None
    message: str


class DateRange(BaseModel):
    """Optional inclusive date filter."""

    start: Optional[str] = None
    end: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return bool(self.start or self.end)


class MetricDraft(BaseModel):
    """In-progress form fields, kept as raw strings until the server validates them."""

    date: str = Field(default_factory=lambda: date.today().isoformat())
    steps: str = ""
    heart_rate: str = ""
