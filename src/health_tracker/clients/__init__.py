"""API clients."""

from .api import APIError, HealthTrackerClient

__all__ = ["APIError", "HealthTrackerClient"]
