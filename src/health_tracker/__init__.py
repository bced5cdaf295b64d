"""Health Tracker - log daily steps and heart rate, browse trends."""

__version__ = "0.1.0"
