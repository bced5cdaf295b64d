"""Error taxonomy shared by the store and the API layer."""


class HealthTrackerError(Exception):
    """Base error. Carries the HTTP status and the client-facing message."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HealthTrackerError):
    """A rejected write due to malformed or out-of-range input."""

    status_code = 400


class NotFoundError(HealthTrackerError):
    """No entry matches the requested id."""

    status_code = 404

    def __init__(self, message: str = "Metric not found"):
        super().__init__(message)


class StoreError(HealthTrackerError):
    """Underlying storage failure. The message is opaque; the cause is logged."""

    status_code = 500
