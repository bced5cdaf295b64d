"""Web API for the Health Tracker."""

import uvicorn

from ..utils.config import get_settings


def run(host: str = None, port: int = None, reload: bool = False):
    """Run the web server."""
    settings = get_settings()
    uvicorn.run(
        "health_tracker.web.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


__all__ = ["run"]
