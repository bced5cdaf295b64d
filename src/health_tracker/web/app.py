"""FastAPI web application."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..services.errors import HealthTrackerError
from ..services.store import MetricStore, open_store
from ..utils.config import Settings, get_settings
from ..utils.log_config import configure_logging, get_logger
from .routes import metrics

logger = get_logger(__name__)

API_PREFIX = "/api"
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
NO_STORE = {"Cache-Control": "no-store"}


class SPAStaticFiles(StaticFiles):
    """Static files that fall back to the single-page app shell."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


def create_app(
    store: Optional[MetricStore] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the app. Without ``store`` one is opened from settings at startup."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.store is None
        if owned:
            app.state.store = open_store(settings)
        logger.info("API at http://%s:%s%s", settings.host, settings.port, API_PREFIX)
        try:
            yield
        finally:
            if owned:
                app.state.store.close()
                app.state.store = None

    app = FastAPI(
        title="Health Tracker",
        description="Daily steps and heart-rate logging",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.settings = settings

    @app.middleware("http")
    async def no_store_for_api(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(API_PREFIX):
            response.headers.update(NO_STORE)
        return response

    @app.exception_handler(HealthTrackerError)
    async def handle_tracker_error(request: Request, exc: HealthTrackerError):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_bad_request(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": "Invalid JSON body"}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        # Runs outside the middleware stack, so the API cache header is set here
        headers = NO_STORE if request.url.path.startswith(API_PREFIX) else None
        return JSONResponse({"error": "Internal server error"}, status_code=500, headers=headers)

    app.include_router(metrics.router, prefix=API_PREFIX, tags=["metrics"])

    @app.api_route(API_PREFIX, methods=ALL_METHODS, include_in_schema=False)
    @app.api_route(API_PREFIX + "/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def api_not_found():
        return JSONResponse({"error": "Endpoint not found"}, status_code=404)

    # Mount static files last so the API routes match first
    static_dir = Path(settings.static_dir)
    if static_dir.exists():
        app.mount("/", SPAStaticFiles(directory=static_dir, html=True), name="spa")

    return app
