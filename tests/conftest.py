"""Shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from health_tracker.clients import HealthTrackerClient
from health_tracker.services import MetricStorage
from health_tracker.utils.config import Settings
from health_tracker.web.app import create_app


@pytest.fixture
def settings(tmp_path):
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<div id='root'></div>")
    (static_dir / "app.js").write_text("console.log('hi');")
    return Settings(data_dir=tmp_path / "data", static_dir=static_dir)


@pytest.fixture
def store():
    """In-memory TinyDB store."""
    with MetricStorage() as storage:
        yield storage


@pytest.fixture
def app(store, settings):
    return create_app(store=store, settings=settings)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def api_client(app, settings):
    """API client talking to the in-process app."""
    http = TestClient(app, base_url="http://testserver/api", raise_server_exceptions=False)
    return HealthTrackerClient(settings=settings, http=http)
