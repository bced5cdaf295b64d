"""Tests for the REST API."""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from health_tracker.services import MetricsDB
from health_tracker.services.errors import StoreError
from health_tracker.web.app import create_app

SAMPLE = {"date": "2024-06-01", "steps": 8500, "heart_rate": 72}


def post_metric(client, path="/api/metrics", **overrides):
    return client.post(path, json={**SAMPLE, **overrides})


@pytest.fixture
def duckdb_client(tmp_path, settings):
    """Client for an app backed by a file DuckDB store."""
    with MetricsDB(tmp_path / "api.duckdb") as db:
        yield TestClient(create_app(store=db, settings=settings), raise_server_exceptions=False)


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        """Test health check reports ok and is never cached."""
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "message": "Health Tracker API is running"}
        assert response.headers["cache-control"] == "no-store"


class TestCreate:
    """Tests for creating metrics."""

    def test_create_returns_201_with_id(self, client):
        """Test a valid entry is saved and echoed back."""
        response = post_metric(client)

        assert response.status_code == 201
        body = response.json()
        assert body["id"] >= 1
        assert body["date"] == "2024-06-01"
        assert body["steps"] == 8500
        assert body["heart_rate"] == 72
        assert body["message"] == "Metric saved successfully"

    def test_string_fields_are_normalized(self, client):
        """Test numeric strings are stored as integers."""
        response = client.post(
            "/api/metrics", json={"date": "2024-06-01", "steps": "8500", "heart_rate": "72"}
        )

        assert response.status_code == 201
        assert response.json()["steps"] == 8500
        assert response.json()["heart_rate"] == 72

    def test_validation_error_is_400(self, client, store):
        """Test a rejected entry is not stored."""
        response = post_metric(client, heart_rate=221)

        assert response.status_code == 400
        assert response.json() == {"error": "Heart rate must be between 30 and 220 bpm"}
        assert store.list() == []

    def test_missing_date_and_steps_reports_date(self, client):
        """Test the date error wins when several fields are missing."""
        response = client.post("/api/metrics", json={"heart_rate": 70})
        assert response.json() == {"error": "Date is required"}

    def test_future_date_rejected(self, client):
        """Test tomorrow's date is refused."""
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        response = post_metric(client, date=tomorrow)

        assert response.status_code == 400
        assert response.json() == {"error": "Date cannot be in the future"}

    def test_today_accepted(self, client):
        """Test today's date is allowed."""
        assert post_metric(client, date=date.today().isoformat()).status_code == 201

    def test_no_body_is_date_required(self, client):
        """Test an empty request reads as an empty payload."""
        response = client.post("/api/metrics")

        assert response.status_code == 400
        assert response.json() == {"error": "Date is required"}

    def test_array_body_is_date_required(self, client, store):
        """Test a JSON array reads as an empty payload."""
        response = client.post("/api/metrics", json=[SAMPLE])

        assert response.status_code == 400
        assert response.json() == {"error": "Date is required"}
        assert store.list() == []

    def test_form_body_is_date_required(self, client):
        """Test a form post reads as an empty payload."""
        response = client.post("/api/metrics", data={"date": "2024-06-01", "steps": "1"})

        assert response.status_code == 400
        assert response.json() == {"error": "Date is required"}

    def test_malformed_json_is_400(self, client):
        """Test unparseable JSON is reported as such."""
        response = client.post(
            "/api/metrics", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body"}

    def test_steps_beyond_32_bits_are_stored(self, duckdb_client):
        """Test step counts above 2**31 round-trip through DuckDB."""
        response = post_metric(duckdb_client, steps=3_000_000_000)

        assert response.status_code == 201
        assert response.json()["steps"] == 3_000_000_000
        fetched = duckdb_client.get(f"/api/metrics/{response.json()['id']}").json()
        assert fetched["steps"] == 3_000_000_000

    def test_steps_beyond_64_bits_are_rejected(self, duckdb_client):
        """Test step counts that no column can hold fail validation."""
        response = post_metric(duckdb_client, steps=2**63)

        assert response.status_code == 400
        assert response.json() == {"error": "Steps must be a positive integer"}


class TestReadAndList:
    """Tests for reading and listing metrics."""

    def test_round_trip(self, client):
        """Test a created entry can be fetched by id."""
        created = post_metric(client).json()
        response = client.get(f"/api/metrics/{created['id']}")

        assert response.status_code == 200
        fetched = response.json()
        assert (fetched["date"], fetched["steps"], fetched["heart_rate"]) == ("2024-06-01", 8500, 72)

    def test_get_missing_is_404(self, client):
        """Test an unknown id is not found."""
        response = client.get("/api/metrics/999")

        assert response.status_code == 404
        assert response.json() == {"error": "Metric not found"}

    def test_non_numeric_id_is_404(self, client):
        """Test a non-numeric id is not found."""
        assert client.get("/api/metrics/abc").status_code == 404

    @pytest.mark.parametrize("method", ["get", "delete"])
    def test_oversized_id_is_404(self, duckdb_client, method):
        """Test an id wider than 64 bits is not found."""
        response = getattr(duckdb_client, method)("/api/metrics/" + "9" * 41)

        assert response.status_code == 404
        assert response.json() == {"error": "Metric not found"}

    @pytest.mark.parametrize("metric_id", ["0_{}", "+{}", " {}", "{}.0"])
    def test_loosely_numeric_id_is_404(self, duckdb_client, metric_id):
        """Test ids are digits only, without separators or signs."""
        created = post_metric(duckdb_client).json()

        response = duckdb_client.get("/api/metrics/" + metric_id.format(created["id"]))

        assert response.status_code == 404
        assert response.json() == {"error": "Metric not found"}

    def test_list_filters_and_sorts(self, client):
        """Test the range filter is inclusive and results are date-ordered."""
        for day in ("2024-01-21", "2024-01-15", "2024-01-09", "2024-01-10", "2024-01-20"):
            post_metric(client, date=day)

        response = client.get("/api/metrics", params={"start": "2024-01-10", "end": "2024-01-20"})

        assert response.status_code == 200
        assert [m["date"] for m in response.json()] == ["2024-01-10", "2024-01-15", "2024-01-20"]

    def test_list_ignores_unknown_params(self, client):
        """Test cache-busting params don't affect the listing."""
        post_metric(client)
        response = client.get("/api/metrics", params={"t": "1718000000000"})
        assert len(response.json()) == 1


class TestDelete:
    """Tests for deleting metrics."""

    def test_delete_then_delete_again(self, client):
        """Test the second delete of an entry is not found."""
        created = post_metric(client).json()

        first = client.delete(f"/api/metrics/{created['id']}")
        second = client.delete(f"/api/metrics/{created['id']}")

        assert first.status_code == 200
        assert first.json() == {"message": "Metric deleted successfully"}
        assert second.status_code == 404
        assert second.json() == {"error": "Metric not found"}

    def test_delete_missing_is_404(self, client):
        """Test deleting an unknown id."""
        assert client.delete("/api/metrics/42").status_code == 404


class TestStats:
    """Tests for aggregate statistics."""

    def test_empty_stats(self, client):
        """Test every aggregate is zero with no entries."""
        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {
            "total_entries": 0,
            "avg_steps": 0,
            "avg_heart_rate": 0,
            "max_steps": 0,
            "min_steps": 0,
            "max_heart_rate": 0,
            "min_heart_rate": 0,
        }

    def test_example_flow(self, client):
        """Test create, list and stats agree."""
        created = post_metric(client)
        assert created.status_code == 201
        new_id = created.json()["id"]

        listed = client.get("/api/metrics").json()
        assert [m["id"] for m in listed] == [new_id]

        stats = client.get("/api/stats").json()
        assert stats["total_entries"] == 1
        assert stats["avg_steps"] == 8500
        assert stats["avg_heart_rate"] == 72


class TestAliases:
    """Tests for the legacy entry paths."""

    def test_entries_alias(self, client):
        """Test /entries behaves like /metrics."""
        created = post_metric(client, path="/api/entries")
        assert created.status_code == 201

        listed = client.get("/api/entries").json()
        assert listed == client.get("/api/metrics").json()

        entry_id = created.json()["id"]
        assert client.get(f"/api/entries/{entry_id}").json()["steps"] == 8500
        assert client.delete(f"/api/entries/{entry_id}").status_code == 200

    def test_entry_stats_alias(self, client):
        """Test /entry-stats behaves like /stats."""
        post_metric(client)
        assert client.get("/api/entry-stats").json() == client.get("/api/stats").json()


class TestRouting:
    """Tests for unknown paths and static serving."""

    def test_unknown_api_path(self, client):
        """Test an unknown API path is a JSON 404."""
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Endpoint not found"}

    def test_unsupported_method_on_known_path(self, client):
        """Test a wrong method on a known path is a JSON 404."""
        response = client.put("/api/metrics", json=SAMPLE)

        assert response.status_code == 404
        assert response.json() == {"error": "Endpoint not found"}

    def test_root_serves_index(self, client):
        """Test the site root serves the app shell."""
        response = client.get("/")

        assert response.status_code == 200
        assert "root" in response.text

    def test_spa_shell_for_client_routes(self, client):
        """Test client-side routes fall back to the app shell."""
        response = client.get("/dashboard/history")

        assert response.status_code == 200
        assert "root" in response.text

    def test_static_file_served(self, client):
        """Test existing assets are served as-is."""
        response = client.get("/app.js")
        assert "console.log" in response.text

    def test_no_escape_from_static_dir(self, client):
        """Test encoded traversal doesn't leave the static directory."""
        response = client.get("/..%2F..%2Fetc%2Fpasswd")
        assert "root:" not in response.text


class FailingStore:
    """Store whose every call fails."""

    def __init__(self, error):
        self.error = error

    def _fail(self, *args, **kwargs):
        raise self.error

    create = list = get = delete = stats = _fail

    def close(self):
        pass


class TestServerErrors:
    """Tests for store failures and unexpected errors."""

    def test_store_error_is_500_with_opaque_message(self, settings):
        """Test store errors surface their own message."""
        app = create_app(store=FailingStore(StoreError("Failed to fetch metrics")), settings=settings)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/api/metrics")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch metrics"}
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.parametrize("path", ["/api/metrics", "/api/stats", "/api/metrics/1"])
    def test_unhandled_error_is_internal_server_error(self, settings, path):
        """Test unexpected errors are hidden behind a generic message."""
        app = create_app(store=FailingStore(RuntimeError("boom")), settings=settings)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get(path)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert response.headers["cache-control"] == "no-store"

    def test_validation_happens_before_store_access(self, settings):
        """Test invalid input never reaches the store."""
        app = create_app(store=FailingStore(RuntimeError("boom")), settings=settings)
        client = TestClient(app, raise_server_exceptions=False)

        response = post_metric(client, steps=-1)

        assert response.status_code == 400
        assert response.json() == {"error": "Steps must be a positive integer"}


class TestLifespan:
    """Tests for store ownership across the app lifespan."""

    def test_opens_store_from_settings(self, settings):
        """Test the app opens and closes its own store."""
        app = create_app(settings=settings.model_copy(update={"storage_backend": "tinydb"}))

        with TestClient(app) as client:
            assert post_metric(client).status_code == 201
            assert len(client.get("/api/metrics").json()) == 1

        assert app.state.store is None
