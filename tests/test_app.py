"""Tests for application wiring: lifespan, health, middleware and error handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from school import __version__
from school.app.core.cache import reset_cache
from school.app.core.config import settings
from school.app.db.async_session import get_async_engine
from school.app.main import API_PREFIX, create_app, install_exception_handlers
from school.app.middleware.rate_limit import RateLimitMiddleware
from school.app.middleware.request_id import RequestIdMiddleware

from conftest import ADMIN, sqlite_url_from_absolute_path


@pytest.fixture
def app_settings(tmp_path, monkeypatch):
    db_path = tmp_path / "classnama_app.db"
    monkeypatch.setattr(settings, "database_url_override", sqlite_url_from_absolute_path(str(db_path)))
    monkeypatch.setattr(settings, "redis_enabled", False)
    monkeypatch.setattr(settings, "rate_limiter_enabled", True)
    monkeypatch.setattr(settings, "rate_limiter_requests_count", 5)
    monkeypatch.setattr(settings, "rate_limiter_window_seconds", 60.0)
    get_async_engine.cache_clear()
    reset_cache()
    yield settings
    get_async_engine.cache_clear()
    reset_cache()


class TestApplication:
    """Full application with its lifespan."""

    def test_health_reports_components(self, app_settings):
        with TestClient(create_app()) as client:
            resp = client.get(f"{API_PREFIX}/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["version"] == __version__
        assert body["components"]["database"] == {"status": "ok"}
        assert body["components"]["cache"] == {"status": "disabled"}

    def test_lifespan_runs_sweep_and_creates_tables(self, app_settings):
        app = create_app()
        with TestClient(app) as client:
            assert app.state.rate_limiter.cleanup_running is True
            resp = client.post(f"{API_PREFIX}/execs/register", json=ADMIN)
            assert resp.status_code == 201, resp.text
        assert app.state.rate_limiter.cleanup_running is False

    def test_rate_limit_applies_to_every_route(self, app_settings):
        with TestClient(create_app()) as client:
            for _ in range(5):
                assert client.get(f"{API_PREFIX}/health").status_code == 200
            resp = client.get(f"{API_PREFIX}/health")

        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) >= 1
        assert resp.headers["X-Request-ID"]

    def test_throttled_response_carries_cors_headers(self, app_settings, monkeypatch):
        origin = "https://school.example"
        monkeypatch.setattr(settings, "cors_origins", [origin])
        with TestClient(create_app()) as client:
            for _ in range(5):
                client.get(f"{API_PREFIX}/health", headers={"Origin": origin})
            resp = client.get(f"{API_PREFIX}/health", headers={"Origin": origin})

        assert resp.status_code == 429
        assert resp.headers["Access-Control-Allow-Origin"] == origin
        assert "Retry-After" in resp.headers["Access-Control-Expose-Headers"]

    def test_preflight_does_not_spend_tokens(self, app_settings, monkeypatch):
        origin = "https://school.example"
        monkeypatch.setattr(settings, "cors_origins", [origin])
        preflight = {"Origin": origin, "Access-Control-Request-Method": "GET"}
        with TestClient(create_app()) as client:
            for _ in range(10):
                assert client.options(f"{API_PREFIX}/health", headers=preflight).status_code == 200
            resp = client.get(f"{API_PREFIX}/health")

        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Remaining"] == "4"

    def test_rate_limiter_can_be_disabled(self, app_settings, monkeypatch):
        monkeypatch.setattr(settings, "rate_limiter_enabled", False)
        app = create_app()
        assert RateLimitMiddleware not in [m.cls for m in app.user_middleware]
        assert RequestIdMiddleware in [m.cls for m in app.user_middleware]

    def test_request_id_is_echoed(self, app_settings):
        with TestClient(create_app()) as client:
            resp = client.get(f"{API_PREFIX}/health", headers={"X-Request-ID": "req-123"})
            generated = client.get(f"{API_PREFIX}/health")

        assert resp.headers["X-Request-ID"] == "req-123"
        assert len(generated.headers["X-Request-ID"]) == 36

    def test_memory_cache_health(self, app_settings, monkeypatch):
        monkeypatch.setattr(settings, "redis_enabled", True)
        monkeypatch.setattr(settings, "cache_backend", "memory")
        with TestClient(create_app()) as client:
            body = client.get(f"{API_PREFIX}/health").json()
        assert body["components"]["cache"] == {"status": "ok", "type": "memory"}


def _failing_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)
    install_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret detail")

    @app.get("/db")
    async def db():
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    return app


class TestExceptionHandlers:
    """Unhandled errors are rendered as JSON without leaking details."""

    def test_unhandled_error_hides_detail(self, monkeypatch):
        monkeypatch.setattr(settings, "debug", False)
        client = TestClient(_failing_app(), raise_server_exceptions=False)
        resp = client.get("/boom", headers={"X-Request-ID": "req-500"})

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "internal_error"
        assert body["message"] == "Internal server error"
        assert body["request_id"] == "req-500"
        assert "secret detail" not in resp.text

    def test_debug_mode_includes_detail(self, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)
        client = TestClient(_failing_app(), raise_server_exceptions=False)
        body = client.get("/boom").json()

        assert body["message"] == "secret detail"
        assert body["exception_type"] == "RuntimeError"

    def test_database_error(self, monkeypatch):
        monkeypatch.setattr(settings, "debug", False)
        client = TestClient(_failing_app(), raise_server_exceptions=False)
        resp = client.get("/db")

        assert resp.status_code == 500
        assert resp.json()["error"] == "database_error"
        assert resp.json()["message"] == "Database error occurred"
