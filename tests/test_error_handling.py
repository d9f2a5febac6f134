"""Tests for the error contract, request context, and error tracking hooks."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from limits import parse

from menu_api import main
from menu_api.core.config import settings
from menu_api.core.logging import add_request_context, request_id_ctx
from menu_api.core.sentry import before_send, init_sentry


class ExplodingStore:
    def list_items(self):
        raise RuntimeError("boom: secret detail")


@pytest.fixture
def failing_client(monkeypatch):
    monkeypatch.setattr(main.limiter, "enabled", False)
    main.app.dependency_overrides[main.get_menu_store] = lambda: ExplodingStore()
    yield TestClient(main.app, raise_server_exceptions=False)
    main.app.dependency_overrides.clear()


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("path", ["/", "/api", "/api/menus", "/api/menu/1/extra"])
def test_unknown_route_returns_endpoint_not_found(client, path):
    response = client.get(path)
    assert response.status_code == 404
    assert response.json() == {"status": 404, "message": "Endpoint not found"}


def test_unsupported_method_returns_endpoint_not_found(client):
    response = client.patch("/api/menu/1", json={"price": 3})
    assert response.status_code == 404
    assert response.json() == {"status": 404, "message": "Endpoint not found"}

    response = client.delete("/api/menu")
    assert response.status_code == 404
    assert response.json() == {"status": 404, "message": "Endpoint not found"}


def test_unhandled_error_returns_generic_500(failing_client):
    response = failing_client.get("/api/menu")
    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}
    assert "secret" not in response.text


def test_request_id_echoed(client):
    response = client.get("/api/menu", headers={"x-request-id": "req-123"})
    assert response.headers["x-request-id"] == "req-123"


def test_request_id_generated(client):
    response = client.get("/api/menu/999")
    assert response.headers["x-request-id"]


def test_log_processor_adds_request_id():
    token = request_id_ctx.set("req-abc")
    try:
        event = add_request_context(None, "info", {"event": "menu_item_created", "item_id": 7})
    finally:
        request_id_ctx.reset(token)

    assert event == {"message": "menu_item_created", "item_id": 7, "request_id": "req-abc"}


def test_sentry_before_send_tags_request_and_strips_body():
    event = {
        "request": {
            "headers": {"x-request-id": "req-9"},
            "data": {"name": "Taco"},
        },
        "breadcrumbs": {
            "values": [
                {"message": "{\"message\": \"request_body\", \"body\": {\"name\": \"Taco\"}}"},
                {"message": "{\"message\": \"request_received\"}"},
            ]
        },
    }

    result = before_send(event, {})

    assert result["tags"]["request_id"] == "req-9"
    assert "data" not in result["request"]
    assert result["breadcrumbs"]["values"] == [{"message": "{\"message\": \"request_received\"}"}]


def test_sentry_before_send_passes_plain_events():
    event = {"message": "hello"}
    assert before_send(event, {}) == {"message": "hello"}


def test_unhandled_error_keeps_request_id(failing_client, log_events):
    response = failing_client.get("/api/menu", headers={"x-request-id": "req-500"})

    assert response.status_code == 500
    assert response.headers["x-request-id"] == "req-500"
    [entry] = log_events.named("unhandled_exception")
    assert entry["request_id"] == "req-500"


def test_sentry_disabled_without_dsn(monkeypatch):
    monkeypatch.setattr(settings, "sentry_dsn", None)
    assert init_sentry() is False


def test_lifespan_logs_startup(log_events):
    with TestClient(main.app):
        pass

    [started] = log_events.named("service_started")
    assert started["menu_items"] == len(main.app.state.menu_store)
    assert log_events.named("service_stopped")


def test_build_menu_store_without_seed(monkeypatch):
    monkeypatch.setattr(settings, "seed_menu", False)
    store = main.build_menu_store()

    assert len(store) == 0
    assert store.next_id == 1


def test_build_menu_store_with_seed(monkeypatch):
    monkeypatch.setattr(settings, "seed_menu", True)
    assert len(main.build_menu_store()) == 6


def test_request_body_logged_for_writes(client, log_events, valid_payload):
    client.post("/api/menu", json=valid_payload)
    client.put("/api/menu/1", json=valid_payload)

    bodies = log_events.named("request_body")
    assert [(entry["method"], entry["body"]) for entry in bodies] == [
        ("POST", valid_payload),
        ("PUT", valid_payload),
    ]


def test_request_body_logging_can_be_disabled(client, log_events, monkeypatch, valid_payload):
    monkeypatch.setattr(settings, "log_request_bodies", False)

    response = client.post("/api/menu", json=valid_payload)

    assert response.status_code == 201
    assert log_events.named("request_body") == []
    assert log_events.named("request_received")


class TestWriteRateLimit:
    """Test the write-route limiter."""

    @pytest.fixture
    def limited_client(self, menu_store, monkeypatch):
        monkeypatch.setattr(main.limiter, "enabled", True)
        main.limiter.reset()
        main.app.dependency_overrides[main.get_menu_store] = lambda: menu_store
        yield TestClient(main.app)
        main.app.dependency_overrides.clear()
        main.limiter.reset()

    def test_invalid_bodies_count_against_limit(self, limited_client):
        """Test that rejected bodies are limited like accepted ones."""
        allowed = parse(settings.write_rate_limit).amount
        statuses = [
            limited_client.post("/api/menu", json={"name": "Hi"}).status_code
            for _ in range(allowed + 1)
        ]

        assert set(statuses[:allowed]) == {400}
        assert statuses[-1] == 429

    def test_limit_response_shape(self, limited_client, menu_store, valid_payload):
        """Test the 429 body and that a limited create does not touch the store."""
        allowed = parse(settings.write_rate_limit).amount
        for _ in range(allowed):
            limited_client.post("/api/menu", json={"name": "Hi"})

        response = limited_client.post("/api/menu", json=valid_payload)

        assert response.status_code == 429
        assert response.json() == {"status": 429, "message": "Rate limit exceeded"}
        assert len(menu_store) == 6

    def test_reads_are_not_limited(self, limited_client):
        allowed = parse(settings.write_rate_limit).amount
        statuses = {limited_client.get("/api/menu").status_code for _ in range(allowed + 1)}
        assert statuses == {200}
