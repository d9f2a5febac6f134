from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from menu_api import main
from menu_api.core.logging import request_id_ctx
from menu_api.menu.store import MenuStore


@pytest.fixture()
def menu_store() -> MenuStore:
    return MenuStore.seeded()


@pytest.fixture()
def client(menu_store: MenuStore, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    monkeypatch.setattr(main.limiter, "enabled", False)
    main.app.dependency_overrides[main.get_menu_store] = lambda: menu_store
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()


@pytest.fixture()
def valid_payload() -> dict[str, object]:
    return {
        "name": "Taco",
        "description": "Soft taco with beef and salsa",
        "price": 5.5,
        "category": "entree",
        "ingredients": ["beef", "salsa", "tortilla"],
    }


class RecordingLogger:
    """Stand-in for the module logger in menu_api.main; keeps the request id seen at log time."""

    def __init__(self) -> None:
        self.events: list[dict[str, object]] = []

    def _record(self, event: str, **fields: object) -> None:
        self.events.append({"event": event, "request_id": request_id_ctx.get(), **fields})

    info = warning = exception = _record

    def named(self, event: str) -> list[dict[str, object]]:
        return [entry for entry in self.events if entry["event"] == event]


@pytest.fixture()
def log_events(monkeypatch: pytest.MonkeyPatch) -> RecordingLogger:
    recorder = RecordingLogger()
    monkeypatch.setattr(main, "logger", recorder)
    return recorder
