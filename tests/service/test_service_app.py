"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from gdassist.config import AssistConfig, ProjectConfig
from gdassist.service import create_app
from gdassist.storage import MemoryStorage


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def client(tmp_path: Path, storage: MemoryStorage) -> TestClient:
    config = AssistConfig(project=ProjectConfig(root=tmp_path))
    calls: list[bool] = []

    def factory(_config: AssistConfig, dry_run: bool) -> MemoryStorage:
        calls.append(dry_run)
        return storage

    app = create_app(config, factory)
    app.state.storage_calls = calls
    return TestClient(app)


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_apply_endpoint_materialises_response(client: TestClient, storage: MemoryStorage) -> None:
    response = client.post(
        "/apply",
        json={"response": "File: res://Hud.gd\n```gdscript\nextends Control\n```", "dry_run": True},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["order"] == ["res://Hud.gd"]
    assert data["reports"] == [{"path": "res://Hud.gd", "outcome": "created", "message": None}]
    assert data["summary"].startswith("Code applied successfully.")
    assert storage.files["res://Hud.gd"] == "extends Control\n"
    assert client.app.state.storage_calls == [True]


def test_apply_endpoint_honours_fast_strategy(client: TestClient) -> None:
    response = client.post(
        "/apply",
        json={
            "response": 'File: res://Old.tscn\n```tscn\n[gd_scene format=2]\n\n[node name="Old" type="Node2D"]\n```',
            "strategy": "fast",
        },
    )

    data = response.json()
    assert data["ok"] is False
    assert data["reports"][0]["outcome"] == "error"
    assert "format=3" in data["reports"][0]["message"]


def test_apply_endpoint_rejects_unknown_strategy(client: TestClient) -> None:
    response = client.post("/apply", json={"response": "x", "strategy": "eager"})
    assert response.status_code == 422


def test_upgrade_endpoint(client: TestClient) -> None:
    payload = {"content": '[gd_scene format=2]\n\n[node name="E" type="Sprite"]\n', "seed": 3}

    first = client.post("/upgrade", json=payload).json()
    second = client.post("/upgrade", json=payload).json()

    assert first["legacy"] is True
    assert 'type="Sprite2D"' in first["content"]
    assert first == second
