from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from source_fixtures import ALICE, LEGACY_SCHEMA, legacy_player, make_engine_factory
from playersync.api.main import create_app
from playersync.cli import build_migrators
from playersync.loaders.memory_store import InMemoryUserDataStore
from playersync.models.migration import Settings


@pytest.fixture
def store() -> InMemoryUserDataStore:
    return InMemoryUserDataStore()


@pytest.fixture
def client(settings: Settings, store: InMemoryUserDataStore) -> TestClient:
    factory = make_engine_factory(LEGACY_SCHEMA, legacy_player(1, ALICE, "Alice"))
    return TestClient(create_app(build_migrators(settings, store, engine_factory=factory)))


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_list_migrators(client: TestClient) -> None:
    body = client.get("/api/migrators").json()

    assert body["total"] == 2
    assert {m["identifier"] for m in body["migrators"]} == {"legacy", "mpdb"}


def test_migrator_details_are_redacted(client: TestClient) -> None:
    response = client.get("/api/migrators/legacy")

    assert response.status_code == 200
    assert "s3cr3t" not in response.text
    assert "admin" not in response.text
    body = response.json()
    assert body["parameters"]["username"] == "a***n"
    assert body["parameters"]["players_table"] == "husksync_players"
    assert body["last_run"] is None


def test_unknown_migrator_is_404(client: TestClient) -> None:
    assert client.get("/api/migrators/nope").status_code == 404


def test_set_parameter(client: TestClient) -> None:
    response = client.put("/api/migrators/legacy/parameters", json={"name": "port", "value": "3310"})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get("/api/migrators/legacy").json()["parameters"]["port"] == 3310

    response = client.put("/api/migrators/legacy/parameters", json={"name": "port", "value": "abc"})
    assert response.status_code == 400
    assert client.get("/api/migrators/legacy").json()["parameters"]["port"] == 3310


def test_start_runs_in_background(client: TestClient, store: InMemoryUserDataStore) -> None:
    response = client.post("/api/migrators/legacy/start")

    assert response.status_code == 200
    assert response.json() == {"status": "started", "migrator": "legacy"}
    assert store.usernames == ["Alice"]

    run = client.get("/api/migrators/legacy/runs/latest").json()
    assert run["status"] == "completed"
    assert run["total_records_succeeded"] == 1


def test_start_while_running_conflicts(client: TestClient) -> None:
    migrator = client.app.state.migrators["mpdb"]
    migrator._running = True

    assert client.post("/api/migrators/mpdb/start").status_code == 409


def test_start_reserves_the_migrator(client: TestClient) -> None:
    migrator = client.app.state.migrators["legacy"]
    assert migrator.reserve() is True

    response = client.post("/api/migrators/legacy/start")

    assert response.status_code == 409
    assert migrator.last_run is None


def test_start_releases_the_migrator_when_done(client: TestClient) -> None:
    assert client.post("/api/migrators/legacy/start").status_code == 200
    assert client.app.state.migrators["legacy"].is_running is False
    assert client.post("/api/migrators/legacy/start").status_code == 200
