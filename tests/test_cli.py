from __future__ import annotations

import json
from pathlib import Path

import pytest

from source_fixtures import ALICE, LEGACY_SCHEMA, legacy_player, make_engine_factory
from playersync.cli import MigrateCommand, MigrationShell, build_migrators, build_store, main
from playersync.loaders.memory_store import InMemoryUserDataStore
from playersync.loaders.sql_store import SqlUserDataStore
from playersync.models.migration import Settings


@pytest.fixture
def store() -> InMemoryUserDataStore:
    return InMemoryUserDataStore()


@pytest.fixture
def command(settings: Settings, store: InMemoryUserDataStore) -> MigrateCommand:
    factory = make_engine_factory(LEGACY_SCHEMA, legacy_player(1, ALICE, "Alice"))
    return MigrateCommand(build_migrators(settings, store, engine_factory=factory))


def test_no_arguments_lists_migrators(command: MigrateCommand) -> None:
    result = command.execute([])

    assert result.success
    assert "legacy - HuskSync v1.x --> v2.x Migrator" in result.message
    assert "mpdb - MySQLPlayerDataBridge Migrator" in result.message


@pytest.mark.parametrize("args", [["legacy"], ["legacy", "help"], ["LEGACY", "HELP"]])
def test_help_is_routed(command: MigrateCommand, args) -> None:
    result = command.execute(args)

    assert result.success
    assert result.message == command.migrators["legacy"].help_text()


def test_set_is_routed(command: MigrateCommand) -> None:
    assert command.execute(["mpdb", "set", "host", "10.0.0.5"]).success
    assert command.migrators["mpdb"].parameters.host == "10.0.0.5"
    assert command.migrators["legacy"].parameters.host == "db.example.net"

    result = command.execute(["mpdb", "set", "port", "abc"])
    assert not result.success
    assert command.migrators["mpdb"].parameters.port == 3306


def test_unknown_migrator_and_action_fail(command: MigrateCommand) -> None:
    assert not command.execute(["husksync"]).success
    assert not command.execute(["legacy", "stop"]).success


def test_start_is_routed(command: MigrateCommand, store: InMemoryUserDataStore) -> None:
    result = command.execute(["legacy", "start"])

    assert result.success
    assert "1 succeeded, 0 failed of 1 users" in result.message
    assert store.usernames == ["Alice"]


def test_shell_handles_quoted_values(command: MigrateCommand) -> None:
    shell = MigrationShell(command)

    message = shell.handle("migrate legacy set password 'pass word'")

    assert command.migrators["legacy"].parameters.password == "pass word"
    assert "pass word" not in message
    assert shell.handle("status").startswith("Unknown command")


def test_shell_loop_exits_on_quit(command: MigrateCommand, monkeypatch, capsys) -> None:
    lines = iter(["", "migrate", "quit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

    MigrationShell(command).run()

    out = capsys.readouterr().out
    assert "Available migrators:" in out
    assert "Goodbye!" in out


def test_build_store_follows_destination(tmp_path: Path) -> None:
    assert isinstance(build_store(Settings()), InMemoryUserDataStore)
    url = f"sqlite:///{tmp_path / 'dest.db'}"
    assert isinstance(build_store(Settings(destination_url=url)), SqlUserDataStore)
    assert isinstance(build_store(Settings(destination_url=url), dry_run=True), InMemoryUserDataStore)


def test_main_help_uses_config_file(tmp_path: Path, capsys, monkeypatch) -> None:
    monkeypatch.delenv("PLAYERSYNC_MYSQL_HOST", raising=False)
    config = tmp_path / "settings.json"
    config.write_text(json.dumps({"mysql_host": "10.1.2.3", "mysql_password": "hunter22"}))

    assert main(["--config", str(config), "help", "mpdb"]) == 0

    out = capsys.readouterr().out
    assert "- host: 10.1.2.3" in out
    assert "hunter22" not in out


def test_main_run_rejects_bad_assignment(capsys) -> None:
    assert main(["run", "legacy", "--dry-run", "--set", "port=abc"]) == 1
    assert "could not set port" in capsys.readouterr().out

    assert main(["run", "legacy", "--dry-run", "--set", "port"]) == 1
    assert main(["run", "nope", "--dry-run"]) == 1
