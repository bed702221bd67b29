from __future__ import annotations

import asyncio
import uuid
from pathlib import Path

from playersync.loaders.sql_store import SqlUserDataStore
from playersync.models.user import User
from playersync.models.user_data import DataSaveCause, ItemData, UserData


def _store(tmp_path: Path) -> SqlUserDataStore:
    return SqlUserDataStore(f"sqlite:///{tmp_path / 'destination.db'}")


def test_snapshots_are_written_and_read_back(tmp_path: Path) -> None:
    store = _store(tmp_path)
    user = User(uuid.uuid4(), "Steve")
    data = UserData.builder("1.19.2").set_inventory(ItemData("abc")).build()

    async def scenario() -> None:
        await store.ensure_user(user)
        await store.set_user_data(user, data, DataSaveCause.LEGACY_MIGRATION)

    asyncio.run(scenario())

    assert store.get_users() == [user]
    assert store.get_latest_user_data(user) == data
    asyncio.run(store.close())


def test_ensure_user_updates_username(tmp_path: Path) -> None:
    store = _store(tmp_path)
    player_uuid = uuid.uuid4()

    asyncio.run(store.ensure_user(User(player_uuid, "Steve")))
    asyncio.run(store.ensure_user(User(player_uuid, "Alex")))

    users = store.get_users()
    assert len(users) == 1
    assert users[0].username == "Alex"
    asyncio.run(store.close())


def test_wipe_removes_users_and_snapshots(tmp_path: Path) -> None:
    store = _store(tmp_path)
    user = User(uuid.uuid4(), "Steve")

    async def scenario() -> None:
        await store.ensure_user(user)
        await store.set_user_data(user, UserData.builder("1.19.2").build(), DataSaveCause.API)
        await store.wipe_database()

    asyncio.run(scenario())

    assert store.get_users() == []
    assert store.get_latest_user_data(user) is None
    asyncio.run(store.close())
