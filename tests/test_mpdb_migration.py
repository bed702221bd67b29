from __future__ import annotations

import asyncio

from source_fixtures import ALICE, BOB, MPDB_SCHEMA, make_engine_factory
from playersync.loaders.memory_store import InMemoryUserDataStore
from playersync.migrators import MpdbMigrator
from playersync.models.migration import Settings
from playersync.models.user_data import DataSaveCause
from playersync.services.item_codec import deserialize_item_stack_array
from playersync.services.legacy_codec import encode_blob

SWORD = {"type": "DIAMOND_SWORD", "amount": 1}
BOOTS = {"type": "LEATHER_BOOTS", "amount": 1}
HELMET = {"type": "IRON_HELMET", "amount": 1}
PEARLS = {"type": "ENDER_PEARL", "amount": 16}


def _player(player_uuid, name: str, inventory: str) -> list:
    return [
        (
            "INSERT INTO mpdb_inventory VALUES (:uuid, :name, :inventory, :armor)",
            {
                "uuid": str(player_uuid),
                "name": name,
                "inventory": inventory,
                "armor": encode_blob({"size": 4, "items": {"0": BOOTS, "3": HELMET}}),
            },
        ),
        (
            "INSERT INTO mpdb_enderchest VALUES (:uuid, :enderchest)",
            {"uuid": str(player_uuid), "enderchest": encode_blob({"size": 27, "items": {"5": PEARLS}})},
        ),
        (
            "INSERT INTO mpdb_experience VALUES (:uuid, 12, 0.25, 345)",
            {"uuid": str(player_uuid)},
        ),
    ]


def test_inventory_armor_and_experience_are_migrated(settings: Settings) -> None:
    store = InMemoryUserDataStore()
    rows = _player(ALICE, "Alice", encode_blob({"size": 36, "items": {"0": SWORD}}))
    rows += _player(BOB, "Bob", encode_blob({"size": 36, "items": {"0": "not an item"}}))
    calls: list = []
    migrator = MpdbMigrator(
        settings=settings,
        store=store,
        engine_factory=make_engine_factory(MPDB_SCHEMA, rows, calls),
    )

    assert asyncio.run(migrator.start()) is True

    assert calls[0][1] == "MPDB_MIGRATOR_POOL"
    assert store.usernames == ["Alice"]
    assert migrator.last_run.total_records_failed == 1

    snapshot = store.get_latest(ALICE)
    assert snapshot.cause == DataSaveCause.MPDB_MIGRATION
    inventory = deserialize_item_stack_array(snapshot.data.inventory.serialized_items)
    assert len(inventory) == 41
    assert inventory[0] == SWORD
    assert inventory[36] == BOOTS
    assert inventory[39] == HELMET
    ender_chest = deserialize_item_stack_array(snapshot.data.ender_chest.serialized_items)
    assert len(ender_chest) == 27
    assert ender_chest[5] == PEARLS

    status = snapshot.data.status
    assert (status.health, status.max_health, status.hunger, status.saturation) == (20, 20, 20, 10)
    assert status.saturation_exhaustion == 1
    assert status.selected_item_slot == 0
    assert (status.experience_level, status.experience_progress, status.total_experience) == (12, 0.25, 345)
    assert status.game_mode == "SURVIVAL"
    assert snapshot.data.location.world_name == "world"
    assert snapshot.data.advancements == ()


def test_players_missing_from_a_joined_table_are_not_staged(settings: Settings) -> None:
    rows = _player(ALICE, "Alice", "")
    rows.append((
        "INSERT INTO mpdb_inventory VALUES (:uuid, 'Bob', '', '')",
        {"uuid": str(BOB)},
    ))
    store = InMemoryUserDataStore()
    migrator = MpdbMigrator(
        settings=settings,
        store=store,
        engine_factory=make_engine_factory(MPDB_SCHEMA, rows),
    )

    assert asyncio.run(migrator.start()) is True
    assert store.usernames == ["Alice"]
    inventory = deserialize_item_stack_array(store.get_latest(ALICE).data.inventory.serialized_items)
    assert inventory[:36] == [None] * 36
