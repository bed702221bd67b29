"""SQLite stand-ins for the legacy MySQL source databases."""

from __future__ import annotations

import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from playersync.models.migration import SourceDatabaseParameters
from playersync.services.legacy_codec import encode_blob

ALICE = uuid.UUID("00000000-0000-0000-0000-00000000000a")
BOB = uuid.UUID("00000000-0000-0000-0000-00000000000b")
CAROL = uuid.UUID("00000000-0000-0000-0000-00000000000c")

LEGACY_SCHEMA = [
    "CREATE TABLE husksync_players (id INTEGER PRIMARY KEY, uuid TEXT NOT NULL, username TEXT)",
    """CREATE TABLE husksync_data (
        player_id INTEGER NOT NULL, inventory TEXT, ender_chest TEXT,
        health REAL, max_health REAL, health_scale REAL, hunger INTEGER,
        saturation REAL, saturation_exhaustion REAL, selected_slot INTEGER,
        status_effects TEXT, total_experience INTEGER, exp_level INTEGER,
        exp_progress REAL, game_mode TEXT, statistics TEXT, is_flying INTEGER,
        advancements TEXT, location TEXT
    )""",
]

MPDB_SCHEMA = [
    "CREATE TABLE mpdb_inventory (player_uuid TEXT, player_name TEXT, inventory TEXT, armor TEXT)",
    "CREATE TABLE mpdb_enderchest (player_uuid TEXT, enderchest TEXT)",
    "CREATE TABLE mpdb_experience (player_uuid TEXT, exp_lvl INTEGER, exp REAL, total_exp INTEGER)",
]

Statement = Tuple[str, Dict[str, Any]]


def legacy_player(
    player_id: int,
    player_uuid: uuid.UUID,
    username: Optional[str],
    statistics: Optional[str] = None,
    location: Optional[str] = "",
    advancements: str = "",
) -> List[Statement]:
    """Rows for one player in the legacy schema."""
    if statistics is None:
        statistics = encode_blob({
            "untyped": {"JUMP": 12},
            "block": {"MINE_BLOCK": {"STONE": 40}},
            "item": {"USE_ITEM": {"DIAMOND_PICKAXE": 3}},
            "entity": {"KILL_ENTITY": {"ZOMBIE": 5}},
        })
    return [
        (
            "INSERT INTO husksync_players (id, uuid, username) VALUES (:id, :uuid, :username)",
            {"id": player_id, "uuid": str(player_uuid), "username": username},
        ),
        (
            "INSERT INTO husksync_data VALUES (:player_id, 'aW52', 'ZW5kZXI=', 18.5, 20, 0, 17, 4.5, 0.25,"
            " 3, 'cG90aW9ucw==', 1200, 30, 0.5, 'CREATIVE', :statistics, 1, :advancements, :location)",
            {
                "player_id": player_id,
                "statistics": statistics,
                "advancements": advancements,
                "location": location,
            },
        ),
    ]


def make_engine_factory(
    schema: List[str],
    statements: List[Statement],
    calls: Optional[List[Tuple[SourceDatabaseParameters, str]]] = None,
) -> Callable[[SourceDatabaseParameters, str], Any]:
    """Engine factory producing a populated in-memory SQLite source."""

    def factory(parameters: SourceDatabaseParameters, pool_name: str):
        if calls is not None:
            calls.append((parameters, pool_name))
        engine = create_engine(
            "sqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        with engine.begin() as conn:
            for ddl in schema:
                conn.execute(text(ddl))
            for statement, params in statements:
                conn.execute(text(statement), params)
        return engine

    return factory


def unreachable_engine_factory(parameters: SourceDatabaseParameters, pool_name: str):
    """Engine factory whose connections always fail."""
    return create_engine("sqlite:////nonexistent-playersync-dir/missing/source.db")


