"""Migrator for HuskSync v1.x player data."""

from dataclasses import dataclass
from string import Template
from typing import Any, Dict, Mapping
import logging
import uuid

from .base import Migrator
from ..models.user import User
from ..models.user_data import (
    AdvancementData,
    DataSaveCause,
    ItemData,
    LocationData,
    PotionEffectData,
    StatisticsData,
    StatusData,
    UserData,
)
from ..services import legacy_codec

logger = logging.getLogger(__name__)

LEGACY_HELP = Template("""\
=== HuskSync v1.x --> v2.x Migration Wizard =========
This will migrate all user data from HuskSync v1.x to
HuskSync v2.x's new format. To perform the migration,
please follow the steps below carefully.

[!] Existing data in the database will be wiped. [!]

STEP 1] Please ensure no players are on any servers.

STEP 2] The migrator will need to connect to the database
used to hold the existing, legacy HuskSync data.
If this is the same database as the one you are
currently using, you probably don't need to change
anything.
Please check that the credentials below are the
correct credentials of the source legacy HuskSync
database.
- host: $host
- port: $port
- username: $username
- password: $password
- database: $database
- players_table: $players_table
- data_table: $data_table
If any of these are not correct, please correct them
using the command:
"migrate legacy set <parameter> <value>"
(e.g.: "migrate legacy set host 1.2.3.4")

STEP 3] Data will be migrated into the destination
store configured for this installation. Please make
sure you're happy with this before proceeding.

STEP 4] To start the migration, please run:
"migrate legacy start"
""")


def _merge_material_statistics(*maps: Dict[str, Dict[str, int]]) -> Dict[str, Dict[str, int]]:
    merged: Dict[str, Dict[str, int]] = {}
    for statistic_map in maps:
        for statistic, values in statistic_map.items():
            merged.setdefault(statistic, {}).update(values)
    return merged


@dataclass(frozen=True)
class LegacyData:
    """A staged row of HuskSync v1.x player data, still in its raw form."""
    user: User
    serialized_inventory: str
    serialized_ender_chest: str
    health: float
    max_health: float
    health_scale: float
    hunger: int
    saturation: float
    saturation_exhaustion: float
    selected_slot: int
    serialized_potion_effects: str
    total_experience: int
    experience_level: int
    experience_progress: float
    game_mode: str
    serialized_statistics: str
    is_flying: bool
    serialized_advancements: str
    serialized_location: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LegacyData":
        """Stage a row of the legacy join query."""
        return cls(
            user=User(uuid=uuid.UUID(str(row["uuid"])), username=row["username"]),
            serialized_inventory=row["inventory"] or "",
            serialized_ender_chest=row["ender_chest"] or "",
            health=float(row["health"] or 0),
            max_health=float(row["max_health"] or 0),
            health_scale=float(row["health_scale"] or 0),
            hunger=int(row["hunger"] or 0),
            saturation=float(row["saturation"] or 0),
            saturation_exhaustion=float(row["saturation_exhaustion"] or 0),
            selected_slot=int(row["selected_slot"] or 0),
            serialized_potion_effects=row["status_effects"] or "",
            total_experience=int(row["total_experience"] or 0),
            experience_level=int(row["exp_level"] or 0),
            experience_progress=float(row["exp_progress"] or 0),
            game_mode=row["game_mode"] or "SURVIVAL",
            serialized_statistics=row["statistics"] or "",
            is_flying=bool(row["is_flying"]),
            serialized_advancements=row["advancements"] or "",
            serialized_location=row["location"] or "",
        )

    def to_user_data(self, minecraft_version: str) -> UserData:
        """
        Convert to a UserData snapshot.

        Raises:
            LegacyDataError: If the statistics, advancements or location
                blob is malformed
        """
        statistics = legacy_codec.deserialize_statistics(self.serialized_statistics)
        advancements = legacy_codec.deserialize_advancements(self.serialized_advancements)
        location = legacy_codec.deserialize_location(self.serialized_location)

        if location is None:
            location_data = LocationData.default()
        else:
            location_data = LocationData(
                world_name=location.world_name,
                world_uuid=uuid.uuid4(),
                world_environment="NORMAL",
                x=location.x,
                y=location.y,
                z=location.z,
                yaw=location.yaw,
                pitch=location.pitch,
            )

        return (
            UserData.builder(minecraft_version)
            .set_status(StatusData(
                health=self.health,
                max_health=self.max_health,
                health_scale=self.health_scale,
                hunger=self.hunger,
                saturation=self.saturation,
                saturation_exhaustion=self.saturation_exhaustion,
                selected_item_slot=self.selected_slot,
                total_experience=self.total_experience,
                experience_level=self.experience_level,
                experience_progress=self.experience_progress,
                game_mode=self.game_mode,
                is_flying=self.is_flying,
            ))
            .set_inventory(ItemData(self.serialized_inventory))
            .set_ender_chest(ItemData(self.serialized_ender_chest))
            .set_potion_effects(PotionEffectData(self.serialized_potion_effects))
            .set_advancements([
                AdvancementData(key=advancement.key, completed_criteria=dict(advancement.criteria))
                for advancement in advancements
            ])
            .set_statistics(StatisticsData(
                untyped_statistics=dict(statistics.untyped),
                material_statistics=_merge_material_statistics(statistics.block, statistics.item),
                entity_statistics={k: dict(v) for k, v in statistics.entity.items()},
            ))
            .set_location(location_data)
            .build()
        )


class LegacyMigrator(Migrator[LegacyData]):
    """Migrates player data from the tables of HuskSync v1.x."""

    identifier = "legacy"
    name = "HuskSync v1.x --> v2.x Migrator"
    source_label = "legacy"
    start_message = "Starting migration of legacy HuskSync v1.x data..."
    save_cause = DataSaveCause.LEGACY_MIGRATION
    default_tables = {
        "players_table": "husksync_players",
        "data_table": "husksync_data",
    }
    help_template = LEGACY_HELP
    progress_interval = 50

    def build_query(self) -> str:
        players = self.table("players_table")
        data = self.table("data_table")
        return (
            "SELECT `uuid`, `username`, `inventory`, `ender_chest`, `health`, `max_health`, "
            "`health_scale`, `hunger`, `saturation`, `saturation_exhaustion`, `selected_slot`, "
            "`status_effects`, `total_experience`, `exp_level`, `exp_progress`, `game_mode`, "
            "`statistics`, `is_flying`, `advancements`, `location`\n"
            f"FROM {players}\n"
            f"INNER JOIN {data}\n"
            f"ON {players}.`id` = {data}.`player_id`\n"
            "WHERE `username` IS NOT NULL"
        )

    def stage_row(self, row: Mapping[str, Any]) -> LegacyData:
        return LegacyData.from_row(row)

    def convert(self, record: LegacyData) -> UserData:
        return record.to_user_data(self.settings.minecraft_version)
