"""Migrator for MySQLPlayerDataBridge player data."""

from dataclasses import dataclass
from string import Template
from typing import Any, Mapping
import logging
import uuid

from .base import Migrator
from ..models.user import User
from ..models.user_data import DataSaveCause, ItemData, StatusData, UserData
from ..services.item_codec import (
    deserialize_mpdb_items,
    merge_player_inventory,
    serialize_item_stack_array,
)

logger = logging.getLogger(__name__)

MPDB_HELP = Template("""\
=== MySQLPlayerDataBridge Migration Wizard ==========
This will migrate inventories, ender chests and XP
from the MySQLPlayerDataBridge plugin.

To prevent excessive migration times, other non-vital
data will not be transferred.

[!] Existing data in the database will be wiped. [!]

STEP 1] Please ensure no players are on any servers.

STEP 2] The migrator will need to connect to the database
used to hold the source MySQLPlayerDataBridge data.
Please check these database parameters are OK:
- host: $host
- port: $port
- username: $username
- password: $password
- database: $database
- inventory_table: $inventory_table
- ender_chest_table: $ender_chest_table
- experience_table: $experience_table
If any of these are not correct, please correct them
using the command:
"migrate mpdb set <parameter> <value>"
(e.g.: "migrate mpdb set host 1.2.3.4")

STEP 3] Data will be migrated into the destination
store configured for this installation. Please make
sure you're happy with this before proceeding.

STEP 4] To start the migration, please run:
"migrate mpdb start"
""")


@dataclass(frozen=True)
class MpdbData:
    """A staged row of MySQLPlayerDataBridge data."""
    user: User
    serialized_inventory: str
    serialized_armor: str
    serialized_ender_chest: str
    experience_level: int
    experience_progress: float
    total_experience: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "MpdbData":
        """Stage a row of the MPDB join query."""
        return cls(
            user=User(uuid=uuid.UUID(str(row["player_uuid"])), username=row["player_name"]),
            serialized_inventory=row["inventory"] or "",
            serialized_armor=row["armor"] or "",
            serialized_ender_chest=row["enderchest"] or "",
            experience_level=int(row["exp_lvl"] or 0),
            experience_progress=float(row["exp"] or 0),
            total_experience=int(row["total_exp"] or 0),
        )

    def to_user_data(self, minecraft_version: str) -> UserData:
        """
        Convert to a UserData snapshot.

        The main inventory and the armor pieces are combined into a single
        player inventory. Everything MPDB does not store keeps its default.
        """
        inventory = merge_player_inventory(
            deserialize_mpdb_items(self.serialized_inventory),
            deserialize_mpdb_items(self.serialized_armor),
        )
        ender_chest = deserialize_mpdb_items(self.serialized_ender_chest)

        return (
            UserData.builder(minecraft_version)
            .set_status(StatusData(
                health=20,
                max_health=20,
                health_scale=0,
                hunger=20,
                saturation=10,
                saturation_exhaustion=1,
                selected_item_slot=0,
                total_experience=self.total_experience,
                experience_level=self.experience_level,
                experience_progress=self.experience_progress,
                game_mode="SURVIVAL",
                is_flying=False,
            ))
            .set_inventory(ItemData(serialize_item_stack_array(inventory)))
            .set_ender_chest(ItemData(serialize_item_stack_array(ender_chest)))
            .build()
        )


class MpdbMigrator(Migrator[MpdbData]):
    """Migrates inventories, ender chests and experience from MySQLPlayerDataBridge."""

    identifier = "mpdb"
    name = "MySQLPlayerDataBridge Migrator"
    source_label = "MySQLPlayerDataBridge"
    start_message = "Starting migration from MySQLPlayerDataBridge..."
    save_cause = DataSaveCause.MPDB_MIGRATION
    default_tables = {
        "inventory_table": "mpdb_inventory",
        "ender_chest_table": "mpdb_enderchest",
        "experience_table": "mpdb_experience",
    }
    help_template = MPDB_HELP
    progress_interval = 25

    def build_query(self) -> str:
        inventory = self.table("inventory_table")
        ender_chest = self.table("ender_chest_table")
        experience = self.table("experience_table")
        return (
            f"SELECT {inventory}.`player_uuid`, {inventory}.`player_name`, "
            "`inventory`, `armor`, `enderchest`, `exp_lvl`, `exp`, `total_exp`\n"
            f"FROM {inventory}\n"
            f"    INNER JOIN {ender_chest}\n"
            f"        ON {inventory}.`player_uuid` = {ender_chest}.`player_uuid`\n"
            f"    INNER JOIN {experience}\n"
            f"        ON {inventory}.`player_uuid` = {experience}.`player_uuid`"
        )

    def stage_row(self, row: Mapping[str, Any]) -> MpdbData:
        return MpdbData.from_row(row)

    def convert(self, record: MpdbData) -> UserData:
        return record.to_user_data(self.settings.minecraft_version)
