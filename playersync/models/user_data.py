"""Canonical, versioned user data snapshot models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
import json
import uuid

from dateutil import parser as date_parser

from .persistent_data import PersistentDataContainerData, freeze_mapping

# Bumped whenever the shape of a serialized snapshot changes
CURRENT_FORMAT_VERSION = 3


class DataSaveCause(str, Enum):
    """Provenance of a user data snapshot write."""
    DISCONNECT = "disconnect"
    WORLD_SAVE = "world_save"
    DEATH = "death"
    SERVER_SHUTDOWN = "server_shutdown"
    INVENTORY_COMMAND = "inventory_command"
    ENDERCHEST_COMMAND = "enderchest_command"
    BACKUP_RESTORE = "backup_restore"
    API = "api"
    LEGACY_MIGRATION = "legacy_migration"
    MPDB_MIGRATION = "mpdb_migration"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StatusData:
    """Health, hunger, experience and game mode of a player."""
    health: float = 20.0
    max_health: float = 20.0
    health_scale: float = 0.0
    hunger: int = 20
    saturation: float = 10.0
    saturation_exhaustion: float = 0.0
    selected_item_slot: int = 0
    total_experience: int = 0
    experience_level: int = 0
    experience_progress: float = 0.0
    game_mode: str = "SURVIVAL"
    is_flying: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "health": self.health,
            "max_health": self.max_health,
            "health_scale": self.health_scale,
            "hunger": self.hunger,
            "saturation": self.saturation,
            "saturation_exhaustion": self.saturation_exhaustion,
            "selected_item_slot": self.selected_item_slot,
            "total_experience": self.total_experience,
            "experience_level": self.experience_level,
            "experience_progress": self.experience_progress,
            "game_mode": self.game_mode,
            "is_flying": self.is_flying,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusData":
        """Create from dictionary representation."""
        return cls(**data)


@dataclass(frozen=True)
class ItemData:
    """A serialized array of item stacks (inventory or ender chest)."""
    serialized_items: str = ""


@dataclass(frozen=True)
class PotionEffectData:
    """Serialized active potion effects."""
    serialized_potion_effects: str = ""


@dataclass(frozen=True)
class AdvancementData:
    """An advancement and the time each of its criteria was awarded."""
    key: str
    completed_criteria: Mapping[str, datetime] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "completed_criteria", freeze_mapping(self.completed_criteria))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "key": self.key,
            "completed_criteria": {
                name: awarded.isoformat() for name, awarded in self.completed_criteria.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdvancementData":
        """Create from dictionary representation."""
        return cls(
            key=data["key"],
            completed_criteria={
                name: date_parser.isoparse(awarded)
                for name, awarded in data.get("completed_criteria", {}).items()
            },
        )


@dataclass(frozen=True)
class StatisticsData:
    """Player statistics keyed by string identifiers; the maps are read-only copies."""
    untyped_statistics: Mapping[str, int] = field(default_factory=dict)
    material_statistics: Mapping[str, Mapping[str, int]] = field(default_factory=dict)
    entity_statistics: Mapping[str, Mapping[str, int]] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("untyped_statistics", "material_statistics", "entity_statistics"):
            object.__setattr__(self, name, freeze_mapping(getattr(self, name)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "untyped_statistics": dict(self.untyped_statistics),
            "material_statistics": {k: dict(v) for k, v in self.material_statistics.items()},
            "entity_statistics": {k: dict(v) for k, v in self.entity_statistics.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatisticsData":
        """Create from dictionary representation."""
        return cls(
            untyped_statistics=dict(data.get("untyped_statistics", {})),
            material_statistics=dict(data.get("material_statistics", {})),
            entity_statistics=dict(data.get("entity_statistics", {})),
        )


@dataclass(frozen=True)
class LocationData:
    """The world and position of a player."""
    world_name: str
    world_uuid: uuid.UUID
    world_environment: str
    x: float
    y: float
    z: float
    yaw: float
    pitch: float

    @classmethod
    def default(cls) -> "LocationData":
        """Location used when a source offers none; the world UUID is freshly generated."""
        return cls(
            world_name="world",
            world_uuid=uuid.uuid4(),
            world_environment="NORMAL",
            x=0.0,
            y=64.0,
            z=0.0,
            yaw=90.0,
            pitch=180.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "world_name": self.world_name,
            "world_uuid": str(self.world_uuid),
            "world_environment": self.world_environment,
            "x": self.x,
            "y": self.y,
            "z": self.z,
            "yaw": self.yaw,
            "pitch": self.pitch,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocationData":
        """Create from dictionary representation."""
        return cls(
            world_name=data["world_name"],
            world_uuid=uuid.UUID(data["world_uuid"]),
            world_environment=data.get("world_environment", "NORMAL"),
            x=float(data["x"]),
            y=float(data["y"]),
            z=float(data["z"]),
            yaw=float(data["yaw"]),
            pitch=float(data["pitch"]),
        )


@dataclass(frozen=True)
class UserData:
    """
    An immutable, versioned snapshot of a user's synchronised state.

    Instances are assembled with :class:`UserDataBuilder`; any category
    the source could not supply takes its documented default.
    """
    minecraft_version: str
    status: StatusData
    inventory: ItemData
    ender_chest: ItemData
    potion_effects: PotionEffectData
    advancements: Tuple[AdvancementData, ...]
    statistics: StatisticsData
    location: LocationData
    persistent_data: PersistentDataContainerData
    format_version: int = CURRENT_FORMAT_VERSION

    @staticmethod
    def builder(minecraft_version: str) -> "UserDataBuilder":
        """Start building a snapshot tagged with the producing version."""
        return UserDataBuilder(minecraft_version)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "format_version": self.format_version,
            "minecraft_version": self.minecraft_version,
            "status": self.status.to_dict(),
            "inventory": self.inventory.serialized_items,
            "ender_chest": self.ender_chest.serialized_items,
            "potion_effects": self.potion_effects.serialized_potion_effects,
            "advancements": [a.to_dict() for a in self.advancements],
            "statistics": self.statistics.to_dict(),
            "location": self.location.to_dict(),
            "persistent_data": self.persistent_data.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserData":
        """Create from dictionary representation."""
        return cls(
            minecraft_version=data["minecraft_version"],
            format_version=data.get("format_version", CURRENT_FORMAT_VERSION),
            status=StatusData.from_dict(data["status"]),
            inventory=ItemData(data.get("inventory", "")),
            ender_chest=ItemData(data.get("ender_chest", "")),
            potion_effects=PotionEffectData(data.get("potion_effects", "")),
            advancements=tuple(AdvancementData.from_dict(a) for a in data.get("advancements", [])),
            statistics=StatisticsData.from_dict(data.get("statistics", {})),
            location=LocationData.from_dict(data["location"]),
            persistent_data=PersistentDataContainerData.from_dict(data.get("persistent_data", {})),
        )


class UserDataBuilder:
    """Accumulates snapshot sub-records and freezes them into a :class:`UserData`."""

    def __init__(self, minecraft_version: str):
        self.minecraft_version = minecraft_version
        self._status: Optional[StatusData] = None
        self._inventory: Optional[ItemData] = None
        self._ender_chest: Optional[ItemData] = None
        self._potion_effects: Optional[PotionEffectData] = None
        self._advancements: Optional[List[AdvancementData]] = None
        self._statistics: Optional[StatisticsData] = None
        self._location: Optional[LocationData] = None
        self._persistent_data: Optional[PersistentDataContainerData] = None

    def set_status(self, status: StatusData) -> "UserDataBuilder":
        self._status = status
        return self

    def set_inventory(self, inventory: ItemData) -> "UserDataBuilder":
        self._inventory = inventory
        return self

    def set_ender_chest(self, ender_chest: ItemData) -> "UserDataBuilder":
        self._ender_chest = ender_chest
        return self

    def set_potion_effects(self, potion_effects: PotionEffectData) -> "UserDataBuilder":
        self._potion_effects = potion_effects
        return self

    def set_advancements(self, advancements: List[AdvancementData]) -> "UserDataBuilder":
        self._advancements = list(advancements)
        return self

    def set_statistics(self, statistics: StatisticsData) -> "UserDataBuilder":
        self._statistics = statistics
        return self

    def set_location(self, location: LocationData) -> "UserDataBuilder":
        self._location = location
        return self

    def set_persistent_data(self, persistent_data: PersistentDataContainerData) -> "UserDataBuilder":
        self._persistent_data = persistent_data
        return self

    def build(self) -> UserData:
        """
        Freeze the accumulated sub-records into a snapshot.

        Returns:
            UserData with defaults filled in for every unset category
        """
        return UserData(
            minecraft_version=self.minecraft_version,
            status=self._status or StatusData(),
            inventory=self._inventory or ItemData(),
            ender_chest=self._ender_chest or ItemData(),
            potion_effects=self._potion_effects or PotionEffectData(),
            advancements=tuple(self._advancements or ()),
            statistics=self._statistics or StatisticsData(),
            location=self._location or LocationData.default(),
            persistent_data=self._persistent_data or PersistentDataContainerData(),
        )

