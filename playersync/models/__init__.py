"""Data models for the migration engine."""

from .user import User
from .user_data import (
    CURRENT_FORMAT_VERSION,
    AdvancementData,
    DataSaveCause,
    ItemData,
    LocationData,
    PotionEffectData,
    StatisticsData,
    StatusData,
    UserData,
    UserDataBuilder,
)
from .persistent_data import (
    PersistentDataContainerData,
    PersistentDataTag,
    PersistentDataTagType,
)
from .migration import (
    MigrationRun,
    MigrationStatus,
    MigrationStep,
    Settings,
    SourceDatabaseParameters,
)

__all__ = [
    "User",
    "CURRENT_FORMAT_VERSION",
    "AdvancementData",
    "DataSaveCause",
    "ItemData",
    "LocationData",
    "PotionEffectData",
    "StatisticsData",
    "StatusData",
    "UserData",
    "UserDataBuilder",
    "PersistentDataContainerData",
    "PersistentDataTag",
    "PersistentDataTagType",
    "MigrationRun",
    "MigrationStatus",
    "MigrationStep",
    "Settings",
    "SourceDatabaseParameters",
]
