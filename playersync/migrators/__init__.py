"""Migrators for legacy player data sources."""

from typing import Dict, Type

from .base import CommandResult, Migrator, obfuscate
from .legacy import LegacyData, LegacyMigrator
from .mpdb import MpdbData, MpdbMigrator

MIGRATORS: Dict[str, Type[Migrator]] = {
    LegacyMigrator.identifier: LegacyMigrator,
    MpdbMigrator.identifier: MpdbMigrator,
}


def create_migrator(identifier: str, **kwargs) -> Migrator:
    """
    Create a migrator by its identifier.

    Raises:
        KeyError: If no migrator has that identifier
    """
    try:
        migrator_class = MIGRATORS[identifier.lower()]
    except KeyError:
        raise KeyError(f"Unknown migrator: {identifier}") from None
    return migrator_class(**kwargs)


__all__ = [
    "MIGRATORS",
    "create_migrator",
    "CommandResult",
    "Migrator",
    "obfuscate",
    "LegacyData",
    "LegacyMigrator",
    "MpdbData",
    "MpdbMigrator",
]
