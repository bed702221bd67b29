"""
Player Data Migration Engine

Migrates per-player state snapshots from legacy relational data sources into
the canonical, versioned user-data model of the synchronisation database.

Supports:
- HuskSync v1.x legacy tables
- MySQLPlayerDataBridge (MPDB) tables
- Runtime-configurable source connection parameters
- Per-record failure isolation during conversion and loading
- Bridging typed persistent-data containers to canonical tag kinds
"""

__version__ = "2.0.0"
