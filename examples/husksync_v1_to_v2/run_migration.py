#!/usr/bin/env python3
"""
Example: HuskSync v1.x to v2.x Migration

This script demonstrates how to use the playersync package to move the
data of a HuskSync v1.x installation into the v2.x user data tables.

Usage:
    # Dry run (converted data is kept in memory only)
    python run_migration.py --dry-run

    # Full migration
    python run_migration.py

    # Legacy tables with a custom prefix
    python run_migration.py --table-prefix old_husksync
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from playersync.cli import build_store, load_settings
from playersync.migrators import LegacyMigrator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('migration.log')
    ]
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="HuskSync v1.x to v2.x migration")
    parser.add_argument("--config", default=str(Path(__file__).parent / "settings.json"))
    parser.add_argument("--dry-run", action="store_true", help="Keep converted data in memory")
    parser.add_argument("--table-prefix", default="husksync", help="Prefix of the legacy tables")
    args = parser.parse_args()

    settings = load_settings(args.config)
    store = build_store(settings, dry_run=args.dry_run)
    migrator = LegacyMigrator(settings=settings, store=store)

    for name, value in (
        ("players_table", f"{args.table_prefix}_players"),
        ("data_table", f"{args.table_prefix}_data"),
    ):
        result = migrator.handle_configuration_command([name, value])
        if not result.success:
            logger.error(result.message)
            return 1

    print(migrator.help_text())

    succeeded = asyncio.run(migrator.start())
    run = migrator.last_run

    print("\n" + "=" * 60)
    print("MIGRATION COMPLETE" if succeeded else "MIGRATION FAILED")
    print("=" * 60)
    print(f"Users Staged: {run.total_records_staged}")
    print(f"Succeeded: {run.total_records_succeeded}")
    print(f"Failed: {run.total_records_failed}")
    for error in run.errors:
        print(f"  - {error['phase']}: {error['error']}")

    asyncio.run(store.close())
    return 0 if succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
