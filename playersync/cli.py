"""Command-line interface and interactive migration shell."""

import argparse
import asyncio
import json
import logging
import shlex
import sys
from typing import Dict, List, Optional, Sequence

from .extractors.base import EngineFactory
from .loaders.base import UserDataStore
from .loaders.memory_store import InMemoryUserDataStore
from .loaders.sql_store import SqlUserDataStore
from .migrators import MIGRATORS, CommandResult, Migrator
from .models.migration import Settings

logger = logging.getLogger(__name__)


def load_settings(config_path: Optional[str] = None) -> Settings:
    """Load settings from an optional JSON file, then apply environment overrides."""
    settings = Settings()
    if config_path:
        with open(config_path) as f:
            settings = Settings.from_dict(json.load(f))
    return settings.with_environment()


def build_store(settings: Settings, dry_run: bool = False) -> UserDataStore:
    """Create the destination store; dry runs and unset destinations stay in memory."""
    if dry_run or not settings.destination_url:
        logger.info("Using in-memory destination store (nothing will be persisted)")
        return InMemoryUserDataStore()
    return SqlUserDataStore(settings.destination_url)


def build_migrators(
    settings: Settings,
    store: UserDataStore,
    engine_factory: Optional[EngineFactory] = None,
    workers: Optional[int] = None
) -> Dict[str, Migrator]:
    """Create one migrator of every kind, all sharing one destination store."""
    return {
        identifier: migrator_class(
            settings=settings,
            store=store,
            engine_factory=engine_factory,
            workers=workers,
        )
        for identifier, migrator_class in MIGRATORS.items()
    }


class MigrateCommand:
    """
    Routes ``migrate`` command arguments to the migrators.

    Supports:
    - ``migrate`` lists the available migrators
    - ``migrate <id>`` and ``migrate <id> help`` show a migrator's guide
    - ``migrate <id> set <parameter> <value>`` changes a source parameter
    - ``migrate <id> start`` runs the migration
    """

    def __init__(self, migrators: Dict[str, Migrator]):
        self.migrators = migrators

    def list_migrators(self) -> str:
        lines = ["Available migrators:"]
        for identifier, migrator in self.migrators.items():
            lines.append(f"  {identifier} - {migrator.name}")
        lines.append('Use "migrate <migrator> help" for instructions.')
        return "\n".join(lines)

    def execute(self, args: Sequence[str]) -> CommandResult:
        """Execute a migrate command and report its outcome."""
        if not args:
            return CommandResult(True, self.list_migrators())

        migrator = self.migrators.get(args[0].lower())
        if migrator is None:
            return CommandResult(False, f"Unknown migrator: {args[0]}\n{self.list_migrators()}")

        action = args[1].lower() if len(args) > 1 else "help"
        if action == "help":
            return CommandResult(True, migrator.help_text())
        if action == "set":
            return migrator.handle_configuration_command(list(args[2:]))
        if action == "start":
            return self._start(migrator)
        return CommandResult(False, f"Unknown action: {args[1]}\n{migrator.help_text()}")

    def _start(self, migrator: Migrator) -> CommandResult:
        if migrator.is_running:
            return CommandResult(False, f"{migrator.name} is already running")

        succeeded = asyncio.run(migrator.start())
        run = migrator.last_run
        if not succeeded:
            return CommandResult(False, "Migration failed, check the log for details")
        return CommandResult(
            True,
            f"Migration complete: {run.total_records_succeeded} succeeded, "
            f"{run.total_records_failed} failed of {run.total_records_staged} users",
        )


class MigrationShell:
    """Interactive shell for configuring and starting migrations."""

    def __init__(self, command: MigrateCommand):
        self.command = command

    def run(self):
        """Run the interactive shell loop."""
        print("\n" + "=" * 60)
        print("  Player Data Migration - Interactive Shell")
        print("=" * 60)
        print('Type "migrate" to list migrators, "quit" to exit.')

        while True:
            try:
                line = input("\nplayersync> ").strip()
            except EOFError:
                print("\nGoodbye!")
                break

            if not line:
                continue
            if line in ("quit", "exit", "q"):
                print("\nGoodbye!")
                break

            print(self.handle(line))

    def handle(self, line: str) -> str:
        """Handle one line of shell input."""
        try:
            words = shlex.split(line)
        except ValueError as e:
            return f"Could not parse command: {e}"

        if words[0] != "migrate":
            return f'Unknown command: {words[0]} (try "migrate")'
        return self.command.execute(words[1:]).message


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Player Data Migration Tool - Migrate legacy player data into the sync database"
    )
    parser.add_argument("--config", help="Path to a JSON settings file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # List migrators
    subparsers.add_parser("list", help="List available migrators")

    # Migrator guide
    help_parser = subparsers.add_parser("help", help="Show a migrator's guide")
    help_parser.add_argument("migrator", help="Migrator identifier")

    # Run migration
    run_parser = subparsers.add_parser("run", help="Run a migration")
    run_parser.add_argument("migrator", help="Migrator identifier")
    run_parser.add_argument(
        "--set", action="append", default=[], metavar="NAME=VALUE",
        help="Set a source parameter (repeatable)"
    )
    run_parser.add_argument("--dry-run", action="store_true", help="Migrate into memory only")
    run_parser.add_argument("--workers", type=int, help="Records converted concurrently")

    # Interactive shell
    subparsers.add_parser("shell", help="Interactive migration shell")

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command is None:
        parser.print_help()
        return 0

    settings = load_settings(args.config)
    store = build_store(settings, dry_run=getattr(args, "dry_run", False))
    command = MigrateCommand(build_migrators(settings, store, workers=getattr(args, "workers", None)))

    if args.command == "list":
        print(command.list_migrators())
        return 0
    if args.command == "help":
        result = command.execute([args.migrator, "help"])
        print(result.message)
        return 0 if result.success else 1
    if args.command == "run":
        return run_migration(command, args.migrator, args.set)

    MigrationShell(command).run()
    return 0


def run_migration(command: MigrateCommand, identifier: str, assignments: List[str]) -> int:
    """Apply ``NAME=VALUE`` parameter assignments, then run a migration."""
    migrator = command.migrators.get(identifier.lower())
    if migrator is None:
        print(command.execute([identifier]).message)
        return 1

    for assignment in assignments:
        name, sep, value = assignment.partition("=")
        if not sep:
            print(f"Invalid parameter assignment: {assignment} (expected NAME=VALUE)")
            return 1
        result = migrator.handle_configuration_command([name, value])
        if not result.success:
            print(result.message)
            return 1

    result = command.execute([identifier, "start"])
    run = migrator.last_run

    print("\n" + "=" * 60)
    print("MIGRATION COMPLETE" if result.success else "MIGRATION FAILED")
    print("=" * 60)
    if run is not None:
        print(f"Status: {run.status.value}")
        print(f"Users Staged: {run.total_records_staged}")
        print(f"Records Processed: {run.total_records_processed}")
        print(f"Succeeded: {run.total_records_succeeded}")
        print(f"Failed: {run.total_records_failed}")
        if run.duration_seconds:
            print(f"Duration: {run.duration_seconds:.2f} seconds")

    asyncio.run(migrator.store.close())
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
