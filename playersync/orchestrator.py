"""Migration orchestrator - drives a migrator through the full pipeline."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any, AsyncIterator, List, Optional

from .extractors.base import EngineFactory, SqlExtractor
from .loaders.base import UserDataStore
from .models.migration import MigrationRun, MigrationStatus, MigrationStep

if TYPE_CHECKING:
    from .migrators.base import Migrator

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """
    Orchestrates one migration run.

    Handles:
    - Wiping the destination store
    - Connecting to the source through a named connection pool
    - Downloading and staging every source row
    - Converting and loading each staged record in isolation
    - Progress tracking and reporting

    Failures while wiping, connecting or querying end the run; a failure
    while converting or writing one record only skips that record.
    """

    CONVERSION_PROGRESS_INTERVAL = 50

    def __init__(
        self,
        migrator: "Migrator",
        store: UserDataStore,
        engine_factory: Optional[EngineFactory] = None,
        workers: int = 1
    ):
        """
        Initialize the orchestrator.

        Args:
            migrator: The migrator whose pipeline to run
            store: Destination store for converted user data
            engine_factory: Creates the source engine; defaults to MySQL
            workers: Number of records converted and loaded concurrently
        """
        self.migrator = migrator
        self.store = store
        self.workers = max(1, workers)
        self.extractor = SqlExtractor(
            parameters=migrator.parameters,
            pool_name=migrator.pool_name,
            engine_factory=engine_factory,
            progress_interval=migrator.progress_interval,
            source_label=migrator.source_label,
        )

        # Runtime state
        self.migration_run = MigrationRun(migrator=migrator.identifier)
        self.records: List[Any] = []

    async def execute(self) -> MigrationRun:
        """
        Run the complete migration.

        Returns:
            MigrationRun with results and statistics
        """
        run = self.migration_run
        run.started_at = datetime.utcnow()
        logger.info(self.migrator.start_message)

        try:
            # Phase 1: Wipe
            logger.info("=== PHASE 1: WIPING ===")
            await self._run_wipe()

            # Phase 2: Connect and extract
            logger.info("=== PHASE 2: EXTRACTION ===")
            await self._run_extraction()

            # Phase 3: Convert and load
            logger.info("=== PHASE 3: CONVERSION AND LOADING ===")
            await self._run_loading()

            run.status = MigrationStatus.COMPLETED
            elapsed = int((datetime.utcnow() - run.started_at).total_seconds())
            logger.info(f"Migration complete for {len(self.records)} users in {elapsed} seconds!")

        except Exception as e:
            failed_phase = run.status
            run.status = MigrationStatus.FAILED
            run.errors.append({
                "phase": failed_phase.value,
                "error": str(e),
                "timestamp": datetime.utcnow().isoformat(),
            })
            logger.error(
                f"Error while migrating {self.migrator.source_label} data: {e}"
                " - are your source database credentials correct?"
            )

        finally:
            run.completed_at = datetime.utcnow()
            run.update_totals()
            self._log_summary()

        return run

    @asynccontextmanager
    async def _phase(
        self,
        name: str,
        phase: MigrationStatus,
        status: Optional[MigrationStatus] = None
    ) -> AsyncIterator[MigrationStep]:
        """Track a phase as a step of the run; errors mark it failed and propagate."""
        step = self.migration_run.add_step(name, phase)
        self.migration_run.status = status or phase
        step.status = phase
        step.started_at = datetime.utcnow()
        try:
            yield step
        except Exception as e:
            step.status = MigrationStatus.FAILED
            step.errors.append({"error": str(e)})
            raise
        else:
            step.status = MigrationStatus.COMPLETED
        finally:
            step.completed_at = datetime.utcnow()

    async def _run_wipe(self) -> None:
        """Run the wipe phase."""
        async with self._phase("Wipe destination store", MigrationStatus.WIPING) as step:
            logger.info("Preparing existing database (wiping)...")
            await self.store.wipe_database()
        took = int((step.completed_at - step.started_at).total_seconds() * 1000)
        logger.info(f"Successfully wiped user data database (took {took}ms)")

    async def _run_extraction(self) -> None:
        """Run the connect and extraction phase."""
        async with self._phase(
            f"Download {self.migrator.source_label} data",
            MigrationStatus.EXTRACTING,
            status=MigrationStatus.CONNECTING,
        ) as step:
            result = await asyncio.to_thread(self._download)
            self.records = result.records
            step.records_processed = result.total_rows
            step.records_succeeded = result.total_extracted
            step.records_failed = len(result.errors)
            step.errors.extend(result.errors)

        self.migration_run.status = MigrationStatus.STAGED
        self.migration_run.total_records_staged = len(self.records)

    def _download(self):
        # Runs in a worker thread; the pool is disposed before it returns
        with self.extractor.connect() as connection:
            self.migration_run.status = MigrationStatus.EXTRACTING
            return self.extractor.extract(
                connection,
                self.migrator.build_query(),
                self.migrator.stage_row,
            )

    async def _run_loading(self) -> None:
        """Run the convert and load phase."""
        async with self._phase("Convert and load user data", MigrationStatus.LOADING) as step:
            logger.info(
                f"Converting {self.migrator.source_label} data to the new user data format "
                "(this might take a while)..."
            )
            if self.workers == 1:
                for record in self.records:
                    await self._migrate_record(record, step)
            else:
                semaphore = asyncio.Semaphore(self.workers)

                async def migrate(record: Any) -> None:
                    async with semaphore:
                        await self._migrate_record(record, step)

                await asyncio.gather(*(migrate(record) for record in self.records))

    async def _migrate_record(self, record: Any, step: MigrationStep) -> None:
        """Convert and store a single staged record."""
        user = record.user
        try:
            data = await asyncio.to_thread(self.migrator.convert, record)
            await self.store.ensure_user(user)
            await self.store.set_user_data(user, data, self.migrator.save_cause)
        except Exception as e:
            step.records_failed += 1
            step.errors.append({
                "username": user.username,
                "uuid": str(user.uuid),
                "error": str(e),
                "error_type": type(e).__name__,
            })
            logger.error(f"Failed to migrate {self.migrator.source_label} data for {user.username}: {e}")
        else:
            step.records_succeeded += 1
        finally:
            step.records_processed += 1
            if step.records_processed % self.CONVERSION_PROGRESS_INTERVAL == 0:
                logger.info(
                    f"Converted {self.migrator.source_label} data for {step.records_processed} players..."
                )

    def _log_summary(self) -> None:
        run = self.migration_run
        logger.info(
            f"Run {run.id} ({run.migrator}) finished with status {run.status.value}: "
            f"{run.total_records_succeeded} succeeded, {run.total_records_failed} failed "
            f"of {run.total_records_staged} staged"
        )
