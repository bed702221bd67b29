"""Base class for legacy data migrators."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from string import Template
from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, Sequence, TypeVar
import logging

from ..extractors.base import EngineFactory, quote_identifier
from ..loaders.base import UserDataStore
from ..loaders.memory_store import InMemoryUserDataStore
from ..models.migration import MigrationRun, Settings
from ..models.user_data import DataSaveCause, UserData
from ..orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)

R = TypeVar("R")

CONNECTION_PARAMETERS = ("host", "port", "username", "password", "database")
REDACTED_PARAMETERS = frozenset({"username", "password"})


def obfuscate(value: str) -> str:
    """Mask every character of a value except the first and last."""
    if len(value) <= 2:
        return "*" * len(value)
    return value[0] + "*" * (len(value) - 2) + value[-1]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of an operator command."""
    success: bool
    message: str


class Migrator(ABC, Generic[R]):
    """
    Base class for migrators.

    A migrator knows one legacy source schema: which query downloads it,
    how a result row becomes a staging record, and how a staging record
    becomes a UserData snapshot. The pipeline itself is shared and lives
    in :class:`MigrationOrchestrator`.
    """

    identifier: ClassVar[str]
    name: ClassVar[str]
    source_label: ClassVar[str]
    start_message: ClassVar[str]
    save_cause: ClassVar[DataSaveCause]
    default_tables: ClassVar[Dict[str, str]]
    help_template: ClassVar[Template]
    progress_interval: ClassVar[int] = 50

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[UserDataStore] = None,
        engine_factory: Optional[EngineFactory] = None,
        workers: Optional[int] = None
    ):
        """
        Initialize the migrator.

        Args:
            settings: Host settings; its data-store credentials are the
                default source parameters
            store: Destination store; defaults to an in-memory store
            engine_factory: Creates the source engine; defaults to MySQL
            workers: Records converted concurrently; defaults to settings
        """
        self.settings = settings or Settings()
        self.parameters = self.settings.source_parameters(self.default_tables)
        self.store = store if store is not None else InMemoryUserDataStore()
        self.engine_factory = engine_factory
        self.workers = workers or self.settings.parallel_workers
        self.last_run: Optional[MigrationRun] = None
        self._running = False

    @property
    def pool_name(self) -> str:
        return f"{self.identifier}_migrator_pool".upper()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def parameter_names(self) -> List[str]:
        return list(CONNECTION_PARAMETERS) + list(self.default_tables)

    def table(self, role: str) -> str:
        """Get the quoted name of a source table."""
        return quote_identifier(self.parameters.tables[role])

    def redacted_parameters(self) -> Dict[str, Any]:
        """Current parameters with credentials masked."""
        values: Dict[str, Any] = {
            "host": self.parameters.host,
            "port": self.parameters.port,
            "username": obfuscate(self.parameters.username),
            "password": obfuscate(self.parameters.password),
            "database": self.parameters.database,
        }
        values.update(self.parameters.tables)
        return values

    def help_text(self) -> str:
        """Render the operator guide from the current parameters."""
        values = {name: str(value) for name, value in self.redacted_parameters().items()}
        return self.help_template.substitute(values)

    def set_parameter(self, name: str, value: str) -> bool:
        """
        Set one source parameter.

        Returns:
            False, with nothing changed, if the name is unknown or the
            value is invalid
        """
        name = name.lower()
        if name == "port":
            try:
                port = int(value)
            except ValueError:
                return False
            if not 0 < port < 65536:
                return False
            self.parameters.port = port
        elif name in ("host", "username", "password", "database"):
            setattr(self.parameters, name, value)
        elif name in self.default_tables:
            self.parameters.tables[name] = value
        else:
            return False
        return True

    def handle_configuration_command(self, args: Sequence[str]) -> CommandResult:
        """
        Handle a ``set <parameter> <value>`` command.

        Zero or one argument returns the help text; more than two arguments
        is an error. Never raises.
        """
        if len(args) < 2:
            return CommandResult(True, self.help_text())
        if len(args) > 2:
            return CommandResult(
                False,
                f"Invalid operation, expected a parameter and a single value (got {len(args)} arguments)",
            )

        name, value = args
        # Unknown names may be mistyped credentials
        key = name.lower()
        shown = obfuscate(value) if key in REDACTED_PARAMETERS or key not in self.parameter_names else value
        if self.set_parameter(name, value):
            logger.info(f"Set {self.identifier} source parameter {name.lower()}")
            return CommandResult(True, f"{self.help_text()}\nSuccessfully set {name} to {shown}")
        return CommandResult(False, f"Invalid operation, could not set {name} to {shown} (is it a valid option?)")

    @abstractmethod
    def build_query(self) -> str:
        """Build the single SELECT that downloads all source data."""
        pass

    @abstractmethod
    def stage_row(self, row: Mapping[str, Any]) -> R:
        """Turn one source row into a staging record."""
        pass

    @abstractmethod
    def convert(self, record: R) -> UserData:
        """Convert a staging record into a UserData snapshot."""
        pass

    def reserve(self) -> bool:
        """
        Mark the migrator as running unless a run is already in progress.

        Returns:
            False if another run holds the migrator
        """
        if self._running:
            return False
        self._running = True
        return True

    async def start(self, reserved: bool = False) -> bool:
        """
        Run the full migration pipeline.

        Args:
            reserved: True when the caller already holds the migrator
                through :meth:`reserve`

        Returns:
            True when the pipeline completed, False on a fatal error or
            when another run is in progress. Records that failed
            individually do not make this False.
        """
        if not reserved and not self.reserve():
            logger.warning(f"{self.name} is already running, not starting another run")
            return False

        try:
            orchestrator = MigrationOrchestrator(
                self,
                self.store,
                engine_factory=self.engine_factory,
                workers=self.workers,
            )
            self.last_run = orchestrator.migration_run
            await orchestrator.execute()
        finally:
            self._running = False
        return self.last_run.succeeded
