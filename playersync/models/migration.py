"""Migration execution models."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime
import os
import uuid


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    PENDING = "pending"
    WIPING = "wiping"
    CONNECTING = "connecting"
    EXTRACTING = "extracting"
    STAGED = "staged"
    LOADING = "loading"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SourceDatabaseParameters:
    """Connection parameters of a legacy source database."""
    host: str = "localhost"
    port: int = 3306
    username: str = "root"
    password: str = ""
    database: str = "minecraft"
    tables: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (credentials included)."""
        return {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "password": self.password,
            "database": self.database,
            "tables": dict(self.tables),
        }


@dataclass
class MigrationStep:
    """A single phase of a migration run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    phase: Optional[MigrationStatus] = None
    status: MigrationStatus = MigrationStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    records_processed: int = 0
    records_succeeded: int = 0
    records_failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "phase": self.phase.value if self.phase else None,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "records_processed": self.records_processed,
            "records_succeeded": self.records_succeeded,
            "records_failed": self.records_failed,
            "errors": self.errors,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


@dataclass
class MigrationRun:
    """A complete run of one migrator."""
    migrator: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: MigrationStatus = MigrationStatus.PENDING

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Progress
    steps: List[MigrationStep] = field(default_factory=list)

    # Statistics
    total_records_staged: int = 0
    total_records_processed: int = 0
    total_records_succeeded: int = 0
    total_records_failed: int = 0

    errors: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "migrator": self.migrator,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "steps": [s.to_dict() for s in self.steps],
            "total_records_staged": self.total_records_staged,
            "total_records_processed": self.total_records_processed,
            "total_records_succeeded": self.total_records_succeeded,
            "total_records_failed": self.total_records_failed,
            "errors": self.errors,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def succeeded(self) -> bool:
        return self.status == MigrationStatus.COMPLETED

    def add_step(self, name: str, phase: Optional[MigrationStatus] = None) -> MigrationStep:
        """Add a new step to the run."""
        step = MigrationStep(name=name, phase=phase)
        self.steps.append(step)
        return step

    def update_totals(self) -> None:
        """Update record totals from the loading steps."""
        loading = [s for s in self.steps if s.phase == MigrationStatus.LOADING]
        self.total_records_processed = sum(s.records_processed for s in loading)
        self.total_records_succeeded = sum(s.records_succeeded for s in loading)
        self.total_records_failed = sum(s.records_failed for s in loading)


@dataclass
class Settings:
    """
    Settings of the host application.

    The migrators reuse the host's own data-store credentials as their
    default source parameters.
    """
    mysql_host: str = "localhost"
    mysql_port: int = 3306
    mysql_username: str = "root"
    mysql_password: str = ""
    mysql_database: str = "minecraft"

    # Version tag written into every migrated snapshot
    minecraft_version: str = "1.19.2"

    # Destination store; None migrates into memory only
    destination_url: Optional[str] = None

    # Concurrency degree of the convert-and-load phase
    parallel_workers: int = 1

    ENV_PREFIX = "PLAYERSYNC_"

    def source_parameters(self, tables: Dict[str, str]) -> SourceDatabaseParameters:
        """Build default source parameters from the host's credentials."""
        return SourceDatabaseParameters(
            host=self.mysql_host,
            port=self.mysql_port,
            username=self.mysql_username,
            password=self.mysql_password,
            database=self.mysql_database,
            tables=dict(tables),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "mysql_host": self.mysql_host,
            "mysql_port": self.mysql_port,
            "mysql_username": self.mysql_username,
            "mysql_database": self.mysql_database,
            "minecraft_version": self.minecraft_version,
            "destination_url": self.destination_url,
            "parallel_workers": self.parallel_workers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create from dictionary representation."""
        return cls(
            mysql_host=data.get("mysql_host", "localhost"),
            mysql_port=int(data.get("mysql_port", 3306)),
            mysql_username=data.get("mysql_username", "root"),
            mysql_password=data.get("mysql_password", ""),
            mysql_database=data.get("mysql_database", "minecraft"),
            minecraft_version=data.get("minecraft_version", "1.19.2"),
            destination_url=data.get("destination_url"),
            parallel_workers=int(data.get("parallel_workers", 1)),
        )

    def with_environment(self, environ: Optional[Dict[str, str]] = None) -> "Settings":
        """Return a copy with ``PLAYERSYNC_*`` environment variables applied."""
        environ = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for name in ("mysql_host", "mysql_username", "mysql_password",
                     "mysql_database", "minecraft_version", "destination_url"):
            value = environ.get(self.ENV_PREFIX + name.upper())
            if value is not None:
                overrides[name] = value
        for name in ("mysql_port", "parallel_workers"):
            value = environ.get(self.ENV_PREFIX + name.upper())
            if value is not None:
                overrides[name] = int(value)
        return replace(self, **overrides)
