"""Pooled SQL extraction from legacy source databases."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterator, List, Mapping, Optional, TypeVar
import logging

from sqlalchemy import Connection, Engine, create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.pool import QueuePool

from ..models.migration import SourceDatabaseParameters

logger = logging.getLogger(__name__)

T = TypeVar("T")

EngineFactory = Callable[[SourceDatabaseParameters, str], Engine]


@dataclass
class ExtractionResult(Generic[T]):
    """Result of an extraction operation."""
    records: List[T] = field(default_factory=list)
    total_rows: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total_extracted(self) -> int:
        return len(self.records)


def quote_identifier(name: str) -> str:
    """
    Quote a table or column name for a MySQL query.

    Only administrator-supplied identifiers go through here; row values
    are never placed in query text.
    """
    # Colons are escaped so SQLAlchemy does not read them as bind parameters
    return "`" + name.replace("`", "``").replace(":", "\\:") + "`"


def create_source_engine(parameters: SourceDatabaseParameters, pool_name: str) -> Engine:
    """Create a pooled engine for a MySQL source database."""
    url = URL.create(
        "mysql+pymysql",
        username=parameters.username,
        password=parameters.password,
        host=parameters.host,
        port=parameters.port,
        database=parameters.database,
    )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=1,
        max_overflow=1,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        pool_logging_name=pool_name,
        connect_args={"charset": "utf8mb4"},
    )


class SqlExtractor:
    """
    Extracts and stages every row of a single source query.

    The whole result set is materialised into staging records before any
    conversion starts.
    """

    def __init__(
        self,
        parameters: SourceDatabaseParameters,
        pool_name: str,
        engine_factory: Optional[EngineFactory] = None,
        progress_interval: int = 50,
        source_label: str = "source"
    ):
        """
        Initialize the extractor.

        Args:
            parameters: Source connection parameters
            pool_name: Name of the connection pool
            engine_factory: Creates the engine; defaults to a MySQL pool
            progress_interval: Log progress every this many rows
            source_label: Human-readable source name for log lines
        """
        self.parameters = parameters
        self.pool_name = pool_name
        self.engine_factory = engine_factory or create_source_engine
        self.progress_interval = progress_interval
        self.source_label = source_label

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """
        Open a pooled connection to the source.

        The pool is disposed when the block exits, however it exits.
        """
        logger.info(f"Establishing connection to {self.source_label} database...")
        engine = self.engine_factory(self.parameters, self.pool_name)
        try:
            with engine.connect() as connection:
                yield connection
        finally:
            engine.dispose()

    def extract(
        self,
        connection: Connection,
        query: str,
        stage: Callable[[Mapping[str, Any]], T]
    ) -> ExtractionResult[T]:
        """
        Run the query and stage every returned row.

        Args:
            connection: Open source connection
            query: The SELECT to run
            stage: Converts one result row into a staging record

        Returns:
            ExtractionResult with the staged records; rows that could not
            be staged are listed in ``errors``
        """
        result: ExtractionResult[T] = ExtractionResult()
        logger.info(f"Downloading raw data from the {self.source_label} database (this might take a while)...")

        for row in connection.execute(text(query)).mappings():
            result.total_rows += 1
            try:
                result.records.append(stage(row))
            except Exception as e:
                result.errors.append({"row": result.total_rows, "error": str(e)})
                logger.error(f"Skipping unreadable row {result.total_rows} from {self.source_label}: {e}")

            if result.total_rows % self.progress_interval == 0:
                logger.info(f"Downloaded {self.source_label} data for {result.total_rows} players...")

        logger.info(
            f"Completed download of {result.total_extracted} entries from the {self.source_label} database!"
        )
        return result
