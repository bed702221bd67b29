"""SQLAlchemy-backed destination store."""

import asyncio
import json
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Engine,
    ForeignKey,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    update,
)

from .base import UserDataStore
from ..models.user import User
from ..models.user_data import DataSaveCause, UserData

logger = logging.getLogger(__name__)

metadata = MetaData()

users_table = Table(
    "playersync_users",
    metadata,
    Column("uuid", String(36), primary_key=True),
    Column("username", String(16), nullable=False),
)

user_data_table = Table(
    "playersync_user_data",
    metadata,
    Column("version_uuid", String(36), primary_key=True),
    Column("player_uuid", String(36), ForeignKey("playersync_users.uuid", ondelete="CASCADE"),
           nullable=False, index=True),
    Column("timestamp", DateTime, nullable=False),
    Column("save_cause", String(32), nullable=False),
    Column("pinned", Boolean, nullable=False, default=False),
    Column("data", Text, nullable=False),
)


class SqlUserDataStore(UserDataStore):
    """
    Destination store writing users and snapshots through SQLAlchemy.

    Blocking database calls run in worker threads so the event loop is
    never held up by I/O.
    """

    def __init__(self, engine: Union[Engine, str], create_tables: bool = True):
        """
        Initialize the store.

        Args:
            engine: SQLAlchemy engine or database URL
            create_tables: Create the tables if they do not exist
        """
        self._owns_engine = isinstance(engine, str)
        self.engine = create_engine(engine, pool_pre_ping=True) if isinstance(engine, str) else engine
        if create_tables:
            metadata.create_all(self.engine)

    async def wipe_database(self) -> None:
        await asyncio.to_thread(self._wipe)

    def _wipe(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(user_data_table))
            conn.execute(delete(users_table))
        logger.info("Wiped destination user data tables")

    async def ensure_user(self, user: User) -> None:
        await asyncio.to_thread(self._ensure_user, user)

    def _ensure_user(self, user: User) -> None:
        with self.engine.begin() as conn:
            existing = conn.execute(
                select(users_table.c.username).where(users_table.c.uuid == str(user.uuid))
            ).first()
            if existing is None:
                conn.execute(insert(users_table).values(uuid=str(user.uuid), username=user.username))
            elif existing.username != user.username:
                conn.execute(
                    update(users_table)
                    .where(users_table.c.uuid == str(user.uuid))
                    .values(username=user.username)
                )

    async def set_user_data(self, user: User, data: UserData, cause: DataSaveCause) -> None:
        await asyncio.to_thread(self._set_user_data, user, data, cause)

    def _set_user_data(self, user: User, data: UserData, cause: DataSaveCause) -> None:
        with self.engine.begin() as conn:
            conn.execute(insert(user_data_table).values(
                version_uuid=str(uuid.uuid4()),
                player_uuid=str(user.uuid),
                timestamp=datetime.utcnow(),
                save_cause=cause.value,
                pinned=False,
                data=data.to_json(),
            ))

    def get_latest_user_data(self, user: User) -> Optional[UserData]:
        """Get the most recent snapshot of a user, if any."""
        with self.engine.connect() as conn:
            row = conn.execute(
                select(user_data_table.c.data)
                .where(user_data_table.c.player_uuid == str(user.uuid))
                .order_by(user_data_table.c.timestamp.desc())
                .limit(1)
            ).first()
        return UserData.from_dict(json.loads(row.data)) if row else None

    def get_users(self) -> List[User]:
        """Get every user in the store."""
        with self.engine.connect() as conn:
            rows = conn.execute(select(users_table.c.uuid, users_table.c.username)).all()
        return [User(uuid=uuid.UUID(row.uuid), username=row.username) for row in rows]

    async def close(self) -> None:
        if self._owns_engine:
            self.engine.dispose()
