"""In-memory destination store."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .base import UserDataStore
from ..models.user import User
from ..models.user_data import DataSaveCause, UserData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserDataSnapshot:
    """A stored snapshot with its write metadata."""
    version_uuid: uuid.UUID
    user: User
    data: UserData
    cause: DataSaveCause
    timestamp: datetime = field(default_factory=datetime.utcnow)


class InMemoryUserDataStore(UserDataStore):
    """
    Destination store that keeps everything in process memory.

    Used for dry runs. Every call is appended to ``operations`` so the
    order of wipes and writes can be inspected afterwards.
    """

    def __init__(self):
        self.users: Dict[uuid.UUID, User] = {}
        self.snapshots: Dict[uuid.UUID, List[UserDataSnapshot]] = {}
        self.operations: List[Tuple[str, Optional[str]]] = []

    async def wipe_database(self) -> None:
        self.users.clear()
        self.snapshots.clear()
        self.operations.append(("wipe", None))
        logger.debug("Wiped in-memory user data store")

    async def ensure_user(self, user: User) -> None:
        self.users[user.uuid] = user
        self.operations.append(("ensure_user", user.username))

    async def set_user_data(self, user: User, data: UserData, cause: DataSaveCause) -> None:
        if user.uuid not in self.users:
            raise KeyError(f"User {user.username} ({user.uuid}) does not exist")
        snapshot = UserDataSnapshot(
            version_uuid=uuid.uuid4(),
            user=user,
            data=data,
            cause=cause,
        )
        self.snapshots.setdefault(user.uuid, []).append(snapshot)
        self.operations.append(("set_user_data", user.username))

    def get_latest(self, user_uuid: uuid.UUID) -> Optional[UserDataSnapshot]:
        """Get the most recent snapshot of a user."""
        snapshots = self.snapshots.get(user_uuid)
        return snapshots[-1] if snapshots else None

    @property
    def usernames(self) -> List[str]:
        return sorted(user.username for user in self.users.values())
