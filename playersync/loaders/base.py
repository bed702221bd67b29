"""Destination store interface for migrated user data."""

from abc import ABC, abstractmethod

from ..models.user import User
from ..models.user_data import DataSaveCause, UserData


class UserDataStore(ABC):
    """
    Base class for user data destination stores.

    Migrations use three operations: a full wipe before loading, making
    sure a user row exists, and writing a snapshot for that user.
    """

    @abstractmethod
    async def wipe_database(self) -> None:
        """Delete all users and their snapshots."""
        pass

    @abstractmethod
    async def ensure_user(self, user: User) -> None:
        """
        Create the user if missing, or update their username.

        Args:
            user: The user to ensure
        """
        pass

    @abstractmethod
    async def set_user_data(self, user: User, data: UserData, cause: DataSaveCause) -> None:
        """
        Store a new snapshot for a user.

        Args:
            user: Owner of the snapshot
            data: The snapshot to store
            cause: Why the snapshot is being written
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the store."""
        return None
