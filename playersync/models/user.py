"""User identity model."""

from dataclasses import dataclass, field
from typing import Any, Dict
import uuid


@dataclass(frozen=True)
class User:
    """
    A user who has their data synchronised.

    Users are identified by their account UUID alone; the username is
    carried along for display and logging.
    """
    uuid: uuid.UUID
    username: str = field(compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "uuid": str(self.uuid),
            "username": self.username,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """Create from dictionary representation."""
        return cls(uuid=uuid.UUID(str(data["uuid"])), username=data["username"])
