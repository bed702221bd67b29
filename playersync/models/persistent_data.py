"""Canonical tag kinds and the serialization-neutral persistent data container."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Type


def freeze_mapping(values: Mapping[str, Any]) -> Mapping[str, Any]:
    """Copy a mapping into a read-only view; nested mappings are frozen too."""
    return MappingProxyType({
        key: freeze_mapping(value) if isinstance(value, Mapping) else value
        for key, value in values.items()
    })


class PersistentDataTagType(str, Enum):
    """Canonical primitive kinds of a persistent data tag."""
    BYTE = "BYTE"
    SHORT = "SHORT"
    INTEGER = "INTEGER"
    LONG = "LONG"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    STRING = "STRING"
    BYTE_ARRAY = "BYTE_ARRAY"
    INTEGER_ARRAY = "INTEGER_ARRAY"
    LONG_ARRAY = "LONG_ARRAY"
    TAG_CONTAINER = "TAG_CONTAINER"
    TAG_CONTAINER_ARRAY = "TAG_CONTAINER_ARRAY"


@dataclass(frozen=True)
class PersistentDataTag:
    """A single typed value held in a persistent data container."""
    type: PersistentDataTagType
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        value = self.value
        if self.type == PersistentDataTagType.BYTE_ARRAY:
            value = list(value)
        elif self.type == PersistentDataTagType.TAG_CONTAINER:
            value = value.to_dict()
        elif self.type == PersistentDataTagType.TAG_CONTAINER_ARRAY:
            value = [container.to_dict() for container in value]
        return {"type": self.type.value, "value": value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistentDataTag":
        """Create from dictionary representation."""
        tag_type = PersistentDataTagType(data["type"])
        value = data["value"]
        if tag_type == PersistentDataTagType.BYTE_ARRAY:
            value = bytes(value)
        elif tag_type == PersistentDataTagType.TAG_CONTAINER:
            value = PersistentDataContainerData.from_dict(value)
        elif tag_type == PersistentDataTagType.TAG_CONTAINER_ARRAY:
            value = [PersistentDataContainerData.from_dict(item) for item in value]
        elif tag_type in (PersistentDataTagType.INTEGER_ARRAY, PersistentDataTagType.LONG_ARRAY):
            value = list(value)
        return cls(type=tag_type, value=value)


@dataclass(frozen=True)
class PersistentDataContainerData:
    """
    Snapshot of an entity's persistent data container.

    Values are held in their canonical, host-independent form keyed by
    namespaced key strings (e.g. ``plugin:some_key``). The tag map is
    copied on construction and cannot be changed afterwards.
    """
    persistent_data_map: Mapping[str, PersistentDataTag] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "persistent_data_map", freeze_mapping(self.persistent_data_map))

    def get_tag_value(self, key: str, primitive_type: Type) -> Optional[Any]:
        """
        Get the raw value of a tag if it is held as the given primitive type.

        Args:
            key: Namespaced key of the tag
            primitive_type: Expected Python type of the raw value

        Returns:
            The raw value, or None if absent or of another type
        """
        tag = self.persistent_data_map.get(key)
        if tag is None:
            return None
        # bool is an int subclass but never a valid tag value
        if isinstance(tag.value, bool) or not isinstance(tag.value, primitive_type):
            return None
        return tag.value

    def get_tag_type(self, key: str) -> Optional[PersistentDataTagType]:
        """Get the canonical kind of a tag, if present."""
        tag = self.persistent_data_map.get(key)
        return tag.type if tag else None

    @property
    def tags(self) -> List[str]:
        return list(self.persistent_data_map.keys())

    def items(self) -> Iterator[Tuple[str, PersistentDataTag]]:
        return iter(self.persistent_data_map.items())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {key: tag.to_dict() for key, tag in self.persistent_data_map.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistentDataContainerData":
        """Create from dictionary representation."""
        return cls(
            persistent_data_map={
                key: PersistentDataTag.from_dict(tag) for key, tag in data.items()
            }
        )
