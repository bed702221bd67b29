"""Registry bridging host-side typed containers to canonical tag kinds."""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..models.persistent_data import (
    PersistentDataContainerData,
    PersistentDataTag,
    PersistentDataTagType,
)

logger = logging.getLogger(__name__)

NAMESPACED_KEY_RE = re.compile(r"^[a-z0-9._-]+:[a-z0-9/._-]+$")


class MissingValueError(KeyError):
    """Raised when a container holds no value for a key that must be present."""


@dataclass(frozen=True)
class NativeDataType:
    """
    Accessor descriptor for one kind of value in a host container.

    Values are stored in their primitive form and handed out in their
    complex form; for most kinds the two are the same Python type.
    """
    name: str
    primitive_type: type
    complex_type: type
    to_primitive: Callable[[Any], Any]
    from_primitive: Callable[[Any], Any]
    validator: Optional[Callable[[Any], None]] = None

    def check(self, value: Any) -> None:
        """Raise if the value cannot be stored under this type."""
        if isinstance(value, bool) or not isinstance(value, self.complex_type):
            raise TypeError(
                f"{self.name} expects {self.complex_type.__name__}, got {type(value).__name__}"
            )
        if self.validator:
            self.validator(value)

    def __repr__(self) -> str:
        return f"NativeDataType({self.name})"


class PersistentDataContainer:
    """
    Typed key/value storage attached to a host entity.

    Each key remembers the native type it was stored under; reading it
    back under a type with a different primitive form is an error.
    """

    def __init__(self):
        self._values: Dict[str, Tuple[NativeDataType, Any]] = {}

    def set(self, key: str, data_type: NativeDataType, value: Any) -> None:
        """Store a value under a namespaced key."""
        if not NAMESPACED_KEY_RE.match(key):
            raise ValueError(f"Invalid namespaced key: {key!r}")
        data_type.check(value)
        self._values[key] = (data_type, data_type.to_primitive(value))

    def get(self, key: str, data_type: NativeDataType) -> Optional[Any]:
        """Get a value, or None if the key is absent."""
        entry = self._values.get(key)
        if entry is None:
            return None
        stored_type, raw = entry
        if stored_type.primitive_type is not data_type.primitive_type:
            raise TypeError(
                f"Value of {key} is stored as {stored_type.name}, not {data_type.name}"
            )
        return data_type.from_primitive(raw)

    def get_data_type(self, key: str) -> Optional[NativeDataType]:
        entry = self._values.get(key)
        return entry[0] if entry else None

    def has(self, key: str) -> bool:
        return key in self._values

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._values.keys())

    def is_empty(self) -> bool:
        return not self._values

    def __len__(self) -> int:
        return len(self._values)


def _int_range(name: str, bits: int) -> Callable[[int], None]:
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1

    def validate(value: int) -> None:
        if not low <= value <= high:
            raise ValueError(f"{name} value {value} out of range [{low}, {high}]")

    return validate


def _int_array_range(name: str, bits: int) -> Callable[[List[int]], None]:
    check_element = _int_range(name, bits)

    def validate(values: List[int]) -> None:
        for value in values:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} elements must be int, got {type(value).__name__}")
            check_element(value)

    return validate


def _check_containers(values: List[Any]) -> None:
    for value in values:
        if not isinstance(value, PersistentDataContainer):
            raise TypeError(
                f"TAG_CONTAINER_ARRAY elements must be containers, got {type(value).__name__}"
            )


def _identity(value: Any) -> Any:
    return value


def _container_to_data(container: PersistentDataContainer) -> PersistentDataContainerData:
    return PRIMITIVE_TYPE_MAPPINGS.capture(container)


def _data_to_container(data: PersistentDataContainerData) -> PersistentDataContainer:
    container = PersistentDataContainer()
    PRIMITIVE_TYPE_MAPPINGS.apply(data, container)
    return container


class PersistentDataType:
    """The native accessor descriptors known to the host container."""
    BYTE = NativeDataType("BYTE", int, int, _identity, _identity, _int_range("BYTE", 8))
    SHORT = NativeDataType("SHORT", int, int, _identity, _identity, _int_range("SHORT", 16))
    INTEGER = NativeDataType("INTEGER", int, int, _identity, _identity, _int_range("INTEGER", 32))
    LONG = NativeDataType("LONG", int, int, _identity, _identity, _int_range("LONG", 64))
    FLOAT = NativeDataType("FLOAT", float, float, _identity, _identity)
    DOUBLE = NativeDataType("DOUBLE", float, float, _identity, _identity)
    STRING = NativeDataType("STRING", str, str, _identity, _identity)
    BYTE_ARRAY = NativeDataType("BYTE_ARRAY", bytes, bytes, bytes, bytes)
    INTEGER_ARRAY = NativeDataType(
        "INTEGER_ARRAY", list, list, list, list, _int_array_range("INTEGER_ARRAY", 32)
    )
    LONG_ARRAY = NativeDataType(
        "LONG_ARRAY", list, list, list, list, _int_array_range("LONG_ARRAY", 64)
    )
    TAG_CONTAINER = NativeDataType(
        "TAG_CONTAINER",
        PersistentDataContainerData,
        PersistentDataContainer,
        _container_to_data,
        _data_to_container,
    )
    TAG_CONTAINER_ARRAY = NativeDataType(
        "TAG_CONTAINER_ARRAY",
        list,
        list,
        lambda containers: [_container_to_data(c) for c in containers],
        lambda data: [_data_to_container(d) for d in data],
        _check_containers,
    )


@dataclass(frozen=True)
class TypeMapping:
    """Pairs one canonical tag kind with its native accessor."""
    type: PersistentDataTagType
    native_type: NativeDataType

    def read_value(self, container: PersistentDataContainer, key: str) -> PersistentDataTag:
        """
        Read a value from a host container as a canonical tag.

        Args:
            container: Host container to read from
            key: Namespaced key known to be present

        Returns:
            PersistentDataTag holding the value in canonical form

        Raises:
            MissingValueError: If the container has no value for the key
        """
        value = container.get(key, self.native_type)
        if value is None:
            raise MissingValueError(key)
        return PersistentDataTag(self.type, self.native_type.to_primitive(value))

    def write_value(
        self,
        data: PersistentDataContainerData,
        container: PersistentDataContainer,
        key: str
    ) -> bool:
        """
        Copy a canonical tag value into a host container.

        Does nothing when the data holds no value for the key under this
        accessor's primitive type.

        Returns:
            True if a value was written
        """
        value = data.get_tag_value(key, self.native_type.primitive_type)
        if value is None:
            return False
        container.set(key, self.native_type, self.native_type.from_primitive(value))
        return True


class TypeRegistry:
    """
    Fixed, ordered table of tag type mappings.

    Each canonical kind may appear at most once; a duplicate is rejected
    when the registry is built.
    """

    def __init__(self, mappings: Iterable[TypeMapping]):
        self._mappings: Tuple[TypeMapping, ...] = tuple(mappings)

        seen = set()
        for mapping in self._mappings:
            if mapping.type in seen:
                raise ValueError(f"Duplicate mapping for tag type {mapping.type.value}")
            seen.add(mapping.type)

    def find(self, tag_type: Any) -> Optional[TypeMapping]:
        """Get the mapping for a canonical kind, or None if there is none."""
        for mapping in self._mappings:
            if mapping.type == tag_type:
                return mapping
        return None

    def find_native(self, native_type: NativeDataType) -> Optional[TypeMapping]:
        """Get the mapping for a native accessor, or None if there is none."""
        for mapping in self._mappings:
            if mapping.native_type is native_type:
                return mapping
        return None

    def capture(self, container: PersistentDataContainer) -> PersistentDataContainerData:
        """
        Snapshot every value of a host container in canonical form.

        Keys stored under a native type with no mapping are skipped.
        """
        tags: Dict[str, PersistentDataTag] = {}
        for key in container.keys():
            mapping = self.find_native(container.get_data_type(key))
            if mapping is None:
                logger.warning(f"No tag type mapping for {key}, skipping")
                continue
            tags[key] = mapping.read_value(container, key)
        return PersistentDataContainerData(tags)

    def apply(self, data: PersistentDataContainerData, container: PersistentDataContainer) -> int:
        """
        Write every tag of a snapshot into a host container.

        Returns:
            Number of values written
        """
        written = 0
        for key, tag in data.items():
            mapping = self.find(tag.type)
            if mapping is None:
                logger.warning(f"No tag type mapping for {tag.type}, skipping {key}")
                continue
            if mapping.write_value(data, container, key):
                written += 1
        return written

    def __iter__(self) -> Iterator[TypeMapping]:
        return iter(self._mappings)

    def __len__(self) -> int:
        return len(self._mappings)


PRIMITIVE_TYPE_MAPPINGS = TypeRegistry([
    TypeMapping(PersistentDataTagType.BYTE, PersistentDataType.BYTE),
    TypeMapping(PersistentDataTagType.SHORT, PersistentDataType.SHORT),
    TypeMapping(PersistentDataTagType.INTEGER, PersistentDataType.INTEGER),
    TypeMapping(PersistentDataTagType.LONG, PersistentDataType.LONG),
    TypeMapping(PersistentDataTagType.FLOAT, PersistentDataType.FLOAT),
    TypeMapping(PersistentDataTagType.DOUBLE, PersistentDataType.DOUBLE),
    TypeMapping(PersistentDataTagType.STRING, PersistentDataType.STRING),
    TypeMapping(PersistentDataTagType.BYTE_ARRAY, PersistentDataType.BYTE_ARRAY),
    TypeMapping(PersistentDataTagType.INTEGER_ARRAY, PersistentDataType.INTEGER_ARRAY),
    TypeMapping(PersistentDataTagType.LONG_ARRAY, PersistentDataType.LONG_ARRAY),
    TypeMapping(PersistentDataTagType.TAG_CONTAINER_ARRAY, PersistentDataType.TAG_CONTAINER_ARRAY),
    TypeMapping(PersistentDataTagType.TAG_CONTAINER, PersistentDataType.TAG_CONTAINER),
])


def capture_container(container: PersistentDataContainer) -> PersistentDataContainerData:
    """Snapshot a host container using the default registry."""
    return PRIMITIVE_TYPE_MAPPINGS.capture(container)


def apply_container(data: PersistentDataContainerData, container: PersistentDataContainer) -> int:
    """Write a snapshot into a host container using the default registry."""
    return PRIMITIVE_TYPE_MAPPINGS.apply(data, container)
