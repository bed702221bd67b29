"""Service layer for the migration engine."""

from .type_registry import (
    PRIMITIVE_TYPE_MAPPINGS,
    MissingValueError,
    NativeDataType,
    PersistentDataContainer,
    PersistentDataType,
    TypeMapping,
    TypeRegistry,
    apply_container,
    capture_container,
)
from .legacy_codec import LegacyDataError

__all__ = [
    "PRIMITIVE_TYPE_MAPPINGS",
    "MissingValueError",
    "NativeDataType",
    "PersistentDataContainer",
    "PersistentDataType",
    "TypeMapping",
    "TypeRegistry",
    "apply_container",
    "capture_container",
    "LegacyDataError",
]
