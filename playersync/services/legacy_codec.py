"""Decoders for the serialized blobs of HuskSync v1.x player data."""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


class LegacyDataError(ValueError):
    """Raised when a legacy blob cannot be decoded."""


@dataclass
class LegacyStatistics:
    """Statistics as stored by v1.x, split by statistic kind."""
    untyped: Dict[str, int] = field(default_factory=dict)
    block: Dict[str, Dict[str, int]] = field(default_factory=dict)
    item: Dict[str, Dict[str, int]] = field(default_factory=dict)
    entity: Dict[str, Dict[str, int]] = field(default_factory=dict)


@dataclass
class LegacyAdvancement:
    """An advancement record with its awarded criteria."""
    key: str
    criteria: Dict[str, datetime] = field(default_factory=dict)


@dataclass
class LegacyLocation:
    """A player position as stored by v1.x."""
    world_name: str
    x: float
    y: float
    z: float
    yaw: float
    pitch: float


def decode_blob(serialized: Optional[str]) -> Any:
    """
    Decode a base64-wrapped JSON blob.

    Args:
        serialized: The column value; empty or None means no data

    Returns:
        The decoded JSON value, or None for an empty blob

    Raises:
        LegacyDataError: If the blob is not valid base64 JSON
    """
    if serialized is None or not serialized.strip():
        return None
    try:
        raw = base64.b64decode(serialized.strip(), validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise LegacyDataError(f"Malformed legacy blob: {e}") from e


def encode_blob(value: Any) -> str:
    """Encode a value in the legacy base64 JSON wrapping."""
    return base64.b64encode(json.dumps(value).encode("utf-8")).decode("ascii")


def _count(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise LegacyDataError(f"Statistic value for {where} is not an integer: {value!r}")
    return value


def _typed_map(raw: Any, kind: str) -> Dict[str, Dict[str, int]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise LegacyDataError(f"{kind} statistics must be an object")
    converted: Dict[str, Dict[str, int]] = {}
    for statistic, values in raw.items():
        if not isinstance(values, dict):
            raise LegacyDataError(f"{kind} statistic {statistic} must map names to counts")
        converted[str(statistic)] = {
            str(name): _count(count, f"{statistic}/{name}") for name, count in values.items()
        }
    return converted


def deserialize_statistics(serialized: Optional[str]) -> LegacyStatistics:
    """Decode a legacy statistics blob; an empty blob means no statistics."""
    data = decode_blob(serialized)
    if data is None:
        return LegacyStatistics()
    if not isinstance(data, dict):
        raise LegacyDataError("Statistics blob must be an object")

    untyped = data.get("untyped") or {}
    if not isinstance(untyped, dict):
        raise LegacyDataError("untyped statistics must be an object")

    return LegacyStatistics(
        untyped={str(k): _count(v, str(k)) for k, v in untyped.items()},
        block=_typed_map(data.get("block"), "block"),
        item=_typed_map(data.get("item"), "item"),
        entity=_typed_map(data.get("entity"), "entity"),
    )


def _parse_awarded(value: Any) -> datetime:
    # v1.x wrote epoch millis; later builds wrote ISO-8601 strings
    if isinstance(value, bool):
        raise LegacyDataError(f"Invalid criterion timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        try:
            awarded = date_parser.isoparse(value)
        except ValueError as e:
            raise LegacyDataError(f"Invalid criterion timestamp: {value!r}") from e
        return awarded if awarded.tzinfo else awarded.replace(tzinfo=timezone.utc)
    raise LegacyDataError(f"Invalid criterion timestamp: {value!r}")


def deserialize_advancements(serialized: Optional[str]) -> List[LegacyAdvancement]:
    """Decode a legacy advancements blob; an empty blob means none."""
    data = decode_blob(serialized)
    if data is None:
        return []
    if not isinstance(data, list):
        raise LegacyDataError("Advancements blob must be a list")

    advancements = []
    for entry in data:
        if not isinstance(entry, dict) or not entry.get("key"):
            raise LegacyDataError(f"Invalid advancement entry: {entry!r}")
        criteria = entry.get("criteria") or {}
        if not isinstance(criteria, dict):
            raise LegacyDataError(f"Criteria of {entry['key']} must be an object")
        advancements.append(LegacyAdvancement(
            key=str(entry["key"]),
            criteria={str(name): _parse_awarded(value) for name, value in criteria.items()},
        ))
    return advancements


def deserialize_location(serialized: Optional[str]) -> Optional[LegacyLocation]:
    """Decode a legacy location blob; returns None when no location was saved."""
    data = decode_blob(serialized)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise LegacyDataError("Location blob must be an object")
    try:
        return LegacyLocation(
            world_name=str(data["world_name"]),
            x=float(data["x"]),
            y=float(data["y"]),
            z=float(data["z"]),
            yaw=float(data.get("yaw", 0.0)),
            pitch=float(data.get("pitch", 0.0)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise LegacyDataError(f"Invalid location data: {e}") from e
