"""Item stack array codecs.

The destination store keeps inventories as a base64-wrapped JSON list with
one entry per slot (``null`` for an empty slot). MySQLPlayerDataBridge keeps
them as a sparse ``{"size": n, "items": {"<slot>": item}}`` object in the
same wrapping.
"""

import base64
import binascii
import json
from typing import Any, Dict, List, Optional

from .legacy_codec import LegacyDataError

ItemStack = Dict[str, Any]

PLAYER_INVENTORY_SIZE = 41
ARMOR_SLOT_OFFSET = 36


def _unwrap(serialized: str) -> Any:
    try:
        return json.loads(base64.b64decode(serialized.strip(), validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise LegacyDataError(f"Malformed item data: {e}") from e


def _check_item(item: Any, slot: int) -> Optional[ItemStack]:
    if item is None:
        return None
    if not isinstance(item, dict) or not item.get("type"):
        raise LegacyDataError(f"Invalid item in slot {slot}: {item!r}")
    return item


def serialize_item_stack_array(items: List[Optional[ItemStack]]) -> str:
    """Encode items in the destination format."""
    return base64.b64encode(json.dumps(items).encode("utf-8")).decode("ascii")


def deserialize_item_stack_array(serialized: str) -> List[Optional[ItemStack]]:
    """Decode items from the destination format."""
    if not serialized:
        return []
    data = _unwrap(serialized)
    if not isinstance(data, list):
        raise LegacyDataError("Item array must be a list")
    return [_check_item(item, slot) for slot, item in enumerate(data)]


def deserialize_mpdb_items(serialized: Optional[str]) -> List[Optional[ItemStack]]:
    """
    Decode a MySQLPlayerDataBridge item array.

    Args:
        serialized: The column value; empty or None is an empty array

    Returns:
        Dense list of ``size`` slots, None for empty slots

    Raises:
        LegacyDataError: If the data is malformed or a slot is out of range
    """
    if serialized is None or not serialized.strip():
        return []
    data = _unwrap(serialized)
    if not isinstance(data, dict) or not isinstance(data.get("items", {}), dict):
        raise LegacyDataError("MPDB item data must be an object with an items map")

    raw_items = data.get("items", {})
    try:
        size = int(data.get("size", 0))
        slots = {int(slot): item for slot, item in raw_items.items()}
    except (TypeError, ValueError) as e:
        raise LegacyDataError(f"Invalid MPDB slot data: {e}") from e
    if any(slot < 0 for slot in slots):
        raise LegacyDataError(f"Negative MPDB slot in {sorted(slots)}")
    if slots:
        size = max(size, max(slots) + 1)

    items: List[Optional[ItemStack]] = [None] * size
    for slot, item in slots.items():
        items[slot] = _check_item(item, slot)
    return items


def merge_player_inventory(
    inventory: List[Optional[ItemStack]],
    armor: List[Optional[ItemStack]]
) -> List[Optional[ItemStack]]:
    """
    Reassemble a player inventory from its main body and armor pieces.

    The main items fill slots from zero; armor pieces are then written
    into consecutive slots starting at the armor offset.

    Raises:
        LegacyDataError: If either part does not fit a player inventory
    """
    if len(inventory) > PLAYER_INVENTORY_SIZE:
        raise LegacyDataError(
            f"Inventory has {len(inventory)} slots, more than {PLAYER_INVENTORY_SIZE}"
        )
    if ARMOR_SLOT_OFFSET + len(armor) > PLAYER_INVENTORY_SIZE:
        raise LegacyDataError(f"Armor has {len(armor)} pieces, too many to fit")

    contents: List[Optional[ItemStack]] = [None] * PLAYER_INVENTORY_SIZE
    contents[:len(inventory)] = inventory
    for index, piece in enumerate(armor):
        contents[ARMOR_SLOT_OFFSET + index] = piece
    return contents
