from __future__ import annotations

import pytest

from playersync.models.persistent_data import (
    PersistentDataContainerData,
    PersistentDataTag,
    PersistentDataTagType,
)
from playersync.services.type_registry import (
    PRIMITIVE_TYPE_MAPPINGS,
    MissingValueError,
    PersistentDataContainer,
    PersistentDataType,
    TypeMapping,
    TypeRegistry,
    apply_container,
    capture_container,
)


def test_every_canonical_kind_has_exactly_one_mapping() -> None:
    assert len(PRIMITIVE_TYPE_MAPPINGS) == len(PersistentDataTagType)
    for kind in PersistentDataTagType:
        mapping = PRIMITIVE_TYPE_MAPPINGS.find(kind)
        assert mapping is not None
        assert mapping.type is kind


def test_find_returns_none_for_unknown_kinds() -> None:
    assert PRIMITIVE_TYPE_MAPPINGS.find("BOOLEAN") is None
    assert PRIMITIVE_TYPE_MAPPINGS.find(None) is None


def test_duplicate_kinds_are_rejected() -> None:
    with pytest.raises(ValueError, match="Duplicate"):
        TypeRegistry([
            TypeMapping(PersistentDataTagType.INTEGER, PersistentDataType.INTEGER),
            TypeMapping(PersistentDataTagType.INTEGER, PersistentDataType.LONG),
        ])


@pytest.mark.parametrize(
    ("kind", "native", "value"),
    [
        (PersistentDataTagType.BYTE, PersistentDataType.BYTE, 7),
        (PersistentDataTagType.SHORT, PersistentDataType.SHORT, -300),
        (PersistentDataTagType.INTEGER, PersistentDataType.INTEGER, 70000),
        (PersistentDataTagType.LONG, PersistentDataType.LONG, 2**40),
        (PersistentDataTagType.FLOAT, PersistentDataType.FLOAT, 1.5),
        (PersistentDataTagType.DOUBLE, PersistentDataType.DOUBLE, 2.5),
        (PersistentDataTagType.STRING, PersistentDataType.STRING, "hello"),
        (PersistentDataTagType.BYTE_ARRAY, PersistentDataType.BYTE_ARRAY, b"\x01\x02"),
        (PersistentDataTagType.INTEGER_ARRAY, PersistentDataType.INTEGER_ARRAY, [1, -2]),
        (PersistentDataTagType.LONG_ARRAY, PersistentDataType.LONG_ARRAY, [1, 2**40]),
    ],
)
def test_read_then_write_reproduces_value(kind, native, value) -> None:
    source = PersistentDataContainer()
    source.set("plugin:key", native, value)
    mapping = PRIMITIVE_TYPE_MAPPINGS.find(kind)

    tag = mapping.read_value(source, "plugin:key")
    assert tag == PersistentDataTag(kind, value)

    target = PersistentDataContainer()
    data = PersistentDataContainerData({"plugin:key": tag})
    assert mapping.write_value(data, target, "plugin:key") is True
    assert target.get("plugin:key", native) == value


def test_read_value_of_absent_key_raises() -> None:
    mapping = PRIMITIVE_TYPE_MAPPINGS.find(PersistentDataTagType.STRING)
    with pytest.raises(MissingValueError):
        mapping.read_value(PersistentDataContainer(), "plugin:absent")


def test_write_value_is_a_no_op_without_a_value() -> None:
    container = PersistentDataContainer()
    mapping = PRIMITIVE_TYPE_MAPPINGS.find(PersistentDataTagType.INTEGER)

    assert mapping.write_value(PersistentDataContainerData(), container, "plugin:absent") is False
    assert container.is_empty()


def test_write_value_skips_value_of_another_primitive_type() -> None:
    container = PersistentDataContainer()
    data = PersistentDataContainerData({
        "plugin:name": PersistentDataTag(PersistentDataTagType.STRING, "steve"),
    })
    mapping = PRIMITIVE_TYPE_MAPPINGS.find(PersistentDataTagType.INTEGER)

    assert mapping.write_value(data, container, "plugin:name") is False
    assert not container.has("plugin:name")


def test_container_validates_keys_and_ranges() -> None:
    container = PersistentDataContainer()
    with pytest.raises(ValueError):
        container.set("NoNamespace", PersistentDataType.STRING, "x")
    with pytest.raises(ValueError):
        container.set("plugin:byte", PersistentDataType.BYTE, 128)
    with pytest.raises(TypeError):
        container.set("plugin:int", PersistentDataType.INTEGER, "12")


def test_container_rejects_reads_under_another_primitive_type() -> None:
    container = PersistentDataContainer()
    container.set("plugin:key", PersistentDataType.STRING, "value")
    with pytest.raises(TypeError):
        container.get("plugin:key", PersistentDataType.INTEGER)


def test_nested_containers_survive_capture_and_apply() -> None:
    inner = PersistentDataContainer()
    inner.set("plugin:level", PersistentDataType.INTEGER, 4)
    outer = PersistentDataContainer()
    outer.set("plugin:child", PersistentDataType.TAG_CONTAINER, inner)
    outer.set("plugin:children", PersistentDataType.TAG_CONTAINER_ARRAY, [inner, inner])
    outer.set("plugin:name", PersistentDataType.STRING, "steve")

    data = capture_container(outer)
    assert set(data.tags) == {"plugin:child", "plugin:children", "plugin:name"}
    assert data.get_tag_type("plugin:child") is PersistentDataTagType.TAG_CONTAINER
    assert data.get_tag_type("plugin:children") is PersistentDataTagType.TAG_CONTAINER_ARRAY

    restored = PersistentDataContainer()
    assert apply_container(data, restored) == 3
    child = restored.get("plugin:child", PersistentDataType.TAG_CONTAINER)
    assert child.get("plugin:level", PersistentDataType.INTEGER) == 4
    children = restored.get("plugin:children", PersistentDataType.TAG_CONTAINER_ARRAY)
    assert [c.get("plugin:level", PersistentDataType.INTEGER) for c in children] == [4, 4]
    assert restored.get("plugin:name", PersistentDataType.STRING) == "steve"


def test_container_data_round_trips_through_dict() -> None:
    data = PersistentDataContainerData({
        "plugin:bytes": PersistentDataTag(PersistentDataTagType.BYTE_ARRAY, b"\x00\xff"),
        "plugin:nested": PersistentDataTag(
            PersistentDataTagType.TAG_CONTAINER,
            PersistentDataContainerData({
                "plugin:x": PersistentDataTag(PersistentDataTagType.DOUBLE, 1.5),
            }),
        ),
    })

    assert PersistentDataContainerData.from_dict(data.to_dict()) == data
