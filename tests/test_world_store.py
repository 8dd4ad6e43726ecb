"""Tests for the columnar entity/component store."""

import pytest

from cognisim.errors import WorldStoreError
from cognisim.world import (
    Component,
    EntityMap,
    Inventory,
    Name,
    Position,
    add_component,
    add_entity,
    add_entity_with,
    create_world,
    entity_exists,
    get_field,
    has_component,
    query,
    remove_component,
    remove_entity,
    set_field,
)


def test_entity_ids_are_monotonic_and_never_reused():
    world = create_world()
    first = add_entity(world)
    second = add_entity(world)
    remove_entity(world, second)
    third = add_entity(world)

    assert first == 1
    assert second == 2
    assert third == 3
    assert not entity_exists(world, second)
    assert world.entities() == [1, 3]


def test_add_component_writes_initial_values_and_reattach_overwrites():
    world = create_world()
    eid = add_entity(world)

    add_component(world, eid, Position, {"x": 3, "y": 4})
    assert get_field(world, eid, Position, "x") == 3
    assert get_field(world, eid, "Position", "y") == 4

    add_component(world, eid, Position, {"x": 9})
    assert get_field(world, eid, Position, "x") == 9
    assert get_field(world, eid, Position, "y") is None


def test_reading_absent_component_yields_none():
    world = create_world()
    eid = add_entity(world)

    assert get_field(world, eid, Name, "value") is None
    assert get_field(world, 42, Name, "value") is None
    assert not has_component(world, eid, Name)


def test_query_returns_ascending_ids_with_all_components():
    world = create_world()
    a = add_entity_with(world, {"Position": {"x": 0, "y": 0}, "Name": {"value": "a"}})
    b = add_entity_with(world, {"Name": {"value": "b"}})
    c = add_entity_with(world, {"Position": {"x": 1, "y": 1}, "Name": {"value": "c"}})

    assert query(world, [Position, Name]) == [a, c]
    assert query(world, ["Name"]) == [a, b, c]
    assert query(world, []) == [a, b, c]


def test_query_skips_removed_components_and_entities():
    world = create_world()
    a = add_entity_with(world, {"Position": {"x": 0, "y": 0}})
    b = add_entity_with(world, {"Position": {"x": 1, "y": 1}})
    c = add_entity_with(world, {"Position": {"x": 2, "y": 2}})

    remove_component(world, a, Position)
    remove_entity(world, c)

    assert query(world, [Position]) == [b]
    assert get_field(world, a, Position, "x") is None


def test_inventory_items_are_copied_on_write():
    world = create_world()
    eid = add_entity(world)
    items = ["key"]
    add_component(world, eid, Inventory, {"items": items})
    items.append("lamp")

    assert get_field(world, eid, Inventory, "items") == ["key"]


def test_set_field_requires_component():
    world = create_world()
    eid = add_entity(world)

    with pytest.raises(WorldStoreError):
        set_field(world, eid, Name, "value", "Alice")

    add_component(world, eid, Name, {"value": "Alice"})
    set_field(world, eid, Name, "value", "Alicia")
    assert get_field(world, eid, Name, "value") == "Alicia"


def test_unknown_field_and_unbound_component_raise():
    world = create_world([Position])
    eid = add_entity(world)

    with pytest.raises(WorldStoreError):
        add_component(world, eid, Position, {"z": 1})
    with pytest.raises(WorldStoreError):
        add_component(world, eid, Name, {"value": "Alice"})
    with pytest.raises(WorldStoreError):
        query(world, ["Name"])


def test_dead_entity_cannot_gain_components():
    world = create_world()
    eid = add_entity(world)
    remove_entity(world, eid)

    with pytest.raises(WorldStoreError):
        add_component(world, eid, Name, {"value": "ghost"})


def test_custom_component_must_match_bound_definition():
    health = Component("Health", ("hp",))
    world = create_world([health])
    eid = add_entity(world)
    add_component(world, eid, health, {"hp": 10})

    with pytest.raises(WorldStoreError):
        get_field(world, eid, Component("Health", ("points",)), "points")
    with pytest.raises(ValueError):
        Component("Broken", ())


def test_entity_map_last_write_wins():
    names = EntityMap()
    names.bind("alice", 1)
    names.bind("alice", 4)
    names.bind("bob", 2)

    assert names.resolve("alice") == 4
    assert names.resolve("carol") is None
    assert "bob" in names
    assert len(names) == 2
