"""Plain-text rendering of world contents.

Only components an entity actually has are printed; absent cells are never
formatted.
"""

from __future__ import annotations

from typing import List

from .components import Component
from .store import EntityMap, World, get_field, has_component


def _format_component(world: World, eid: int, component: Component) -> str:
    if component.fields == ("x", "y"):
        x = get_field(world, eid, component, "x")
        y = get_field(world, eid, component, "y")
        return f"{component.name}: ({x}, {y})"
    if component.fields == ("items",):
        items = get_field(world, eid, component, "items") or []
        return f"{component.name}: [{', '.join(str(item) for item in items)}]"
    if component.fields == ("value",):
        return f"{component.name}: {get_field(world, eid, component, 'value')}"
    parts = ", ".join(
        f"{name}={get_field(world, eid, component, name)}" for name in component.fields
    )
    return f"{component.name}: {parts}"


def _component_lines(world: World, eid: int) -> List[str]:
    lines = []
    for component in world.components:
        if has_component(world, eid, component):
            lines.append(f"  {_format_component(world, eid, component)}")
    return lines


def world_summary(world: World) -> str:
    """Describe every live entity that has at least one component."""

    sections = ["World State:"]
    for eid in world.entities():
        lines = _component_lines(world, eid)
        if not lines:
            continue
        sections.append(f"\nEntity {eid}:")
        sections.extend(lines)
    return "\n".join(sections) + "\n"


def entity_names(entity_map: EntityMap) -> List[str]:
    return entity_map.names()


def describe_entity(world: World, entity_map: EntityMap, name: str) -> str:
    eid = entity_map.resolve(name)
    if eid is None:
        return f"Entity '{name}' not found"

    lines = [f"Entity {name} (ID: {eid})"]
    lines.extend(_component_lines(world, eid))
    return "\n".join(lines) + "\n"
