"""Entity/component world store."""

from .components import (
    COMPONENT_MAP,
    DEFAULT_COMPONENTS,
    Component,
    Description,
    Goal,
    Inventory,
    Name,
    Position,
)
from .store import (
    ComponentTable,
    EntityMap,
    World,
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
from .describe import describe_entity, entity_names, world_summary

__all__ = [
    "COMPONENT_MAP",
    "DEFAULT_COMPONENTS",
    "Component",
    "ComponentTable",
    "Description",
    "EntityMap",
    "Goal",
    "Inventory",
    "Name",
    "Position",
    "World",
    "add_component",
    "add_entity",
    "add_entity_with",
    "create_world",
    "describe_entity",
    "entity_exists",
    "entity_names",
    "get_field",
    "has_component",
    "query",
    "remove_component",
    "remove_entity",
    "set_field",
    "world_summary",
]
