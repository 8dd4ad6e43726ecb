"""Component definitions for the world store.

A component is a named schema (a tuple of field names). Storage lives in the
world that binds it, so the same definition can be shared by several worlds
without sharing data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Component:
    """Named columnar attribute table definition."""

    name: str
    fields: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.fields:
            raise ValueError(f"Component '{self.name}' must declare at least one field")
        if len(set(self.fields)) != len(self.fields):
            raise ValueError(f"Component '{self.name}' declares duplicate fields")


# Standard components ----------------------------------------------------------

Position = Component("Position", ("x", "y"))
# Scalar text components share the single "value" field
Name = Component("Name", ("value",))
Description = Component("Description", ("value",))
Goal = Component("Goal", ("value",))
Inventory = Component("Inventory", ("items",))

COMPONENT_MAP: Dict[str, Component] = {
    component.name: component
    for component in (Position, Name, Description, Goal, Inventory)
}
"""Standard components keyed by name, in display order."""

DEFAULT_COMPONENTS: Tuple[Component, ...] = tuple(COMPONENT_MAP.values())
