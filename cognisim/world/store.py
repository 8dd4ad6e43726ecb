"""Entity/component world store.

Storage is columnar: each bound component owns one dense list per field,
indexed by entity id, plus a presence bitset (a Python int, bit ``eid`` set
when the entity has the component). Queries intersect presence bitsets
instead of scanning columns.

Concurrency: there is no locking. Cells are (component, entity) pairs and
whichever pipeline is processing an entity owns its cells for that tick.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from cognisim.errors import WorldStoreError

from .components import DEFAULT_COMPONENTS, Component

ComponentRef = Union[Component, str]

# Entity ids start at 1; 0 is never issued.
FIRST_ENTITY_ID = 1


def _iter_bits(mask: int) -> Iterator[int]:
    """Yield the indices of set bits in ascending order."""
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low


@dataclass
class ComponentTable:
    """Per-world storage for one component."""

    component: Component
    columns: Dict[str, List[Any]] = field(default_factory=dict)
    presence: int = 0

    def __post_init__(self) -> None:
        for name in self.component.fields:
            self.columns.setdefault(name, [])

    def has(self, eid: int) -> bool:
        return bool((self.presence >> eid) & 1)

    def attach(self, eid: int, values: Mapping[str, Any]) -> None:
        self._check_fields(values)
        for name, column in self.columns.items():
            self._ensure_capacity(column, eid)
            # Fields not supplied start absent; re-attaching overwrites everything
            column[eid] = _copy_value(values.get(name))
        self.presence |= 1 << eid

    def detach(self, eid: int) -> None:
        if not self.has(eid):
            return
        for column in self.columns.values():
            column[eid] = None
        self.presence &= ~(1 << eid)

    def read(self, eid: int, name: str) -> Any:
        column = self._column(name)
        if not self.has(eid) or eid >= len(column):
            return None
        return column[eid]

    def write(self, eid: int, name: str, value: Any) -> None:
        column = self._column(name)
        if not self.has(eid):
            raise WorldStoreError(
                f"Entity {eid} has no '{self.component.name}' component"
            )
        column[eid] = _copy_value(value)

    def _column(self, name: str) -> List[Any]:
        try:
            return self.columns[name]
        except KeyError:
            raise WorldStoreError(
                f"Component '{self.component.name}' has no field '{name}'"
            ) from None

    def _check_fields(self, values: Mapping[str, Any]) -> None:
        unknown = sorted(set(values) - set(self.component.fields))
        if unknown:
            raise WorldStoreError(
                f"Unknown field(s) for component '{self.component.name}': {', '.join(unknown)}"
            )

    @staticmethod
    def _ensure_capacity(column: List[Any], eid: int) -> None:
        if eid >= len(column):
            column.extend([None] * (eid + 1 - len(column)))


def _copy_value(value: Any) -> Any:
    # Sequence fields (Inventory.items) are stored as independent lists
    if isinstance(value, (list, tuple)):
        return list(value)
    return value


@dataclass
class World:
    """A set of bound component tables plus the live entity set."""

    tables: Dict[str, ComponentTable] = field(default_factory=dict)
    alive: int = 0
    next_id: int = FIRST_ENTITY_ID

    @property
    def components(self) -> List[Component]:
        return [table.component for table in self.tables.values()]

    def table(self, component: ComponentRef) -> ComponentTable:
        name = component if isinstance(component, str) else component.name
        try:
            table = self.tables[name]
        except KeyError:
            raise WorldStoreError(f"Component '{name}' is not bound to this world") from None
        if not isinstance(component, str) and table.component != component:
            raise WorldStoreError(
                f"Component '{name}' does not match the definition bound to this world"
            )
        return table

    def entities(self) -> List[int]:
        return list(_iter_bits(self.alive))


# Functional API ---------------------------------------------------------------


def create_world(components: Optional[Iterable[Component]] = None) -> World:
    """Return a fresh world bound to ``components`` (standard set when omitted)."""

    world = World()
    for component in components if components is not None else DEFAULT_COMPONENTS:
        if component.name in world.tables:
            raise WorldStoreError(f"Component '{component.name}' bound twice")
        world.tables[component.name] = ComponentTable(component)
    return world


def add_entity(world: World) -> int:
    """Allocate a new entity id. Ids increase monotonically and are never reused."""

    eid = world.next_id
    world.next_id += 1
    world.alive |= 1 << eid
    return eid


def entity_exists(world: World, eid: int) -> bool:
    return eid >= FIRST_ENTITY_ID and bool((world.alive >> eid) & 1)


def remove_entity(world: World, eid: int) -> None:
    """Detach every component and retire the id (it will not be handed out again)."""

    _require_entity(world, eid)
    for table in world.tables.values():
        table.detach(eid)
    world.alive &= ~(1 << eid)


def add_component(
    world: World,
    eid: int,
    component: ComponentRef,
    values: Optional[Mapping[str, Any]] = None,
) -> None:
    """Attach ``component`` to ``eid`` and write its initial field values.

    Attaching a component the entity already has overwrites the previous values.
    """

    _require_entity(world, eid)
    world.table(component).attach(eid, values or {})


def remove_component(world: World, eid: int, component: ComponentRef) -> None:
    _require_entity(world, eid)
    world.table(component).detach(eid)


def has_component(world: World, eid: int, component: ComponentRef) -> bool:
    return entity_exists(world, eid) and world.table(component).has(eid)


def get_field(world: World, eid: int, component: ComponentRef, name: str) -> Any:
    """Read one field; ``None`` when the entity lacks the component."""

    table = world.table(component)
    if not entity_exists(world, eid):
        return None
    return table.read(eid, name)


def set_field(world: World, eid: int, component: ComponentRef, name: str, value: Any) -> None:
    _require_entity(world, eid)
    world.table(component).write(eid, name, value)


def query(world: World, signature: Sequence[ComponentRef]) -> List[int]:
    """Return ids of live entities having every component in ``signature``.

    Results are in ascending id order. An empty signature matches every live
    entity.
    """

    mask = world.alive
    for component in signature:
        mask &= world.table(component).presence
    return list(_iter_bits(mask))


def add_entity_with(world: World, components: Mapping[str, Mapping[str, Any]]) -> int:
    """Create an entity and attach components given as ``{name: {field: value}}``."""

    eid = add_entity(world)
    for name, values in components.items():
        add_component(world, eid, world.table(name).component, values)
    return eid


def _require_entity(world: World, eid: int) -> None:
    if not entity_exists(world, eid):
        raise WorldStoreError(f"Entity {eid} does not exist")


class EntityMap:
    """Name → entity id bindings. Rebinding a name replaces the old id."""

    def __init__(self, bindings: Optional[Mapping[str, int]] = None) -> None:
        self._bindings: Dict[str, int] = dict(bindings or {})

    def bind(self, name: str, eid: int) -> None:
        self._bindings[name] = eid

    def resolve(self, name: str) -> Optional[int]:
        return self._bindings.get(name)

    def unbind(self, name: str) -> None:
        self._bindings.pop(name, None)

    def names(self) -> List[str]:
        return list(self._bindings)

    def items(self):
        return self._bindings.items()

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)


__all__ = [
    "ComponentTable",
    "EntityMap",
    "World",
    "add_component",
    "add_entity",
    "add_entity_with",
    "create_world",
    "entity_exists",
    "get_field",
    "has_component",
    "query",
    "remove_component",
    "remove_entity",
    "set_field",
]
