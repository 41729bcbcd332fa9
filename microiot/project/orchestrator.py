"""Module addition orchestrator — pure operations over a ProjectState.

Every function takes the current state and returns a new one; nothing is
mutated in place.  A failed addition raises and leaves the caller holding
the untouched previous state.

Adding a module:
  1. build a fresh PinAllocator for the project's board
  2. replay every pin recorded by every existing instance
  3. i2c bus modules take the board's shared SDA/SCL pair as PIN_0/PIN_1
  4. anything else allocates one pin per requirement, in order, preferring
     unrestricted pins; the first unmet capability aborts the addition
  5. append the new instance in a single replace
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Callable, Iterable

from microiot.allocator import PinAllocator
from microiot.catalog import (
    BoardDefinition, CatalogResult, ModuleDefinition,
    default_catalog, get_board, pin_placeholder,
)
from microiot.errors import AllocationExhausted, UnknownModuleError
from microiot.identity import IdentityData

from .models import AddedModuleInstance, ProjectState


log = logging.getLogger("microiot.orchestrator")


def _new_uuid() -> str:
    return str(uuid.uuid4())


# ── Allocation ─────────────────────────────────────────────────────

def replay_reservations(
    board: BoardDefinition,
    modules: Iterable[AddedModuleInstance],
) -> PinAllocator:
    """Build an allocator holding every pin already recorded by ``modules``.

    Several i2c modules record the same SDA/SCL pair; only the first
    claim becomes a row, later ones are logged and ignored.
    """
    allocator = PinAllocator(board)
    for m in modules:
        for placeholder, gpio in m.allocated_pins:
            if not allocator.reserve_pin(gpio, m.instance_id, placeholder):
                log.debug("Replay: GPIO %d already held, %s:%s shares it",
                          gpio, m.instance_id, placeholder)
    return allocator


def allocate_module(
    allocator: PinAllocator,
    definition: ModuleDefinition,
    instance_id: str,
) -> tuple[tuple[str, int], ...]:
    """Assign pins for one new instance of ``definition``.

    Returns the (placeholder, gpio) pairs.  Raises AllocationExhausted on the
    first requirement no free pin can satisfy; the allocator may then hold
    partial reservations, so callers must discard it.
    """
    bus_pins = allocator.shared_bus(definition.bus) if definition.bus else None
    if bus_pins is not None:
        for gpio in bus_pins:
            allocator.reserve_pin(gpio, instance_id, definition.bus)
        return tuple((pin_placeholder(i), gpio) for i, gpio in enumerate(bus_pins))

    pins: list[tuple[str, int]] = []
    for i, capability in enumerate(definition.requires):
        gpio = allocator.allocate(instance_id, capability, prefer_safe=True)
        if gpio is None:
            raise AllocationExhausted(capability, definition.id)
        pins.append((pin_placeholder(i), gpio))
    return tuple(pins)


def plan_modules(
    board: BoardDefinition,
    module_ids: Iterable[str],
    instance_ids: Iterable[str],
    *,
    catalog: CatalogResult | None = None,
) -> tuple[AddedModuleInstance, ...]:
    """Allocate a whole module list in one pass over a single allocator.

    Gives the same assignment as adding the modules one by one through
    ``add_module``.
    """
    catalog = catalog or default_catalog()
    allocator = PinAllocator(board)
    planned: list[AddedModuleInstance] = []
    for module_id, instance_id in zip(module_ids, instance_ids):
        definition = catalog.module(module_id)
        if definition is None:
            raise UnknownModuleError(module_id)
        pins = allocate_module(allocator, definition, instance_id)
        planned.append(AddedModuleInstance(instance_id, definition.id, pins))
    return tuple(planned)


# ── State transitions ──────────────────────────────────────────────

def add_module(
    state: ProjectState,
    module_id: str,
    *,
    catalog: CatalogResult | None = None,
    new_id: Callable[[], str] = _new_uuid,
) -> ProjectState:
    """Return ``state`` with one more module instance, or raise.

    Raises UnknownModuleError for an id the catalog lacks and
    AllocationExhausted when the board runs out of a capability.
    """
    catalog = catalog or default_catalog()
    definition = catalog.module(module_id)
    if definition is None:
        raise UnknownModuleError(module_id)

    allocator = replay_reservations(state.board, state.modules)
    instance_id = new_id()
    pins = allocate_module(allocator, definition, instance_id)

    instance = AddedModuleInstance(
        instance_id=instance_id,
        definition_id=definition.id,
        allocated_pins=pins,
    )
    log.info("Added %s as %s on %s: %s", definition.id, instance_id, state.board.id,
             ", ".join(f"{k}=GPIO{v}" for k, v in pins))
    return replace(state, modules=state.modules + (instance,))


def remove_module(state: ProjectState, instance_id: str) -> ProjectState:
    """Drop one instance; an unknown id leaves the state as it is."""
    remaining = tuple(m for m in state.modules if m.instance_id != instance_id)
    if len(remaining) == len(state.modules):
        log.warning("Remove: no module instance '%s'", instance_id)
        return state
    return replace(state, modules=remaining)


def set_board(
    state: ProjectState,
    board_id: str,
    *,
    catalog: CatalogResult | None = None,
) -> ProjectState:
    """Switch board.  All modules are discarded, never migrated.

    Unknown ids fall back to the catalog's default board.
    """
    catalog = catalog or default_catalog()
    board = get_board(catalog, board_id)
    if state.modules:
        log.info("Board changed to %s, discarding %d module(s)", board.id, len(state.modules))
    return replace(state, board=board, modules=())


def update_network(state: ProjectState, **changes) -> ProjectState:
    return replace(state, network=replace(state.network, **changes))


def update_identity_data(state: ProjectState, **changes) -> ProjectState:
    return replace(state, identity_data=replace(state.identity_data, **changes))


def set_identity(state: ProjectState, token: str | None) -> ProjectState:
    return replace(state, identity=token or None)


def new_project(
    board_id: str | None = None,
    *,
    catalog: CatalogResult | None = None,
    **kwargs,
) -> ProjectState:
    catalog = catalog or default_catalog()
    board = get_board(catalog, board_id) if board_id else catalog.default_board
    kwargs.setdefault("identity_data", IdentityData())
    return ProjectState(board=board, **kwargs)


# ── Views ──────────────────────────────────────────────────────────

def pin_status(state: ProjectState) -> dict[int, list[tuple[str, str, str]]]:
    """Map every board gpio to its users: (instance_id, definition_id, placeholder).

    Shared bus pins list every instance that references them.
    """
    status: dict[int, list[tuple[str, str, str]]] = {p.gpio: [] for p in state.board.pins}
    for m in state.modules:
        for placeholder, gpio in m.allocated_pins:
            status.setdefault(gpio, []).append((m.instance_id, m.definition_id, placeholder))
    return status
