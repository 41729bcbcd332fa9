"""Pin allocator — decides which physical pin serves a capability request.

The reservation table is local to one allocator instance and lives only for
a single addition attempt; the committed module list is the source of truth
and is replayed into a fresh allocator each time.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping

from microiot.catalog.models import BoardDefinition, PinDefinition

from .models import PinReservation


log = logging.getLogger(__name__)


class PinAllocator:
    """Capability-driven GPIO allocator bound to one board."""

    def __init__(self, board: BoardDefinition) -> None:
        self.board = board
        self._reservations: dict[int, PinReservation] = {}

    @property
    def reservations(self) -> Mapping[int, PinReservation]:
        """Read-only view of the table: gpio -> reservation."""
        return MappingProxyType(self._reservations)

    def reset(self) -> None:
        self._reservations.clear()

    def owner_of(self, gpio: int) -> str | None:
        res = self._reservations.get(gpio)
        return res.owner_id if res else None

    def available_pins(self, capability: str) -> list[PinDefinition]:
        """Unreserved pins carrying ``capability``, in board declaration order."""
        return [
            pin for pin in self.board.pins
            if pin.gpio not in self._reservations and pin.supports(capability)
        ]

    def reserve_pin(self, gpio: int, owner_id: str, function: str) -> bool:
        """Reserve a specific pin.

        Re-reserving with the identical (gpio, owner, function) triple is a
        no-op that succeeds.  Any other triple on a held gpio is a conflict
        and returns False, as does a gpio the board does not have.
        """
        existing = self._reservations.get(gpio)
        if existing is not None:
            if existing.owner_id == owner_id and existing.function == function:
                return True
            log.debug("GPIO %d held by %s (%s), refused for %s (%s)",
                      gpio, existing.owner_id, existing.function, owner_id, function)
            return False

        if self.board.pin(gpio) is None:
            log.debug("GPIO %d is not on board %s", gpio, self.board.id)
            return False

        self._reservations[gpio] = PinReservation(gpio=gpio, owner_id=owner_id, function=function)
        return True

    def allocate(self, owner_id: str, capability: str, prefer_safe: bool = True) -> int | None:
        """Pick, reserve and return one pin for ``capability``.

        With ``prefer_safe`` restricted pins sort after every unrestricted
        candidate; the sort is stable so board order breaks ties.  Returns
        None when no candidate is left.
        """
        candidates = self.available_pins(capability)
        if prefer_safe:
            candidates.sort(key=lambda p: p.restricted)

        if not candidates:
            return None

        selected = candidates[0]
        self._reservations[selected.gpio] = PinReservation(
            gpio=selected.gpio, owner_id=owner_id, function=capability,
        )
        if selected.restricted:
            log.debug("%s: only restricted pin left for '%s': GPIO %d (%s)",
                      owner_id, capability, selected.gpio, selected.restriction_reason)
        return selected.gpio

    def shared_bus(self, bus_type: str) -> tuple[int, ...] | None:
        """Pins of a shared bus, or None when the bus cannot be shared.

        For ``i2c`` this is always the board's default (SDA, SCL) pair.  It
        does not check whether a single-purpose module already holds either
        pin.  SPI is not shared.
        """
        if bus_type == "i2c":
            return (self.board.default_i2c.sda, self.board.default_i2c.scl)
        return None
