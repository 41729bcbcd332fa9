"""Allocator dataclasses."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PinReservation:
    """One row of the reservation table: a GPIO held by a module instance."""

    gpio: int
    owner_id: str       # instance id of the module holding the pin
    function: str       # placeholder name ("PIN_0"), capability, or bus name
