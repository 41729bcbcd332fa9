"""Allocator — capability-driven GPIO reservation for one board.

Submodules:
  models   PinReservation row.
  engine   PinAllocator (available_pins, reserve_pin, allocate, shared_bus).
"""

from .models import PinReservation
from .engine import PinAllocator

__all__ = ["PinReservation", "PinAllocator"]
