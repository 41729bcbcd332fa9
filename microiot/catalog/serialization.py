"""Catalog serialization — convert dataclasses to JSON-safe dicts."""

from __future__ import annotations

from typing import Any

from .models import (
    BoardDefinition, ModuleDefinition, LibraryDefinition, CatalogResult,
)


def catalog_to_dict(result: CatalogResult) -> dict:
    """Serialize a CatalogResult to a JSON-safe dict for the web API."""
    return {
        "ok": result.ok,
        "default_board": result.default_board.id if result.boards else None,
        "boards": [board_to_dict(b) for b in result.boards],
        "modules": [module_to_dict(m) for m in result.modules],
        "categories": sorted({m.category for m in result.modules}),
        "errors": [{"entry_id": e.entry_id, "field": e.field, "message": e.message}
                   for e in result.errors],
    }


def board_to_dict(b: BoardDefinition) -> dict:
    """Serialize a BoardDefinition to a JSON-safe dict."""
    d: dict[str, Any] = {
        "id": b.id,
        "name": b.name,
        "mcu": b.mcu,
        "default_i2c": {"sda": b.default_i2c.sda, "scl": b.default_i2c.scl},
        "default_spi": {
            "mosi": b.default_spi.mosi,
            "miso": b.default_spi.miso,
            "clk": b.default_spi.clk,
            "cs": b.default_spi.cs,
        },
        "pins": [
            {
                "gpio": p.gpio,
                "label": p.label,
                "capabilities": sorted(p.capabilities),
                "restricted": p.restricted,
                **({"restriction_reason": p.restriction_reason} if p.restricted else {}),
                **({"bus_role": p.bus_role} if p.bus_role else {}),
                **({"adc_channel": p.adc_channel} if p.adc_channel is not None else {}),
            }
            for p in b.pins
        ],
    }
    if b.max_current_ma is not None:
        d["max_current_ma"] = b.max_current_ma
    return d


def module_to_dict(m: ModuleDefinition) -> dict:
    """Serialize a ModuleDefinition (metadata only, no source fragments)."""
    d: dict[str, Any] = {
        "id": m.id,
        "name": m.name,
        "description": m.description,
        "category": m.category,
        "requires": list(m.requires),
        "power_ma": m.power_ma,
        "topic_type": m.topic_type,
        "libraries": list(m.libraries),
    }
    if m.bus:
        d["bus"] = m.bus
    if m.telemetry_field:
        d["telemetry_field"] = m.telemetry_field
    return d


def library_to_dict(lib: LibraryDefinition) -> dict:
    d = {
        "id": lib.id,
        "name": lib.name,
        "description": lib.description,
        "author": lib.author,
        "manager_name": lib.manager_name,
    }
    if lib.url:
        d["url"] = lib.url
    return d
