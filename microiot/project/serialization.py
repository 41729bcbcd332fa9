"""Project serialization — JSON conversion for the web API."""

from __future__ import annotations

from dataclasses import asdict

from microiot.catalog import CatalogResult, default_catalog, get_board
from microiot.identity import IdentityData

from .models import AddedModuleInstance, NetworkConfig, ProjectState


def project_to_dict(state: ProjectState) -> dict:
    """Serialize a ProjectState to a JSON-safe dict."""
    return {
        "board_id": state.board.id,
        "modules": [
            {
                "instance_id": m.instance_id,
                "definition_id": m.definition_id,
                "allocated_pins": {k: v for k, v in m.allocated_pins},
            }
            for m in state.modules
        ],
        "network": asdict(state.network),
        "identity_data": state.identity_data.to_dict(),
        "identity": state.identity,
    }


def parse_project(data: dict, catalog: CatalogResult | None = None) -> ProjectState:
    """Parse a project dict back into a ProjectState.

    Pin maps are ordered by placeholder index, whatever order the dict
    carries them in.
    """
    catalog = catalog or default_catalog()

    modules = tuple(
        AddedModuleInstance(
            instance_id=m["instance_id"],
            definition_id=m["definition_id"],
            allocated_pins=tuple(sorted(
                ((k, int(v)) for k, v in m["allocated_pins"].items()),
                key=lambda kv: _placeholder_index(kv[0]),
            )),
        )
        for m in data.get("modules", [])
    )

    return ProjectState(
        board=get_board(catalog, data.get("board_id", "")),
        modules=modules,
        network=NetworkConfig(**data.get("network", {})),
        identity_data=IdentityData(**data.get("identity_data", {})),
        identity=data.get("identity"),
    )


def _placeholder_index(name: str) -> int:
    _, _, idx = name.rpartition("_")
    return int(idx) if idx.isdigit() else 0
