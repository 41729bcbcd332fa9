"""
FastAPI web server — project store endpoints for the board editor.

Holds one ProjectStore for the process.  Mutating calls are serialized
through a lock so additions never interleave.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from microiot.catalog import catalog_to_dict, default_catalog, library_to_dict
from microiot.config import default_network, load_env
from microiot.project import ProjectStore, new_project, pin_status, project_to_dict
from microiot.errors import TemplateError


log = logging.getLogger("microiot.server")

load_env()

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="Micro-IoT Generator")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Session state (persists across requests) ───────────────────────

_lock = threading.RLock()
_store: ProjectStore | None = None


def _fresh_store() -> ProjectStore:
    catalog = default_catalog()
    return ProjectStore(new_project(catalog=catalog, network=default_network()), catalog=catalog)


def get_store() -> ProjectStore:
    global _store
    with _lock:
        if _store is None:
            _store = _fresh_store()
        return _store


def _state_response(store: ProjectStore) -> dict:
    return {"project": project_to_dict(store.state), "logs": store.logs}


# ── Models ─────────────────────────────────────────────────────────

class BoardRequest(BaseModel):
    board_id: str


class AddModuleRequest(BaseModel):
    module_id: str


class NetworkUpdate(BaseModel):
    ssid: str | None = None
    password: str | None = None
    bt_name: str | None = None
    broker: str | None = None
    port: int | None = Field(default=None, ge=1, le=65535)
    device_id: str | None = Field(default=None, min_length=1)


class IdentityRequest(BaseModel):
    token: str | None = None
    data: dict[str, int] | None = None


# ── Routes ─────────────────────────────────────────────────────────

@app.get("/api/catalog")
def get_catalog():
    return catalog_to_dict(default_catalog())


@app.get("/api/project")
def get_project():
    return _state_response(get_store())


@app.post("/api/reset")
def reset_project():
    """Discard the current project and start a fresh one."""
    global _store
    with _lock:
        _store = _fresh_store()
        return _state_response(_store)


@app.post("/api/board")
def set_board(req: BoardRequest):
    """Switch board.  All placed modules are dropped."""
    with _lock:
        store = get_store()
        store.set_board(req.board_id)
        return _state_response(store)


@app.post("/api/modules")
def add_module(req: AddModuleRequest):
    with _lock:
        store = get_store()
        if store.catalog.module(req.module_id) is None:
            raise HTTPException(404, f"Module definition '{req.module_id}' not found")
        result = store.add_module(req.module_id)
        if not result.success:
            raise HTTPException(409, result.error)
        return {
            "instance_id": result.instance.instance_id,
            "allocated_pins": result.instance.pins,
            **_state_response(store),
        }


@app.delete("/api/modules/{instance_id}")
def remove_module(instance_id: str):
    with _lock:
        store = get_store()
        if not store.remove_module(instance_id):
            raise HTTPException(404, f"No module instance '{instance_id}'")
        return _state_response(store)


@app.post("/api/network")
def update_network(req: NetworkUpdate):
    changes = req.model_dump(exclude_none=True)
    with _lock:
        store = get_store()
        store.update_network(**changes)
        return _state_response(store)


@app.post("/api/identity")
def update_identity(req: IdentityRequest):
    """Store identity fields and/or a token issued by the identity service."""
    with _lock:
        store = get_store()
        if req.data:
            try:
                candidate = replace(store.state.identity_data, **req.data)
            except TypeError as exc:
                raise HTTPException(400, f"Invalid identity field: {exc}")
            problems = candidate.validate()
            if problems:
                raise HTTPException(400, "; ".join(problems))
            store.update_identity_data(**req.data)
        if req.token is not None:
            store.set_identity(req.token)
        return _state_response(store)


@app.get("/api/pins")
def get_pins():
    """Per-pin allocation status for the board view."""
    store = get_store()
    status = pin_status(store.state)
    return {
        "board_id": store.state.board.id,
        "pins": [
            {
                "gpio": p.gpio,
                "label": p.label,
                "restricted": p.restricted,
                "users": [
                    {"instance_id": iid, "module": mid, "function": func}
                    for iid, mid, func in status.get(p.gpio, [])
                ],
            }
            for p in store.state.board.pins
        ],
    }


@app.post("/api/generate")
def generate():
    store = get_store()
    try:
        fw = store.generate()
    except TemplateError as exc:
        log.error("Generation failed: %s", exc)
        raise HTTPException(500, str(exc))
    return {
        "filename": fw.filename,
        "source": fw.source,
        "libraries": [library_to_dict(lib) for lib in fw.libraries],
    }


# ── Entry point ────────────────────────────────────────────────────

def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("microiot.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
