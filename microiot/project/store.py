"""Project store — thin shell holding one ProjectState.

Each action calls a pure orchestrator function and swaps the held state
for the result.  Recoverable errors come back as an ``AddResult`` instead
of propagating, and the held state is left exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from microiot.catalog import CatalogResult, default_catalog
from microiot.errors import AllocationError, UnknownModuleError
from microiot.identity import IdentityIssuer, request_identity

from . import orchestrator
from .models import AddedModuleInstance, ProjectState


log = logging.getLogger("microiot.store")

MAX_LOG_LINES = 100


@dataclass
class AddResult:
    success: bool
    error: str | None = None
    instance: AddedModuleInstance | None = None


class ProjectStore:
    def __init__(
        self,
        state: ProjectState | None = None,
        *,
        catalog: CatalogResult | None = None,
        new_id: Callable[[], str] | None = None,
    ) -> None:
        self.catalog = catalog or default_catalog()
        self.state = state or orchestrator.new_project(catalog=self.catalog)
        self._new_id = new_id
        self.logs: list[str] = []

    # ── Log ────────────────────────────────────────────────────────

    def add_log(self, msg: str) -> None:
        self.logs = (self.logs + [msg])[-MAX_LOG_LINES:]

    def clear_logs(self) -> None:
        self.logs = []

    # ── Actions ────────────────────────────────────────────────────

    def add_module(self, module_id: str) -> AddResult:
        kwargs = {"new_id": self._new_id} if self._new_id else {}
        try:
            new_state = orchestrator.add_module(
                self.state, module_id, catalog=self.catalog, **kwargs)
        except (UnknownModuleError, AllocationError) as exc:
            log.info("Add %s refused: %s", module_id, exc)
            self.add_log(str(exc))
            return AddResult(success=False, error=str(exc))

        self.state = new_state
        instance = new_state.modules[-1]
        self.add_log(f"Added {module_id} ({instance.short_id})")
        return AddResult(success=True, instance=instance)

    def remove_module(self, instance_id: str) -> bool:
        before = len(self.state.modules)
        self.state = orchestrator.remove_module(self.state, instance_id)
        return len(self.state.modules) < before

    def set_board(self, board_id: str) -> None:
        self.state = orchestrator.set_board(self.state, board_id, catalog=self.catalog)
        self.add_log(f"Board set to {self.state.board.id}")

    def update_network(self, **changes) -> None:
        self.state = orchestrator.update_network(self.state, **changes)

    def update_identity_data(self, **changes) -> None:
        self.state = orchestrator.update_identity_data(self.state, **changes)

    def set_identity(self, token: str | None) -> None:
        self.state = orchestrator.set_identity(self.state, token)

    def generate_identity(self, issuer: IdentityIssuer | None) -> bool:
        """Ask ``issuer`` for a token and keep it.  No retry on failure."""
        token = request_identity(issuer, self.state.identity_data)
        if token is None:
            self.add_log("Error generating identity")
            return False
        self.state = orchestrator.set_identity(self.state, token)
        self.add_log(f"Identity generated: {token[:20]}...")
        return True

    def generate(self, issuer: IdentityIssuer | None = None):
        """Synthesize firmware for the held state, issuing an identity first if missing."""
        from microiot.codegen import generate_firmware

        if not self.state.identity and issuer is not None:
            self.generate_identity(issuer)
        s = self.state
        return generate_firmware(
            s.board, s.modules, s.network, s.identity, catalog=self.catalog)
