"""Project — immutable state, pure orchestration, and the store shell.

Submodules:
  models         AddedModuleInstance, NetworkConfig, ProjectState.
  orchestrator   Pure transitions (add_module, remove_module, set_board, ...).
  store          ProjectStore, the stateful shell used by the web API and CLI.
  serialization  JSON conversion (project_to_dict, parse_project).
"""

from .models import AddedModuleInstance, NetworkConfig, ProjectState
from .orchestrator import (
    add_module, remove_module, set_board, update_network,
    update_identity_data, set_identity, new_project,
    replay_reservations, allocate_module, plan_modules, pin_status,
)
from .store import ProjectStore, AddResult
from .serialization import project_to_dict, parse_project

__all__ = [
    # Models
    "AddedModuleInstance", "NetworkConfig", "ProjectState",
    # Orchestrator
    "add_module", "remove_module", "set_board", "update_network",
    "update_identity_data", "set_identity", "new_project",
    "replay_reservations", "allocate_module", "plan_modules", "pin_status",
    # Store
    "ProjectStore", "AddResult",
    # Serialization
    "project_to_dict", "parse_project",
]
