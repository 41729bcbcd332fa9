"""Project dataclasses — the single immutable value the orchestrator threads through."""

from __future__ import annotations

from dataclasses import dataclass, field

from microiot.catalog.models import BoardDefinition
from microiot.identity import IdentityData


@dataclass(frozen=True)
class AddedModuleInstance:
    """A module placed on the board with its pins fixed.

    ``allocated_pins`` keeps (placeholder, gpio) pairs in PIN_i order.
    """

    instance_id: str
    definition_id: str
    allocated_pins: tuple[tuple[str, int], ...]

    @property
    def pins(self) -> dict[str, int]:
        return dict(self.allocated_pins)

    @property
    def short_id(self) -> str:
        """Symbol-safe prefix of the instance id used in generated names."""
        return self.instance_id.split("-")[0]


@dataclass(frozen=True)
class NetworkConfig:
    ssid: str = ""
    password: str = ""
    bt_name: str = "MyESP32"            # ESP32 only
    broker: str = "broker.hivemq.com"
    port: int = 1883
    device_id: str = "micro_node_0"


@dataclass(frozen=True)
class ProjectState:
    board: BoardDefinition
    modules: tuple[AddedModuleInstance, ...] = ()
    network: NetworkConfig = field(default_factory=NetworkConfig)
    identity_data: IdentityData = field(default_factory=IdentityData)
    identity: str | None = None         # token from the identity issuer

    def instance(self, instance_id: str) -> AddedModuleInstance | None:
        for m in self.modules:
            if m.instance_id == instance_id:
                return m
        return None
