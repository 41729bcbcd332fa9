"""Catalog dataclasses — typed representations of catalog/data/*.json entries."""

from __future__ import annotations

import re
from dataclasses import dataclass, field


CAPABILITIES = frozenset({
    "digital-in", "digital-out", "analog-in", "analog-out",
    "pwm", "i2c", "spi", "uart", "power", "gnd",
})
BUSES = frozenset({"i2c", "spi"})
CATEGORIES = frozenset({
    "environmental", "security", "actuator", "power", "identity", "display",
})
TOPIC_TYPES = frozenset({"telemetry", "command", "none"})
DEFAULT_BOARD_ID = "esp32-devkit-v1"

PLACEHOLDER_RE = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")


def pin_placeholder(index: int) -> str:
    """Placeholder name for the index-th allocated pin (``PIN_0``, ``PIN_1``, ...)."""
    return f"PIN_{index}"


# ── Boards ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PinDefinition:
    gpio: int
    label: str                          # silkscreen label, e.g. "D21"
    capabilities: frozenset[str]
    restricted: bool = False
    restriction_reason: str = ""
    bus_role: str | None = None         # "sda" | "scl" | "mosi" | ...
    adc_channel: int | None = None

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities


@dataclass(frozen=True)
class I2CPins:
    sda: int
    scl: int


@dataclass(frozen=True)
class SPIPins:
    mosi: int
    miso: int
    clk: int
    cs: int


@dataclass(frozen=True)
class BoardDefinition:
    id: str
    name: str
    mcu: str                            # "esp32" | "esp8266"
    pins: tuple[PinDefinition, ...]
    default_i2c: I2CPins
    default_spi: SPIPins
    max_current_ma: float | None = None
    source_file: str = ""

    def pin(self, gpio: int) -> PinDefinition | None:
        for p in self.pins:
            if p.gpio == gpio:
                return p
        return None


# ── Modules ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ModuleDefinition:
    id: str
    name: str
    description: str
    category: str
    requires: tuple[str, ...]           # capability per PIN_i, in order
    constructor_code: str
    setup_code: str
    header_include: str = ""
    bus: str | None = None              # fixed bus requirement ("i2c" | "spi")
    power_ma: float = 0.0
    loop_code: str = ""
    topic_type: str = "none"            # "telemetry" | "command" | "none"
    telemetry_field: str | None = None
    telemetry_code: str = ""
    command_on: str | None = None       # digital level written for "ON"
    command_off: str | None = None      # digital level written for "OFF"
    command_code: str = ""              # custom handler body, replaces ON/OFF mapping
    libraries: tuple[str, ...] = ()
    source_file: str = ""

    @property
    def is_telemetry(self) -> bool:
        return self.topic_type == "telemetry" and bool(self.telemetry_field)

    @property
    def is_command(self) -> bool:
        return self.topic_type == "command"

    @property
    def placeholder_arity(self) -> int:
        """Number of PIN_i placeholders an allocation fills in.

        A shared I2C bus always hands out the SDA/SCL pair, whatever the
        length of ``requires``.
        """
        if self.bus == "i2c":
            return 2
        return len(self.requires)

    @property
    def declared_placeholders(self) -> frozenset[str]:
        names = {"ID"}
        if self.telemetry_field:
            names.add("FIELD")
        names.update(pin_placeholder(i) for i in range(self.placeholder_arity))
        return frozenset(names)

    @property
    def fragments(self) -> dict[str, str]:
        """All source fragments keyed by field name (empty ones omitted)."""
        raw = {
            "constructor_code": self.constructor_code,
            "setup_code": self.setup_code,
            "loop_code": self.loop_code,
            "telemetry_code": self.telemetry_code,
            "command_code": self.command_code,
        }
        return {k: v for k, v in raw.items() if v}

    @property
    def includes(self) -> list[str]:
        return [line.strip() for line in self.header_include.splitlines() if line.strip()]


# ── Libraries ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class LibraryDefinition:
    id: str
    name: str
    description: str
    author: str
    manager_name: str                   # name in the Arduino Library Manager
    url: str | None = None


# ── Results ────────────────────────────────────────────────────────

@dataclass
class ValidationError:
    entry_id: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"[{self.entry_id}] {self.field}: {self.message}"


@dataclass
class CatalogResult:
    """Result of loading the catalog — boards, modules, libraries + any validation errors."""
    boards: list[BoardDefinition]
    modules: list[ModuleDefinition]
    libraries: dict[str, LibraryDefinition]
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0

    @property
    def default_board(self) -> BoardDefinition:
        return self.board(DEFAULT_BOARD_ID) or self.boards[0]

    def board(self, board_id: str) -> BoardDefinition | None:
        for b in self.boards:
            if b.id == board_id:
                return b
        return None

    def module(self, module_id: str) -> ModuleDefinition | None:
        for m in self.modules:
            if m.id == module_id:
                return m
        return None

    def library(self, library_id: str) -> LibraryDefinition | None:
        return self.libraries.get(library_id)
