"""Code generator output dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field

from microiot.catalog.models import LibraryDefinition


@dataclass(frozen=True)
class GeneratedFirmware:
    source: str                         # full .ino sketch text
    filename: str                       # suggested download name
    libraries: tuple[LibraryDefinition, ...] = ()
    module_ids: tuple[str, ...] = ()    # definition ids announced in discovery


@dataclass
class SketchParts:
    """Accumulators for one generation pass."""

    includes: list[str] = field(default_factory=list)
    globals: list[str] = field(default_factory=list)
    setups: list[str] = field(default_factory=list)
    loops: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)
    discovery: list[str] = field(default_factory=list)

    def add_include(self, line: str) -> None:
        if line and line not in self.includes:
            self.includes.append(line)

    def add_global(self, line: str) -> None:
        if line and line not in self.globals:
            self.globals.append(line)
