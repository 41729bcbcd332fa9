"""Catalog loader — reads catalog/data/**/*.json files, parses and validates them."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from microiot.errors import CatalogError
from .models import (
    BUSES, CAPABILITIES, CATEGORIES, TOPIC_TYPES, PLACEHOLDER_RE,
    PinDefinition, I2CPins, SPIPins, BoardDefinition,
    ModuleDefinition, LibraryDefinition,
    ValidationError, CatalogResult,
)


CATALOG_DIR = Path(__file__).resolve().parent / "data"

log = logging.getLogger("microiot.catalog")


# ── Validation ─────────────────────────────────────────────────────

def _validate_board(board: BoardDefinition) -> list[ValidationError]:
    """Run all validation checks on a single board."""
    errs: list[ValidationError] = []
    bid = board.id

    if not board.pins:
        errs.append(ValidationError(bid, "pins", "Board declares no pins"))

    # GPIO numbers unique
    seen: set[int] = set()
    for pin in board.pins:
        if pin.gpio in seen:
            errs.append(ValidationError(bid, f"pins.{pin.gpio}", "Duplicate GPIO"))
        seen.add(pin.gpio)

        for cap in sorted(pin.capabilities):
            if cap not in CAPABILITIES:
                errs.append(ValidationError(bid, f"pins.{pin.gpio}.capabilities",
                                            f"Unknown capability '{cap}'"))
        if pin.restricted and not pin.restriction_reason:
            errs.append(ValidationError(bid, f"pins.{pin.gpio}.restriction_reason",
                                        "Restricted pin needs a reason"))

    # Default bus pins must exist and carry the bus tag
    bus_pins = [
        ("i2c", "default_i2c.sda", board.default_i2c.sda),
        ("i2c", "default_i2c.scl", board.default_i2c.scl),
        ("spi", "default_spi.mosi", board.default_spi.mosi),
        ("spi", "default_spi.miso", board.default_spi.miso),
        ("spi", "default_spi.clk", board.default_spi.clk),
        ("spi", "default_spi.cs", board.default_spi.cs),
    ]
    for bus, fld, gpio in bus_pins:
        pin = board.pin(gpio)
        if pin is None:
            errs.append(ValidationError(bid, fld, f"GPIO {gpio} is not on the board"))
        elif not pin.supports(bus):
            errs.append(ValidationError(bid, fld, f"GPIO {gpio} lacks the '{bus}' capability"))

    return errs


def _validate_module(mod: ModuleDefinition, libraries: dict[str, LibraryDefinition]) -> list[ValidationError]:
    """Run all validation checks on a single module definition."""
    errs: list[ValidationError] = []
    mid = mod.id

    if mod.category not in CATEGORIES:
        errs.append(ValidationError(mid, "category", f"Unknown category '{mod.category}'"))
    if mod.topic_type not in TOPIC_TYPES:
        errs.append(ValidationError(mid, "topic_type", f"Unknown topic type '{mod.topic_type}'"))

    if not mod.requires:
        errs.append(ValidationError(mid, "requires", "Module requires no pins"))
    for i, cap in enumerate(mod.requires):
        if cap not in CAPABILITIES:
            errs.append(ValidationError(mid, f"requires[{i}]", f"Unknown capability '{cap}'"))

    if mod.bus is not None:
        if mod.bus not in BUSES:
            errs.append(ValidationError(mid, "bus", f"Unknown bus '{mod.bus}'"))
        elif mod.bus not in mod.requires:
            errs.append(ValidationError(mid, "bus", f"Bus '{mod.bus}' not listed in requires {list(mod.requires)}"))

    if mod.topic_type == "telemetry" and not mod.telemetry_field:
        errs.append(ValidationError(mid, "telemetry_field", "Telemetry module needs a field name"))

    # Placeholder usage must match the declared token set
    declared = mod.declared_placeholders
    for name, fragment in mod.fragments.items():
        for token in PLACEHOLDER_RE.findall(fragment):
            if token not in declared:
                errs.append(ValidationError(
                    mid, name,
                    f"Placeholder '{{{{{token}}}}}' not in declared set {sorted(declared)}"))

    for lib in mod.libraries:
        if lib not in libraries:
            errs.append(ValidationError(mid, "libraries", f"Unknown library id '{lib}'"))

    return errs


# ── Parsing ────────────────────────────────────────────────────────

def _parse_pin(data: dict) -> PinDefinition:
    return PinDefinition(
        gpio=int(data["gpio"]),
        label=data.get("label", f"GPIO{data['gpio']}"),
        capabilities=frozenset(data["capabilities"]),
        restricted=bool(data.get("restricted", False)),
        restriction_reason=data.get("restriction_reason", ""),
        bus_role=data.get("bus_role"),
        adc_channel=data.get("adc_channel"),
    )


def _parse_board(data: dict, source_file: str = "") -> BoardDefinition:
    i2c = data["default_i2c"]
    spi = data["default_spi"]
    return BoardDefinition(
        id=data["id"],
        name=data.get("name", data["id"]),
        mcu=data["mcu"],
        pins=tuple(_parse_pin(p) for p in data["pins"]),
        default_i2c=I2CPins(sda=i2c["sda"], scl=i2c["scl"]),
        default_spi=SPIPins(mosi=spi["mosi"], miso=spi["miso"], clk=spi["clk"], cs=spi["cs"]),
        max_current_ma=data.get("max_current_ma"),
        source_file=source_file,
    )


def _parse_module(data: dict, source_file: str = "") -> ModuleDefinition:
    return ModuleDefinition(
        id=data["id"],
        name=data["name"],
        description=data.get("description", ""),
        category=data["category"],
        requires=tuple(data["requires"]),
        constructor_code=data["constructor_code"],
        setup_code=data.get("setup_code", ""),
        header_include=data.get("header_include", ""),
        bus=data.get("bus"),
        power_ma=float(data.get("power_ma", 0.0)),
        loop_code=data.get("loop_code", ""),
        topic_type=data.get("topic_type", "none"),
        telemetry_field=data.get("telemetry_field"),
        telemetry_code=data.get("telemetry_code", ""),
        command_on=data.get("command_on"),
        command_off=data.get("command_off"),
        command_code=data.get("command_code", ""),
        libraries=tuple(data.get("libraries", [])),
        source_file=source_file,
    )


def _parse_library(data: dict) -> LibraryDefinition:
    return LibraryDefinition(
        id=data["id"],
        name=data["name"],
        description=data.get("description", ""),
        author=data.get("author", ""),
        manager_name=data.get("manager_name", data["name"]),
        url=data.get("url"),
    )


def _read_json(path: Path, errors: list[ValidationError]):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        errors.append(ValidationError(path.stem, "json", f"Parse error: {exc}"))
    except OSError as exc:
        errors.append(ValidationError(path.stem, "file", f"Read error: {exc}"))
    return None


def _load_entries(directory: Path, parse, errors: list[ValidationError]) -> list:
    entries = []
    json_files = sorted(directory.glob("*.json"))
    if not json_files:
        errors.append(ValidationError("_catalog", "files", f"No .json files found in {directory}"))
        return entries

    for path in json_files:
        raw = _read_json(path, errors)
        if raw is None:
            continue
        try:
            entries.append(parse(raw, source_file=str(path)))
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(ValidationError(
                raw.get("id", path.stem) if isinstance(raw, dict) else path.stem,
                "parse", f"Missing/invalid field: {exc}"))
    return entries


def _check_duplicates(kind: str, ids: list[str], errors: list[ValidationError]) -> None:
    counts: dict[str, int] = {}
    for eid in ids:
        counts[eid] = counts.get(eid, 0) + 1
    for eid, count in counts.items():
        if count > 1:
            errors.append(ValidationError(eid, "id", f"Duplicate {kind} ID (appears {count} times)"))


# ── Public API ─────────────────────────────────────────────────────

def load_catalog(catalog_dir: Path | None = None, *, strict: bool = False) -> CatalogResult:
    """Load boards/, modules/ and libraries.json, parse and validate.

    Returns a CatalogResult with every entry and any validation errors.
    Entries that fail to parse are skipped (error recorded).  Entries that
    parse but have validation issues are still included, unless ``strict``
    is set, in which case any error raises CatalogError.
    """
    d = catalog_dir or CATALOG_DIR
    errors: list[ValidationError] = []

    libraries: dict[str, LibraryDefinition] = {}
    lib_path = d / "libraries.json"
    raw_libs = _read_json(lib_path, errors) if lib_path.exists() else []
    for item in raw_libs or []:
        try:
            lib = _parse_library(item)
        except (KeyError, TypeError) as exc:
            errors.append(ValidationError("_libraries", "parse", f"Missing/invalid field: {exc}"))
            continue
        if lib.id in libraries:
            errors.append(ValidationError(lib.id, "id", "Duplicate library ID"))
        libraries[lib.id] = lib

    boards: list[BoardDefinition] = _load_entries(d / "boards", _parse_board, errors)
    modules: list[ModuleDefinition] = _load_entries(d / "modules", _parse_module, errors)

    for board in boards:
        errors.extend(_validate_board(board))
    for mod in modules:
        errors.extend(_validate_module(mod, libraries))

    _check_duplicates("board", [b.id for b in boards], errors)
    _check_duplicates("module", [m.id for m in modules], errors)

    if not boards:
        errors.append(ValidationError("_catalog", "boards", "No boards loaded"))

    result = CatalogResult(boards=boards, modules=modules, libraries=libraries, errors=errors)
    if errors:
        log.warning("Catalog loaded with %d validation error(s)", len(errors))
        if strict:
            raise CatalogError(errors)
    log.debug("Catalog: %d boards, %d modules, %d libraries",
              len(boards), len(modules), len(libraries))
    return result


@lru_cache(maxsize=1)
def default_catalog() -> CatalogResult:
    """The bundled catalog, loaded once and validated strictly."""
    return load_catalog(strict=True)


def get_module(catalog: CatalogResult, module_id: str) -> ModuleDefinition | None:
    """Look up a module by ID. Returns None if not found."""
    return catalog.module(module_id)


def get_board(catalog: CatalogResult, board_id: str) -> BoardDefinition:
    """Look up a board by ID, falling back to the default board."""
    board = catalog.board(board_id)
    if board is None:
        log.warning("Unknown board '%s', falling back to '%s'", board_id, catalog.default_board.id)
        return catalog.default_board
    return board
