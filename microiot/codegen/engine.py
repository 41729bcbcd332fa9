"""Firmware generator — renders a module list into an Arduino sketch.

Pure: the same (board, modules, network, identity) always yields the same
text.  The output is not compiled or checked here.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from microiot.catalog import BoardDefinition, CatalogResult, ModuleDefinition, default_catalog
from microiot.config import FIRMWARE_SETTINGS, FirmwareSettings
from microiot.project.models import AddedModuleInstance, NetworkConfig

from .dependencies import resolve_libraries
from .models import GeneratedFirmware, SketchParts
from .scaffold import (
    c_string, command_branch, core_includes, helper_functions,
    loop_function, network_includes, setup_function,
)
from .templates import placeholder_values, render_fragment


log = logging.getLogger("microiot.codegen")

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_-]")


def firmware_filename(device_id: str, settings: FirmwareSettings = FIRMWARE_SETTINGS) -> str:
    """Suggested sketch name derived from the device id."""
    stem = _UNSAFE_FILENAME.sub("_", device_id) or "device"
    return f"{settings.filename_prefix}{stem}.ino"


def _indent(text: str, prefix: str = "  ") -> str:
    return "\n".join(prefix + line if line.strip() else line for line in text.splitlines())


# ── Per-module rendering ───────────────────────────────────────────

def _render_module(
    parts: SketchParts,
    definition: ModuleDefinition,
    instance: AddedModuleInstance,
    settings: FirmwareSettings,
) -> None:
    values = placeholder_values(definition, instance)
    sid = instance.short_id

    def render(fragment: str) -> str:
        return render_fragment(
            getattr(definition, fragment), values,
            module_id=definition.id, fragment=fragment,
        )

    parts.discovery.append(definition.id)
    for inc in definition.includes:
        parts.add_include(inc)

    parts.add_global(render("constructor_code"))

    setup = render("setup_code")
    if setup:
        parts.setups.append(f"  // Setup {definition.name}\n{_indent(setup)}")

    loop = render("loop_code")
    if loop:
        parts.loops.append(f"  // Loop {definition.name}\n{_indent(loop)}")

    if definition.is_telemetry and definition.telemetry_code:
        read = render("telemetry_code")
        parts.loops.append(
            f"  // Telemetry {definition.name}\n"
            f"  static unsigned long last_{sid} = 0;\n"
            f"  if (millis() - last_{sid} > {settings.telemetry_interval_ms}) {{\n"
            f"{_indent(read, '    ')}\n"
            f"    last_{sid} = millis();\n"
            f"  }}"
        )

    if definition.is_command:
        alias = definition.telemetry_field or "switch"
        if definition.command_code:
            body = render("command_code").splitlines()
        else:
            pin = instance.pins.get("PIN_0")
            on = definition.command_on or "HIGH"
            off = definition.command_off or "LOW"
            body = [
                f'if (msg == "ON") digitalWrite({pin}, {on});',
                f'if (msg == "OFF") digitalWrite({pin}, {off});',
            ]
        parts.commands.append(command_branch(definition.id, alias, body, settings))


# ── Public API ─────────────────────────────────────────────────────

def generate_firmware(
    board: BoardDefinition,
    modules: Iterable[AddedModuleInstance],
    network: NetworkConfig,
    identity: str | None = None,
    *,
    catalog: CatalogResult | None = None,
    settings: FirmwareSettings = FIRMWARE_SETTINGS,
) -> GeneratedFirmware:
    """Generate the complete sketch for ``modules`` on ``board``.

    Modules are rendered in list order.  Instances whose definition is not
    in the catalog are skipped.  Raises TemplateError when a fragment
    references a placeholder the instance cannot fill.
    """
    catalog = catalog or default_catalog()
    modules = tuple(modules)
    parts = SketchParts()

    parts.add_include("#include <Arduino.h>")
    for inc in core_includes() + network_includes(board.mcu):
        parts.add_include(inc)

    token = identity or settings.identity_sentinel
    parts.add_global("WiFiClient espClient;")
    parts.add_global("PubSubClient client(espClient);")
    parts.add_global(f"const char* mqtt_server = {c_string(network.broker)};")
    parts.add_global(f"const int mqtt_port = {int(network.port)};")
    parts.add_global(f"const char* device_id = {c_string(network.device_id)};")
    parts.add_global(f"const char* device_identity = {c_string(token)}; // Signed Identity")

    for instance in modules:
        definition = catalog.module(instance.definition_id)
        if definition is None:
            log.warning("Skipping %s: unknown module definition '%s'",
                        instance.instance_id, instance.definition_id)
            continue
        _render_module(parts, definition, instance, settings)

    # ── Assemble ──
    lines: list[str] = [f"/** {settings.protocol_signature} Auto-Generated Code */"]
    lines.extend(parts.includes)
    lines.append("")

    lines.append(f"const char* ssid = {c_string(network.ssid)};")
    lines.append(f"const char* password = {c_string(network.password)};")
    lines.append("")

    lines.extend(parts.globals)
    lines.append("")

    lines.append(helper_functions(board.id, parts.discovery, parts.commands, settings))

    lines.extend(setup_function(parts.setups, settings))
    lines.append("")
    lines.extend(loop_function(parts.loops, settings))

    source = "\n".join(lines) + "\n"
    libraries = resolve_libraries(modules, catalog, settings)
    log.info("Generated %d-line sketch for %s with %d module(s)",
             source.count("\n"), board.id, len(parts.discovery))

    return GeneratedFirmware(
        source=source,
        filename=firmware_filename(network.device_id, settings),
        libraries=libraries,
        module_ids=tuple(parts.discovery),
    )
