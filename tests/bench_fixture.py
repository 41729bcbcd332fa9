"""Bench test fixture — a five-pin board and a handful of modules.

Small enough that exhaustion and partial-allocation cases are easy to set up:

  gpio  label  capabilities                     notes
  1     P1     digital-in, digital-out          restricted ("Boot strap")
  2     P2     digital-in, digital-out
  3     P3     digital-in, analog-in
  4     P4     digital-in, digital-out, i2c     SDA
  5     P5     digital-in, digital-out, i2c     SCL

Modules:
  button   digital-in                 telemetry "pressed"
  lamp     digital-out                command, ON=HIGH
  probe    analog-in                  telemetry "level"
  combo    digital-out, analog-in     (fails halfway once P3 is taken)
  oled     i2c bus
  broken   digital-in, template references {{PIN_3}}
"""

from __future__ import annotations

import itertools

from microiot.catalog.models import (
    PinDefinition, I2CPins, SPIPins, BoardDefinition,
    ModuleDefinition, LibraryDefinition, CatalogResult,
)


def _pin(gpio: int, caps: list[str], **kw) -> PinDefinition:
    return PinDefinition(gpio=gpio, label=f"P{gpio}", capabilities=frozenset(caps), **kw)


def make_bench_board() -> BoardDefinition:
    return BoardDefinition(
        id="bench-board",
        name="Bench Board",
        mcu="esp32",
        pins=(
            _pin(1, ["digital-in", "digital-out"], restricted=True, restriction_reason="Boot strap"),
            _pin(2, ["digital-in", "digital-out"]),
            _pin(3, ["digital-in", "analog-in"]),
            _pin(4, ["digital-in", "digital-out", "i2c"], bus_role="sda"),
            _pin(5, ["digital-in", "digital-out", "i2c"], bus_role="scl"),
        ),
        default_i2c=I2CPins(sda=4, scl=5),
        default_spi=SPIPins(mosi=2, miso=3, clk=1, cs=2),
    )


def make_bench_modules() -> list[ModuleDefinition]:
    return [
        ModuleDefinition(
            id="button", name="Button", description="", category="security",
            requires=("digital-in",),
            constructor_code="const int btn_{{ID}} = {{PIN_0}};",
            setup_code="pinMode(btn_{{ID}}, INPUT_PULLUP);",
            topic_type="telemetry", telemetry_field="pressed",
            telemetry_code='sendTelemetry("{{FIELD}}", digitalRead({{PIN_0}}));',
            libraries=("benchlib",),
        ),
        ModuleDefinition(
            id="lamp", name="Lamp", description="", category="actuator",
            requires=("digital-out",),
            constructor_code="const int lamp_{{ID}} = {{PIN_0}};",
            setup_code="pinMode(lamp_{{ID}}, OUTPUT);",
            topic_type="command", command_on="HIGH", command_off="LOW",
        ),
        ModuleDefinition(
            id="probe", name="Probe", description="", category="environmental",
            requires=("analog-in",),
            constructor_code="// Probe on {{PIN_0}}",
            setup_code="pinMode({{PIN_0}}, INPUT);",
            loop_code="probeTick_{{ID}}();",
            topic_type="telemetry", telemetry_field="level",
            telemetry_code='sendTelemetry("{{FIELD}}", analogRead({{PIN_0}}));',
            libraries=("benchlib", "ghostlib"),
        ),
        ModuleDefinition(
            id="combo", name="Combo", description="", category="actuator",
            requires=("digital-out", "analog-in"),
            constructor_code="Combo combo_{{ID}}({{PIN_0}}, {{PIN_1}});",
            setup_code="combo_{{ID}}.begin();",
        ),
        ModuleDefinition(
            id="oled", name="OLED", description="", category="display",
            requires=("i2c",), bus="i2c",
            header_include="#include <Wire.h>\n#include <Oled.h>",
            constructor_code="Oled oled_{{ID}}({{PIN_0}}, {{PIN_1}});",
            setup_code="oled_{{ID}}.begin();",
        ),
        ModuleDefinition(
            id="broken", name="Broken", description="", category="security",
            requires=("digital-in",),
            constructor_code="Broken b_{{ID}}({{PIN_3}});",
            setup_code="",
        ),
    ]


def make_bench_catalog() -> CatalogResult:
    return CatalogResult(
        boards=[make_bench_board()],
        modules=make_bench_modules(),
        libraries={
            "pubsubclient": LibraryDefinition("pubsubclient", "PubSubClient", "MQTT", "Nick O'Leary", "PubSubClient"),
            "arduinojson": LibraryDefinition("arduinojson", "ArduinoJson", "JSON", "Benoit Blanchon", "ArduinoJson"),
            "benchlib": LibraryDefinition("benchlib", "BenchLib", "Bench helpers", "Bench", "Bench Library"),
        },
    )


def id_factory(prefix: str = "m"):
    """Deterministic instance ids: m01-0000, m02-0000, ..."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter):02d}-0000"


# Bundled module list that fits the ESP32 DevKit with room to spare
ESP32_SCENARIO = [
    "dht22", "ds18b20", "bme280", "ldr", "soil-moisture", "pir-hc-sr501",
    "hc-sr04", "mag-switch", "rain-sensor", "relay-1ch", "servo-sg90",
    "active-buzzer", "ssd1306-i2c", "lcd-1602-i2c", "pzem-004t",
    "voltage-sensor", "rfid-rc522",
]
