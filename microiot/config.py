"""Shared firmware constants and environment-driven defaults.

The protocol scaffold values (topic root, intervals, signature) are a fixed
internal convention of the generated sketch.  Both the code generator and
the web/CLI shells read them from the single ``FIRMWARE_SETTINGS`` instance.
"""

from __future__ import annotations

import os
import random
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FirmwareSettings:
    """Constants baked into every generated sketch.

    All intervals are in milliseconds.
    """

    telemetry_interval_ms: int = 5000
    """Minimum gap between two telemetry publications of one module."""

    reconnect_interval_ms: int = 5000
    """Gap between non-blocking MQTT reconnect attempts."""

    wifi_retries: int = 20
    """WiFi status polls (500 ms apart) before setup gives up."""

    serial_baud: int = 115200

    protocol_signature: str = "GRIDS-IOT-V1"
    topic_root: str = "grids"
    firmware_version: str = "1.0.0"

    identity_sentinel: str = "UNREGISTERED-DEV-KEY"
    """Written in place of the identity token when none was issued."""

    core_libraries: tuple[str, ...] = ("pubsubclient", "arduinojson")
    """Library ids every sketch depends on."""

    filename_prefix: str = "micro_iot_"


# Module-level singleton — importable everywhere.
FIRMWARE_SETTINGS = FirmwareSettings()


# ── Environment ────────────────────────────────────────────────────

ROOT = Path(__file__).resolve().parent.parent


def load_env(root: Path = ROOT) -> None:
    """Populate os.environ from .env / .env.local without overriding set values."""
    for name in (".env", ".env.local"):
        p = root / name
        if p.exists():
            for line in p.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if line and "=" in line and not line.startswith("#"):
                    k, v = line.split("=", 1)
                    k = k.strip()
                    v = v.strip().strip('"').strip("'")
                    if k and k not in os.environ:
                        os.environ[k] = v


def default_network():
    """Initial NetworkConfig, overridable through MICROIOT_* variables."""
    from microiot.project.models import NetworkConfig

    return NetworkConfig(
        ssid=os.environ.get("MICROIOT_WIFI_SSID", ""),
        password=os.environ.get("MICROIOT_WIFI_PASSWORD", ""),
        bt_name=os.environ.get("MICROIOT_BT_NAME", "MyESP32"),
        broker=os.environ.get("MICROIOT_BROKER", "broker.hivemq.com"),
        port=int(os.environ.get("MICROIOT_BROKER_PORT", "1883")),
        device_id=os.environ.get("MICROIOT_DEVICE_ID") or f"micro_node_{random.randint(0, 999)}",
    )
