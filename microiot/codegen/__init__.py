"""Code generator — Arduino sketch synthesis for a project.

Submodules:
  models        GeneratedFirmware output and per-pass accumulators.
  templates     Placeholder substitution for catalog fragments.
  scaffold      Fixed MQTT protocol text (helpers, setup, loop).
  dependencies  Library descriptor resolution.
  engine        generate_firmware.
"""

from .models import GeneratedFirmware
from .engine import generate_firmware, firmware_filename
from .templates import render_fragment, placeholder_values
from .dependencies import resolve_libraries, required_library_ids

__all__ = [
    "GeneratedFirmware",
    "generate_firmware", "firmware_filename",
    "render_fragment", "placeholder_values",
    "resolve_libraries", "required_library_ids",
]
