"""Library dependency resolution for a generated sketch."""

from __future__ import annotations

import logging
from typing import Iterable

from microiot.catalog import CatalogResult, LibraryDefinition
from microiot.config import FIRMWARE_SETTINGS, FirmwareSettings
from microiot.project.models import AddedModuleInstance


log = logging.getLogger("microiot.codegen.dependencies")


def required_library_ids(
    modules: Iterable[AddedModuleInstance],
    catalog: CatalogResult,
    settings: FirmwareSettings = FIRMWARE_SETTINGS,
) -> list[str]:
    """Core library ids followed by every module's, first occurrence wins."""
    ids: list[str] = list(dict.fromkeys(settings.core_libraries))
    for m in modules:
        definition = catalog.module(m.definition_id)
        if definition is None:
            continue
        for lib in definition.libraries:
            if lib not in ids:
                ids.append(lib)
    return ids


def resolve_libraries(
    modules: Iterable[AddedModuleInstance],
    catalog: CatalogResult,
    settings: FirmwareSettings = FIRMWARE_SETTINGS,
) -> tuple[LibraryDefinition, ...]:
    """Library descriptors the sketch needs.  Unknown ids are dropped."""
    resolved = []
    for lib_id in required_library_ids(modules, catalog, settings):
        lib = catalog.library(lib_id)
        if lib is None:
            log.debug("Dropping unknown library id '%s'", lib_id)
            continue
        resolved.append(lib)
    return tuple(resolved)
