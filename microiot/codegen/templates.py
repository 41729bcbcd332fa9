"""Placeholder rendering for catalog source fragments.

Fragments carry ``{{NAME}}`` tokens.  The substitution map is built up
front from the instance (``ID``, ``PIN_i``) and its definition (``FIELD``);
whole tokens are replaced and anything left over is an error.
"""

from __future__ import annotations

from microiot.catalog.models import PLACEHOLDER_RE, ModuleDefinition
from microiot.errors import TemplateError
from microiot.project.models import AddedModuleInstance


def placeholder_values(definition: ModuleDefinition, instance: AddedModuleInstance) -> dict[str, str]:
    values = {"ID": instance.short_id}
    if definition.telemetry_field:
        values["FIELD"] = definition.telemetry_field
    for placeholder, gpio in instance.allocated_pins:
        values[placeholder] = str(gpio)
    return values


def render_fragment(
    template: str,
    values: dict[str, str],
    *,
    module_id: str = "",
    fragment: str = "",
) -> str:
    """Substitute every token in ``template``; raise TemplateError on leftovers."""
    unresolved: list[str] = []

    def _sub(match) -> str:
        name = match.group(1)
        if name in values:
            return values[name]
        if name not in unresolved:
            unresolved.append(name)
        return match.group(0)

    rendered = PLACEHOLDER_RE.sub(_sub, template)
    if unresolved:
        raise TemplateError(module_id, fragment, unresolved)
    return rendered
