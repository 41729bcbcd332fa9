"""Exception hierarchy shared by the allocator, orchestrator and code generator.

Every error here is local and recoverable: callers report it and keep the
previous project state.
"""

from __future__ import annotations


class MicroIoTError(Exception):
    """Base class for all microiot errors."""


class CatalogError(MicroIoTError):
    """Raised by a strict catalog load when validation errors are present."""

    def __init__(self, errors: list) -> None:
        self.errors = list(errors)
        preview = "; ".join(str(e) for e in self.errors[:5])
        more = f" (+{len(self.errors) - 5} more)" if len(self.errors) > 5 else ""
        super().__init__(f"Catalog has {len(self.errors)} error(s): {preview}{more}")


class UnknownModuleError(MicroIoTError):
    """Raised when a module or instance id is not known."""

    def __init__(self, module_id: str) -> None:
        self.module_id = module_id
        super().__init__(f"Module definition '{module_id}' not found")


class AllocationError(MicroIoTError):
    """Raised when a module cannot be given the pins it needs."""


class AllocationExhausted(AllocationError):
    """No free pin carries the requested capability."""

    def __init__(self, capability: str, module_id: str = "") -> None:
        self.capability = capability
        self.module_id = module_id
        target = f" for '{module_id}'" if module_id else ""
        super().__init__(f"Not enough '{capability}' pins available{target}!")


class TemplateError(MicroIoTError):
    """A catalog fragment still holds placeholders after substitution."""

    def __init__(self, module_id: str, fragment: str, unresolved: list[str]) -> None:
        self.module_id = module_id
        self.fragment = fragment
        self.unresolved = list(unresolved)
        tokens = ", ".join("{{%s}}" % t for t in self.unresolved)
        super().__init__(f"Module '{module_id}' {fragment}: unresolved placeholder(s) {tokens}")


class IdentityError(MicroIoTError):
    """The identity issuer could not produce a token."""
