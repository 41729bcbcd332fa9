"""Hardware catalog — load, validate, query, and serialize boards, modules and libraries."""

from .models import (
    PinDefinition, I2CPins, SPIPins, BoardDefinition,
    ModuleDefinition, LibraryDefinition,
    ValidationError, CatalogResult,
    CAPABILITIES, DEFAULT_BOARD_ID, pin_placeholder,
)
from .loader import load_catalog, default_catalog, get_board, get_module, CATALOG_DIR
from .serialization import catalog_to_dict, board_to_dict, module_to_dict, library_to_dict

__all__ = [
    # Models
    "PinDefinition", "I2CPins", "SPIPins", "BoardDefinition",
    "ModuleDefinition", "LibraryDefinition",
    "ValidationError", "CatalogResult",
    "CAPABILITIES", "DEFAULT_BOARD_ID", "pin_placeholder",
    # Loader
    "load_catalog", "default_catalog", "get_board", "get_module", "CATALOG_DIR",
    # Serialization
    "catalog_to_dict", "board_to_dict", "module_to_dict", "library_to_dict",
]
