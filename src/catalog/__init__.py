"""Widget catalog — load, validate and serialize catalog/widgets.json."""

from .models import WidgetType, WidgetSize, ValidationError, WidgetCatalog
from .loader import load_catalog, parse_catalog, CATALOG_DIR, CATALOG_FILE
from .serialization import catalog_to_dict, type_to_dict, size_to_dict

__all__ = [
    # Models
    "WidgetType", "WidgetSize", "ValidationError", "WidgetCatalog",
    # Loader
    "load_catalog", "parse_catalog", "CATALOG_DIR", "CATALOG_FILE",
    # Serialization
    "catalog_to_dict", "type_to_dict", "size_to_dict",
]
