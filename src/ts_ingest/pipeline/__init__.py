"""Import pipeline: drives formats through the dispatcher."""

from .importer import ImportResult, Importer, import_file, setup_logging

__all__ = [
    "Importer",
    "ImportResult",
    "import_file",
    "setup_logging",
]
