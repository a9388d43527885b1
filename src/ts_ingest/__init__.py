"""
ts_ingest: bulk import of time-series files into a remote store.

Usage:
    from ts_ingest import Importer, ImportSettings

    settings = ImportSettings(database="metrics", format="csv",
                              measurement="cpu", path="cpu.csv")
    with Importer(settings, column_client=client) as importer:
        result = importer.run()
"""

from .config import ImportSettings, load_settings
from .pipeline import ImportResult, Importer, import_file, setup_logging

__version__ = "0.1.0"

__all__ = [
    "ImportSettings",
    "load_settings",
    "Importer",
    "ImportResult",
    "import_file",
    "setup_logging",
]
