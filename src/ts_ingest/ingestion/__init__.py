"""
Ingestion layer: input formats and the import state machine.

Converts line protocol, CSV, JSON-Influx and JSON-Prom input into
canonical points or raw protocol lines, one unit at a time.

Usage:
    from ts_ingest.ingestion import ImportContext, get_format

    import_format = get_format('csv')
    context = ImportContext()

    with open_import_file('metrics.csv') as f:
        for unit in import_format.read_units(f):
            action = import_format.process(unit, context, settings)
"""

from .base import (
    NO_OP,
    Action,
    ArrayStart,
    EnqueueLines,
    EnqueuePoints,
    ExecuteQuery,
    FieldPos,
    ImportContext,
    ImportFormat,
    ImportPhase,
    NoOp,
    Point,
    now_ns,
)
from .exceptions import (
    ConfigurationError,
    DatabaseRequiredError,
    DrainError,
    FormatNotFoundError,
    HeaderError,
    ImportCancelledError,
    IngestionError,
    ParseError,
    TransportError,
    WriteResponseError,
)
from .file_utils import open_import_file
from .registry import FormatRegistry, get_format, list_formats

# Register built-in formats
from . import formats  # noqa: F401, E402

__all__ = [
    # Data model
    "Point",
    "FieldPos",
    "ImportContext",
    "ImportPhase",
    "ImportFormat",
    "ArrayStart",
    "now_ns",
    # Actions
    "Action",
    "NoOp",
    "NO_OP",
    "ExecuteQuery",
    "EnqueueLines",
    "EnqueuePoints",
    # Registry
    "FormatRegistry",
    "get_format",
    "list_formats",
    # Files
    "open_import_file",
    # Exceptions
    "IngestionError",
    "ParseError",
    "ConfigurationError",
    "HeaderError",
    "DatabaseRequiredError",
    "FormatNotFoundError",
    "TransportError",
    "WriteResponseError",
    "ImportCancelledError",
    "DrainError",
]
