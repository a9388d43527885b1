"""
JSON-Influx import format.

Reads the output of an influx query:

    {"results": [{"series": [
        {"name": "cpu",
         "tags": {"host": "a"},
         "columns": ["time", "usage"],
         "values": [["2020-01-01T00:00:00Z", 0.5]]}
    ]}]}

Each series re-derives its own column mapping and yields one line
protocol line per value row.
"""

import logging
from typing import IO, Any, Iterator

from ...config.constants import COLUMN_NAME_TIME, DEFAULT_RETENTION_POLICY
from ...config.settings import ImportSettings
from ..base import (
    NO_OP,
    Action,
    ArrayStart,
    EnqueueLines,
    ExecuteQuery,
    FieldPos,
    ImportContext,
    ImportFormat,
    ImportPhase,
)
from ..exceptions import ParseError
from ..registry import FormatRegistry
from ..values import format_field_value, format_timestamp_value, to_field_value
from .json_records import iter_json_records

logger = logging.getLogger(__name__)

SERIES_KEY = "series"


def start_json_import(context: ImportContext, settings: ImportSettings) -> Action:
    """Header step shared by the JSON formats: target from settings, DDL to DML."""
    context.database = settings.database
    context.retention_policy = settings.retention_policy or DEFAULT_RETENTION_POLICY
    context.measurement = settings.measurement
    context.phase = ImportPhase.DML
    if not context.database:
        return NO_OP
    return ExecuteQuery(command=f"CREATE DATABASE {context.database}")


def _cell_value(row: list, pos: FieldPos) -> Any:
    if 0 <= pos.pos < len(row):
        return row[pos.pos]
    return None


@FormatRegistry.register("jsoni")
class JSONInfluxFormat(ImportFormat):
    """Import format for influx query results, written as row lines."""

    forced_transport = "row"

    @property
    def format_name(self) -> str:
        return "jsoni"

    def read_units(self, file_handle: IO[str]) -> Iterator[Any]:
        return iter_json_records(file_handle, SERIES_KEY)

    def process(
        self,
        unit: Any,
        context: ImportContext,
        settings: ImportSettings,
    ) -> Action:
        if isinstance(unit, ArrayStart):
            return start_json_import(context, settings)

        if not isinstance(unit, dict):
            raise ParseError(f"series record must be an object, got {type(unit).__name__}")

        measurement = unit.get("name") or context.measurement
        if not measurement:
            raise ParseError("measurement is required")

        self._map_columns(unit.get("columns") or [], context)
        if not context.field_map:
            raise ParseError("no fields input", line_content=measurement)

        head = measurement
        for key, value in (unit.get("tags") or {}).items():
            head += f",{key}={value}"

        lines = []
        for row in unit.get("values") or []:
            if not isinstance(row, list):
                raise ParseError(f"series value row must be an array: {row!r}")
            lines.append(self._format_row(head, row, context, settings))

        if not lines:
            return NO_OP
        return EnqueueLines(lines=tuple(lines))

    def _map_columns(self, columns: list, context: ImportContext) -> None:
        context.reset_columns()
        for pos, name in enumerate(columns):
            name = str(name)
            if name == COLUMN_NAME_TIME:
                context.time_field = FieldPos(name, pos)
            else:
                context.field_map[name] = FieldPos(name, pos)

    def _format_row(
        self,
        head: str,
        row: list,
        context: ImportContext,
        settings: ImportSettings,
    ) -> str:
        fields = ",".join(
            f"{name}={format_field_value(to_field_value(_cell_value(row, pos)))}"
            for name, pos in context.field_map.items()
        )
        line = f"{head} {fields}"

        if context.time_field.is_resolved:
            timestamp = format_timestamp_value(
                to_field_value(_cell_value(row, context.time_field)),
                settings.time_multiplier,
            )
            if timestamp:
                line += f" {timestamp}"
        return line
