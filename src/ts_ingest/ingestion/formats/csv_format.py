"""
CSV import format.

The first non-comment row is the header. It is mapped once against the
configured tag, field and time column names; every following row is
turned into a Point by position.
"""

import csv
import logging
from typing import IO, Iterator

from ...config.constants import DEFAULT_RETENTION_POLICY
from ...config.settings import ImportSettings
from ..base import (
    NO_OP,
    Action,
    EnqueuePoints,
    ExecuteQuery,
    FieldPos,
    ImportContext,
    ImportFormat,
    ImportPhase,
    Point,
    now_ns,
)
from ..exceptions import HeaderError, ParseError
from ..registry import FormatRegistry
from ..values import parse_number_best_effort, parse_rfc3339, scale_timestamp

logger = logging.getLogger(__name__)


def _skip_comments(file_handle: IO[str]) -> Iterator[str]:
    for line in file_handle:
        if line.lstrip().startswith("#"):
            continue
        yield line


def resolve_header(
    header: list[str],
    settings: ImportSettings,
) -> tuple[dict[str, FieldPos], dict[str, FieldPos], FieldPos]:
    """
    Map a CSV header onto the configured tag, field and time columns.

    Columns that are neither tags nor the time column become fields when
    no field list is configured; otherwise they are ignored.

    Args:
        header: Header cells, BOM already stripped
        settings: Import settings holding tags, fields and time_field

    Returns:
        Tuple of (tag_map, field_map, time_field)

    Raises:
        HeaderError: If a configured name is missing from the header,
            claimed as both tag and field, or the time column is absent
    """
    positions: dict[str, int] = {}
    for pos, name in enumerate(header):
        positions.setdefault(name, pos)

    for name in settings.tags:
        if name in settings.fields:
            raise HeaderError(f"{name} is in both tags and fields", name)

    tag_map: dict[str, FieldPos] = {}
    for name in settings.tags:
        if name not in positions:
            raise HeaderError(f"tag name ({name}) not in csv header", name)
        tag_map[name] = FieldPos(name, positions[name])

    field_map: dict[str, FieldPos] = {}
    for name in settings.fields:
        if name not in positions:
            raise HeaderError(f"field name ({name}) not in csv header", name)
        field_map[name] = FieldPos(name, positions[name])

    time_name = settings.time_field
    if time_name not in positions:
        raise HeaderError(f"time name not in csv header {time_name}", time_name)
    time_field = FieldPos(time_name, positions[time_name])

    for name, pos in positions.items():
        if name in tag_map or name in field_map or name == time_name:
            continue
        if settings.fields:
            logger.warning(f"ignore column name: {name}")
            continue
        field_map[name] = FieldPos(name, pos)

    return tag_map, field_map, time_field


def parse_csv_timestamp(value: str, time_multiplier: int) -> int:
    """
    Convert a time cell to nanoseconds.

    Numbers are taken in the configured precision and scaled. Otherwise
    the cell must be RFC3339; anything else falls back to the wall clock.
    """
    number = parse_number_best_effort(value)
    if number is not None:
        return scale_timestamp(number, time_multiplier)
    ns = parse_rfc3339(value)
    if ns is not None:
        return ns
    logger.debug(f"Unparseable time value {value!r}, using current time")
    return now_ns()


def _cell(row: list[str], pos: FieldPos) -> str:
    if pos.pos >= len(row):
        raise ParseError(
            f"row has {len(row)} columns, column {pos.name!r} "
            f"expected at position {pos.pos}",
            line_content=",".join(row),
        )
    return row[pos.pos]


@FormatRegistry.register("csv")
class CSVFormat(ImportFormat):
    """
    Import format for comma-separated files with a header row.

    Lines starting with '#' are comments. Rows are written as typed
    points through the column-write transport.
    """

    forced_transport = "column"

    def __init__(self, delimiter: str = ",", quotechar: str = '"'):
        self.delimiter = delimiter
        self.quotechar = quotechar

    @property
    def format_name(self) -> str:
        return "csv"

    def read_units(self, file_handle: IO[str]) -> Iterator[list[str]]:
        reader = csv.reader(
            _skip_comments(file_handle),
            delimiter=self.delimiter,
            quotechar=self.quotechar,
        )
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                logger.warning(f"Skipping unreadable CSV row {reader.line_num}: {e}")
                continue
            yield row

    def process(
        self,
        unit: list[str],
        context: ImportContext,
        settings: ImportSettings,
    ) -> Action:
        if context.phase is ImportPhase.DDL:
            return self._process_header(unit, context, settings)

        if not unit or all(cell.strip() == "" for cell in unit):
            return NO_OP

        tags = {name: _cell(unit, pos) for name, pos in context.tag_map.items()}
        fields = {name: _cell(unit, pos) for name, pos in context.field_map.items()}
        timestamp = parse_csv_timestamp(
            _cell(unit, context.time_field), settings.time_multiplier
        )
        point = Point(
            measurement=context.measurement,
            tags=tags,
            fields=fields,
            timestamp=timestamp,
        )
        return EnqueuePoints(points=(point,))

    def _process_header(
        self,
        header: list[str],
        context: ImportContext,
        settings: ImportSettings,
    ) -> Action:
        header = list(header)
        if header and header[0].startswith("\ufeff"):
            header[0] = header[0].lstrip("\ufeff")

        if not settings.measurement:
            raise HeaderError("measurement is required", "measurement")

        tag_map, field_map, time_field = resolve_header(header, settings)
        if not field_map:
            raise HeaderError("no fields input")

        context.tag_map = tag_map
        context.field_map = field_map
        context.time_field = time_field
        context.measurement = settings.measurement
        context.database = settings.database
        context.retention_policy = (
            settings.retention_policy or DEFAULT_RETENTION_POLICY
        )
        context.phase = ImportPhase.DML
        logger.info(
            f"parse header success: tags={list(tag_map)}, "
            f"fields={list(field_map)}, time={time_field.name}"
        )

        if not context.database:
            return NO_OP
        return ExecuteQuery(command=f"CREATE DATABASE {context.database}")
