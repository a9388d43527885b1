"""
Abstract base class and data models for import formats.

Provides the canonical point model, the per-file import context, the
action values emitted by the import state machine, and the interface
every input format implements.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any, Iterator, Optional, Union

from ..config.settings import ImportSettings


def now_ns() -> int:
    """Current wall-clock time as nanoseconds since the epoch."""
    return time.time_ns()


@dataclass(frozen=True)
class Point:
    """
    Canonical time-series record.

    Attributes:
        measurement: Measurement name (non-empty)
        tags: Tag name to string value
        fields: Field name to scalar value (str, int, float or bool);
                at least one entry
        timestamp: Nanosecond epoch timestamp
    """

    measurement: str
    fields: dict[str, Any]
    tags: dict[str, str] = field(default_factory=dict)
    timestamp: int = field(default_factory=now_ns)

    def __post_init__(self):
        """Validate the point once, at construction."""
        from .exceptions import ParseError

        if not self.measurement:
            raise ParseError("measurement is required")
        if not self.fields:
            raise ParseError("no fields input")


@dataclass(frozen=True)
class FieldPos:
    """Position of a named column within a structured header."""

    name: str = ""
    pos: int = -1

    @property
    def is_resolved(self) -> bool:
        """True once the column was found in a header."""
        return self.name != "" and self.pos >= 0


class ImportPhase(Enum):
    """Phase of the import state machine."""

    DDL = "ddl"  # Schema definition: units are queries or headers
    DML = "dml"  # Data: units are records


@dataclass
class ImportContext:
    """
    Per-file schema context for an import run.

    Mutated by directive lines and structured headers. Different formats
    fill different pending buffers: line-oriented formats accumulate raw
    protocol lines, CSV accumulates typed points.
    """

    phase: ImportPhase = ImportPhase.DDL
    database: str = ""
    retention_policy: str = ""
    measurement: str = ""
    tag_map: dict[str, FieldPos] = field(default_factory=dict)
    field_map: dict[str, FieldPos] = field(default_factory=dict)
    time_field: FieldPos = field(default_factory=FieldPos)
    pending_lines: list[str] = field(default_factory=list)
    pending_points: list[Point] = field(default_factory=list)
    # (database, retention_policy) the pending buffers were filled under
    pending_target: Optional[tuple[str, str]] = None

    @property
    def builder_key(self) -> str:
        """Write-request-builder registry key for the current target."""
        return f"{self.database}.{self.retention_policy}"

    @property
    def target(self) -> tuple[str, str]:
        """Current (database, retention_policy) write target."""
        return (self.database, self.retention_policy)

    @property
    def has_pending(self) -> bool:
        """True if either pending buffer holds data."""
        return bool(self.pending_lines) or bool(self.pending_points)

    def reset_columns(self) -> None:
        """Forget the tag/field/time column mapping."""
        self.tag_map = {}
        self.field_map = {}
        self.time_field = FieldPos()


# =============================================================================
# State Machine Actions
# =============================================================================


@dataclass(frozen=True)
class NoOp:
    """The unit only changed context (or was ignored)."""


@dataclass(frozen=True)
class ExecuteQuery:
    """Run a query (DDL) command through the query collaborator."""

    command: str


@dataclass(frozen=True)
class EnqueueLines:
    """Append raw protocol lines to the pending line buffer."""

    lines: tuple[str, ...]


@dataclass(frozen=True)
class EnqueuePoints:
    """Append typed points to the pending point buffer."""

    points: tuple[Point, ...]


Action = Union[NoOp, ExecuteQuery, EnqueueLines, EnqueuePoints]

NO_OP = NoOp()


@dataclass(frozen=True)
class ArrayStart:
    """Marks the start of the records array inside a JSON document."""

    key: str


# =============================================================================
# Format Interface
# =============================================================================


class ImportFormat(ABC):
    """
    Abstract base class for all import formats.

    Each format reads its native units (a text line, a CSV row, a JSON
    record) from a stream and steps the import state machine for each one.
    Stepping never performs I/O: it mutates the ImportContext and returns
    an action for the driver to interpret.

    Subclasses must implement:
        - format_name: Property returning the format identifier
        - read_units(): Generator yielding native units from a stream
        - process(): One state machine step for one unit

    Example Implementation:
        @FormatRegistry.register('csv')
        class CSVFormat(ImportFormat):
            @property
            def format_name(self) -> str:
                return 'csv'

            def read_units(self, file_handle):
                yield from csv.reader(file_handle)

            def process(self, unit, context, settings):
                ...
                return EnqueuePoints(points=(point,))
    """

    # Transport this format is restricted to ("row", "column"), if any
    forced_transport: Optional[str] = None

    @property
    @abstractmethod
    def format_name(self) -> str:
        """
        Return the format name identifier.

        This is used for registry lookup and logging.
        """
        pass

    @abstractmethod
    def read_units(self, file_handle: IO[str]) -> Iterator[Any]:
        """
        Read native units from an open text stream.

        Args:
            file_handle: Open file handle (text mode)

        Yields:
            One unit per call of process()

        Raises:
            ParseError: If the stream as a whole cannot be read
        """
        pass

    @abstractmethod
    def process(
        self,
        unit: Any,
        context: ImportContext,
        settings: ImportSettings,
    ) -> Action:
        """
        Step the import state machine for one unit.

        Args:
            unit: A unit produced by read_units()
            context: Per-file import context (mutated in place)
            settings: Import settings

        Returns:
            Action describing the side effect the driver must perform

        Raises:
            ParseError: If the unit is malformed
            HeaderError: If a header cannot be mapped (fatal)
            ConfigurationError: If required context is missing
        """
        pass
