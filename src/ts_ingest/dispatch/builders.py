"""
Builders for column-oriented write requests.

A write request carries one Record per measurement. A Record stores its
rows column by column: one timestamp column plus one Column per tag and
per field, with None where a row has no value for that column.

    line = RecordLineBuilder().add_tag("host", "a").add_field("v", "1").build(ts)
    record = RecordBuilder("cpu").add_line(line).build()
    request = (
        registry.get("db", "autogen")
        .authenticate("user", "secret")
        .add_record(record)
        .build()
    )
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from ..ingestion.base import Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordLine:
    """One row of a record before it is pivoted into columns."""

    tags: dict[str, str]
    fields: dict[str, Any]
    timestamp: int


class RecordLineBuilder:
    """Fluent builder for a single RecordLine."""

    def __init__(self):
        self._tags: dict[str, str] = {}
        self._fields: dict[str, Any] = {}

    def add_tag(self, name: str, value: str) -> "RecordLineBuilder":
        self._tags[name] = value
        return self

    def add_field(self, name: str, value: Any) -> "RecordLineBuilder":
        self._fields[name] = value
        return self

    def build(self, timestamp: int) -> RecordLine:
        return RecordLine(
            tags=dict(self._tags), fields=dict(self._fields), timestamp=timestamp
        )

    @classmethod
    def from_point(cls, point: Point) -> RecordLine:
        builder = cls()
        for name, value in point.tags.items():
            builder.add_tag(name, value)
        for name, value in point.fields.items():
            builder.add_field(name, value)
        return builder.build(point.timestamp)


@dataclass
class Column:
    """Values of one tag or field across all rows of a record."""

    name: str
    values: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class Record:
    """Column-oriented block of rows for a single measurement."""

    measurement: str
    timestamps: list[int]
    tags: dict[str, Column]
    fields: dict[str, Column]

    @property
    def row_count(self) -> int:
        return len(self.timestamps)


class RecordBuilder:
    """
    Accumulates rows for one measurement and pivots them into columns.

    Columns first seen after earlier rows are back-filled with None so
    every column has exactly row_count values.
    """

    def __init__(self, measurement: str):
        self.measurement = measurement
        self._lines: list[RecordLine] = []

    def __len__(self) -> int:
        return len(self._lines)

    def add_line(self, line: RecordLine) -> "RecordBuilder":
        self._lines.append(line)
        return self

    def add_point(self, point: Point) -> "RecordBuilder":
        return self.add_line(RecordLineBuilder.from_point(point))

    def build(self) -> Record:
        tags: dict[str, Column] = {}
        fields: dict[str, Column] = {}
        for line in self._lines:
            for name in line.tags:
                tags.setdefault(name, Column(name))
            for name in line.fields:
                fields.setdefault(name, Column(name))

        for line in self._lines:
            for name, column in tags.items():
                column.values.append(line.tags.get(name))
            for name, column in fields.items():
                column.values.append(line.fields.get(name))

        return Record(
            measurement=self.measurement,
            timestamps=[line.timestamp for line in self._lines],
            tags=tags,
            fields=fields,
        )


@dataclass(frozen=True)
class WriteRequest:
    """A built column write request."""

    database: str
    retention_policy: str
    records: tuple[Record, ...]
    username: str = ""
    password: str = ""

    @property
    def row_count(self) -> int:
        return sum(record.row_count for record in self.records)


class WriteRequestBuilder:
    """
    Collects records for one database and retention policy.

    build() hands out the pending records and resets the builder, so one
    builder instance is reused for every batch sent to its target.
    """

    def __init__(self, database: str, retention_policy: str):
        self.database = database
        self.retention_policy = retention_policy
        self.username = ""
        self.password = ""
        self._records: list[Record] = []

    @property
    def pending_count(self) -> int:
        return len(self._records)

    def authenticate(self, username: str, password: str) -> "WriteRequestBuilder":
        self.username = username
        self.password = password
        return self

    def add_record(self, record: Record) -> "WriteRequestBuilder":
        self._records.append(record)
        return self

    def build(self) -> WriteRequest:
        request = WriteRequest(
            database=self.database,
            retention_policy=self.retention_policy,
            records=tuple(self._records),
            username=self.username,
            password=self.password,
        )
        self._records = []
        return request


class BuilderRegistry:
    """
    Keeps one WriteRequestBuilder per "<database>.<retention_policy>".

    Builders are created on first use and live for the whole run.
    """

    def __init__(self):
        self._builders: dict[str, WriteRequestBuilder] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key(database: str, retention_policy: str) -> str:
        return f"{database}.{retention_policy}"

    def get(self, database: str, retention_policy: str) -> WriteRequestBuilder:
        """Return the builder for a target, creating it if needed."""
        key = self.key(database, retention_policy)
        with self._lock:
            builder = self._builders.get(key)
            if builder is None:
                builder = WriteRequestBuilder(database, retention_policy)
                self._builders[key] = builder
                logger.debug(f"Created write request builder for {key}")
            return builder

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._builders)

    def __len__(self) -> int:
        with self._lock:
            return len(self._builders)

    def __contains__(self, key: Optional[str]) -> bool:
        with self._lock:
            return key in self._builders
