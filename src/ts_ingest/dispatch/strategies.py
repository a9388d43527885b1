"""
Write strategies: how a batch reaches the remote store.

RowWriteStrategy sends newline-joined line protocol text through the
row-write client. ColumnWriteStrategy pivots the batch into per
measurement records and sends one column write request per batch.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from ..config.constants import (
    RESPONSE_CODE_FAILURE,
    RESPONSE_CODE_PARTIAL_FAILURE,
    RESPONSE_CODE_SUCCESS,
)
from ..ingestion.base import Point
from ..ingestion.exceptions import WriteResponseError
from ..ingestion.parsers import parse_line
from ..ingestion.values import format_float, parse_number_best_effort
from .builders import BuilderRegistry, RecordBuilder
from .clients import ColumnWriteClient, RowWriteClient, WriteResponse

logger = logging.getLogger(__name__)

TRANSPORT_ROW = "row"
TRANSPORT_COLUMN = "column"

_BOOLEAN_LITERALS = frozenset(
    ["t", "T", "true", "True", "TRUE", "f", "F", "false", "False", "FALSE"]
)


def check_response(response: WriteResponse) -> None:
    """
    Map a column write response code to success or an error.

    Raises:
        WriteResponseError: For any code other than success
    """
    code = response.code
    if code == RESPONSE_CODE_SUCCESS:
        return
    if code == RESPONSE_CODE_PARTIAL_FAILURE:
        raise WriteResponseError(code, "write failed, code: 1, partial write failure")
    if code == RESPONSE_CODE_FAILURE:
        raise WriteResponseError(code, "write failed, code: 2, write failure")
    raise WriteResponseError(code, f"unexpected response code: {code}")


_MEASUREMENT_ESCAPES = str.maketrans({",": "\\,", " ": "\\ "})
_KEY_ESCAPES = str.maketrans({",": "\\,", "=": "\\=", " ": "\\ "})


def _render_field_value(value: Any) -> str:
    """
    Render one field value for the row writer.

    Values kept as literal text are emitted bare when they read as a
    number or boolean and as an escaped quoted string otherwise.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return format_float(value)
    text = str(value)
    if text in _BOOLEAN_LITERALS or parse_number_best_effort(text) is not None:
        return text.strip()
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_point(point: Point) -> str:
    """
    Render a point as one line of line protocol with a ns timestamp.

    Examples:
        >>> format_point(Point("m", {"msg": "hello world"}, {"h": "a b"}, 5))
        'm,h=a\\\\ b msg="hello world" 5'
    """
    head = point.measurement.translate(_MEASUREMENT_ESCAPES)
    for name, value in point.tags.items():
        head += f",{name.translate(_KEY_ESCAPES)}={str(value).translate(_KEY_ESCAPES)}"
    fields = ",".join(
        f"{name.translate(_KEY_ESCAPES)}={_render_field_value(value)}"
        for name, value in point.fields.items()
    )
    return f"{head} {fields} {point.timestamp}"


class WriteStrategy(ABC):
    """Sends one batch of lines or points to a database/retention policy."""

    name: str = ""

    @abstractmethod
    def write_lines(
        self,
        database: str,
        retention_policy: str,
        lines: Sequence[str],
        timeout: Optional[float] = None,
    ) -> None:
        pass

    @abstractmethod
    def write_points(
        self,
        database: str,
        retention_policy: str,
        points: Sequence[Point],
        timeout: Optional[float] = None,
    ) -> None:
        pass


class RowWriteStrategy(WriteStrategy):
    name = TRANSPORT_ROW

    def __init__(self, client: RowWriteClient, precision: str):
        self.client = client
        self.precision = precision

    def write_lines(self, database, retention_policy, lines, timeout=None) -> None:
        self.client.write(
            database, retention_policy, "\n".join(lines), self.precision, timeout=timeout
        )

    def write_points(self, database, retention_policy, points, timeout=None) -> None:
        # Points always carry nanosecond timestamps
        raw = "\n".join(format_point(point) for point in points)
        self.client.write(database, retention_policy, raw, "ns", timeout=timeout)


class ColumnWriteStrategy(WriteStrategy):
    """
    Column write through a cached WriteRequestBuilder per target.

    Raw lines are re-parsed with the line protocol tokenizer, so a
    malformed line fails the whole batch with a ParseError.
    """

    name = TRANSPORT_COLUMN

    def __init__(
        self,
        client: ColumnWriteClient,
        registry: Optional[BuilderRegistry] = None,
        username: str = "",
        password: str = "",
        time_multiplier: int = 1,
    ):
        self.client = client
        self.registry = registry if registry is not None else BuilderRegistry()
        self.username = username
        self.password = password
        self.time_multiplier = time_multiplier

    def write_lines(self, database, retention_policy, lines, timeout=None) -> None:
        points = []
        for line in lines:
            point = parse_line(line, self.time_multiplier)
            if point is not None:
                points.append(point)
        self.write_points(database, retention_policy, points, timeout=timeout)

    def write_points(self, database, retention_policy, points, timeout=None) -> None:
        records: dict[str, RecordBuilder] = {}
        for point in points:
            if point.measurement not in records:
                records[point.measurement] = RecordBuilder(point.measurement)
            records[point.measurement].add_point(point)

        builder = self.registry.get(database, retention_policy)
        builder.authenticate(self.username, self.password)
        for record_builder in records.values():
            builder.add_record(record_builder.build())
        request = builder.build()

        logger.debug(
            f"Sending column write: {len(request.records)} records, "
            f"{request.row_count} rows to {database}.{retention_policy}"
        )
        check_response(self.client.write(request, timeout=timeout))
