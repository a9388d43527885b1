"""
JSON-Prom import format.

Reads the output of a prometheus range or instant query:

    {"status": "success",
     "data": {"resultType": "matrix", "result": [
        {"metric": {"instance": "a", "job": "node"},
         "values": [[1435781430.781, "1"], [1435781445.781, "1"]]}
     ]}}

Each sample becomes one line protocol line under the configured
measurement, with a single field holding the sample value.
"""

import logging
from typing import IO, Any, Iterator

from ...config.constants import DEFAULT_PROM_FIELD
from ...config.settings import ImportSettings
from ..base import (
    NO_OP,
    Action,
    ArrayStart,
    EnqueueLines,
    FieldPos,
    ImportContext,
    ImportFormat,
)
from ..exceptions import HeaderError, ParseError
from ..registry import FormatRegistry
from ..values import format_field_value, format_float, to_field_value
from .json_influx import start_json_import
from .json_records import iter_json_records

logger = logging.getLogger(__name__)

RESULT_KEY = "result"


def _format_sample_value(value: Any) -> str:
    # Prometheus encodes sample values as strings ("1.5", "NaN")
    if isinstance(value, str):
        return value
    return format_field_value(to_field_value(value))


def _format_sample_time(value: Any) -> str:
    try:
        return format_float(float(value))
    except (TypeError, ValueError) as e:
        raise ParseError(f"invalid sample timestamp: {value!r}") from e


@FormatRegistry.register("jsonp")
class JSONPromFormat(ImportFormat):
    """Import format for prometheus query results, written as row lines."""

    forced_transport = "row"

    @property
    def format_name(self) -> str:
        return "jsonp"

    def read_units(self, file_handle: IO[str]) -> Iterator[Any]:
        return iter_json_records(file_handle, RESULT_KEY)

    def process(
        self,
        unit: Any,
        context: ImportContext,
        settings: ImportSettings,
    ) -> Action:
        if isinstance(unit, ArrayStart):
            if not settings.measurement:
                raise HeaderError("measurement is required", "measurement")
            # Only the first configured field carries the sample value
            field_name = (settings.fields or [DEFAULT_PROM_FIELD])[0]
            action = start_json_import(context, settings)
            context.reset_columns()
            context.field_map[field_name] = FieldPos(field_name, 1)
            return action

        if not isinstance(unit, dict):
            raise ParseError(f"result record must be an object, got {type(unit).__name__}")

        metric = unit.get("metric") or {}
        if settings.tags:
            tags = [(name, metric.get(name, "")) for name in settings.tags]
        else:
            tags = list(metric.items())

        head = context.measurement
        for key, value in tags:
            head += f",{key}={value}"

        if "values" in unit:
            samples = unit["values"] or []
        elif "value" in unit:
            samples = [unit["value"]]
        else:
            samples = []

        field_name = next(iter(context.field_map))
        lines = []
        for sample in samples:
            if not isinstance(sample, list) or len(sample) < 2:
                raise ParseError(f"sample must be a [time, value] pair: {sample!r}")
            lines.append(
                f"{head} {field_name}={_format_sample_value(sample[1])} "
                f"{_format_sample_time(sample[0])}"
            )

        if not lines:
            return NO_OP
        return EnqueueLines(lines=tuple(lines))
