"""
Import formats.

Importing this package registers every built-in format with the
FormatRegistry:

    line_protocol  - line protocol with DDL/DML directives
    csv            - header row plus data rows
    jsoni          - influx query results
    jsonp          - prometheus query results
"""

from .csv_format import CSVFormat, parse_csv_timestamp, resolve_header
from .json_influx import JSONInfluxFormat
from .json_prom import JSONPromFormat
from .json_records import find_records_array, iter_json_records
from .line_protocol import LineProtocolFormat

__all__ = [
    "CSVFormat",
    "JSONInfluxFormat",
    "JSONPromFormat",
    "LineProtocolFormat",
    "find_records_array",
    "iter_json_records",
    "parse_csv_timestamp",
    "resolve_header",
]
