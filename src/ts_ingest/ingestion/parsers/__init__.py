"""
Text parsers for import formats.

Provides the line protocol tokenizer shared by the line protocol format
and the column-write strategy, which re-parses batches of raw lines.

Usage:
    from ts_ingest.ingestion.parsers import LineProtocolParser, parse_line

    point = parse_line("cpu,host=a usage=0.5 1700000000000000000")
    points = LineProtocolParser(text).parse()
"""

from .line_protocol import (
    CharClass,
    Effect,
    LineProtocolParser,
    TokenState,
    Transition,
    classify,
    parse_line,
    transition_for,
)

__all__ = [
    "CharClass",
    "Effect",
    "LineProtocolParser",
    "TokenState",
    "Transition",
    "classify",
    "parse_line",
    "transition_for",
]
