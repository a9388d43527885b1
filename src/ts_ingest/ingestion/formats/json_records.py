"""
Shared JSON document handling for the JSON import formats.

Both JSON formats wrap their records in an envelope, e.g.

    {"results": [{"series": [...]}]}        # influx query output
    {"data": {"result": [...]}}             # prometheus query output

The document is decoded once and searched depth-first for the first
array held under the records key.
"""

import json
import logging
from typing import IO, Any, Iterator, Optional

from ..base import ArrayStart
from ..exceptions import ParseError

logger = logging.getLogger(__name__)


def find_records_array(document: Any, key: str) -> Optional[list]:
    """
    Depth-first search for the first list stored under ``key``.

    Returns:
        The records list, or None if the document holds no such array
    """
    stack = [document]
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            value = node.get(key)
            if isinstance(value, list):
                return value
            stack.extend(reversed(list(node.values())))
        elif isinstance(node, list):
            stack.extend(reversed(node))
    return None


def iter_json_records(file_handle: IO[str], key: str) -> Iterator[Any]:
    """
    Yield an ArrayStart marker followed by every record of the array.

    Raises:
        ParseError: If the document is not valid JSON or has no records array
    """
    try:
        document = json.load(file_handle)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"Invalid JSON: {e.msg}", line_number=e.lineno
        ) from e

    records = find_records_array(document, key)
    if records is None:
        raise ParseError(f"no '{key}' array found in JSON document")

    logger.debug(f"Found {len(records)} records under '{key}'")
    yield ArrayStart(key=key)
    yield from records
