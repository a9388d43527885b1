"""
Line protocol import format.

A line protocol import file mixes directive lines with data:

    # DDL
    CREATE DATABASE NOAA_water_database

    # DML
    # CONTEXT-DATABASE: NOAA_water_database
    # CONTEXT-RETENTION-POLICY: autogen
    h2o_feet,location=coyote_creek water_level=8.12 1566000000000000000

In the DDL phase every non-blank line is a query command. In the DML
phase every data line is buffered verbatim for the row or column writer.
"""

import logging
from typing import IO, Iterator

from ...config.constants import (
    DEFAULT_RETENTION_POLICY,
    TOKEN_DATABASE,
    TOKEN_DDL,
    TOKEN_DML,
    TOKEN_RETENTION_POLICY,
)
from ...config.settings import ImportSettings
from ..base import (
    NO_OP,
    Action,
    EnqueueLines,
    ExecuteQuery,
    ImportContext,
    ImportFormat,
    ImportPhase,
)
from ..registry import FormatRegistry

logger = logging.getLogger(__name__)


def _directive_value(line: str) -> str:
    """Value after the first ':' of a directive line."""
    return line.partition(":")[2].strip()


@FormatRegistry.register("line_protocol")
class LineProtocolFormat(ImportFormat):
    """
    Import format for line protocol text with schema directives.

    Recognized directives:
        # DDL                          enter the schema-definition phase
        # DML                          enter the data phase (rp = autogen)
        # CONTEXT-DATABASE:<name>      target database
        # CONTEXT-RETENTION-POLICY:<n> target retention policy

    Any other line starting with '#' is a comment.
    """

    @property
    def format_name(self) -> str:
        return "line_protocol"

    def read_units(self, file_handle: IO[str]) -> Iterator[str]:
        for line in file_handle:
            yield line.rstrip("\r\n")

    def process(
        self,
        unit: str,
        context: ImportContext,
        settings: ImportSettings,
    ) -> Action:
        if unit.startswith(TOKEN_DDL):
            context.phase = ImportPhase.DDL
            return NO_OP
        if unit.startswith(TOKEN_DML):
            context.phase = ImportPhase.DML
            context.retention_policy = DEFAULT_RETENTION_POLICY
            return NO_OP
        if unit.startswith(TOKEN_DATABASE):
            context.database = _directive_value(unit)
            logger.debug(f"Context database set to '{context.database}'")
            return NO_OP
        if unit.startswith(TOKEN_RETENTION_POLICY):
            context.retention_policy = _directive_value(unit)
            logger.debug(
                f"Context retention policy set to '{context.retention_policy}'"
            )
            return NO_OP

        data = unit.strip()
        if not data or data.startswith("#"):
            return NO_OP

        if context.phase is ImportPhase.DDL:
            return ExecuteQuery(command=data)
        return EnqueueLines(lines=(data,))
