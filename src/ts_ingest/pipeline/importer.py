"""
Import driver.

Reads an input file unit by unit, steps the format's state machine and
interprets the returned actions:

    ExecuteQuery   -> query client (DDL)
    EnqueueLines   -> dispatcher line buffer
    EnqueuePoints  -> dispatcher point buffer
    NoOp           -> nothing

Per-unit failures are logged and the import continues. A failed batch is
dead-lettered by the dispatcher and reported without failing a unit. A
header error aborts the import; cancellation aborts the file without a
final drain. Any other unexpected error still drains pending records
before it propagates.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Callable, Optional, Sequence, Union

from ..config.settings import ImportSettings
from ..dispatch.cancellation import CancellationToken
from ..dispatch.clients import ColumnWriteClient, QueryClient, RowWriteClient
from ..dispatch.dispatcher import BatchDispatcher, FailedBatch
from ..dispatch.http_client import HttpClient
from ..dispatch.strategies import TRANSPORT_COLUMN, TRANSPORT_ROW
from ..ingestion import formats  # noqa: F401
from ..ingestion.base import (
    Action,
    EnqueueLines,
    EnqueuePoints,
    ExecuteQuery,
    ImportContext,
    ImportFormat,
)
from ..ingestion.exceptions import (
    DatabaseRequiredError,
    DrainError,
    HeaderError,
    ImportCancelledError,
    IngestionError,
    ParseError,
)
from ..ingestion.file_utils import open_import_file
from ..ingestion.registry import get_format

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging for programs embedding the importer."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@dataclass
class ImportResult:
    """Result of importing one file."""

    format_name: str
    path: Optional[str] = None
    success: bool = False
    cancelled: bool = False
    transport: str = ""
    started_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
    completed_at: Optional[datetime] = None
    # Stats
    units_processed: int = 0
    units_skipped: int = 0
    units_failed: int = 0
    queries_executed: int = 0
    records_written: int = 0
    records_failed: int = 0
    batches_failed: int = 0
    flushes: int = 0
    # Errors
    errors: list[str] = field(default_factory=list)
    failed_batches: list[FailedBatch] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get import duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "success": self.success,
            "cancelled": self.cancelled,
            "format": self.format_name,
            "path": self.path,
            "transport": self.transport,
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "duration_seconds": self.duration_seconds,
            "units_processed": self.units_processed,
            "units_skipped": self.units_skipped,
            "units_failed": self.units_failed,
            "queries_executed": self.queries_executed,
            "records_written": self.records_written,
            "records_failed": self.records_failed,
            "batches_failed": self.batches_failed,
            "flushes": self.flushes,
            "failed_batches": len(self.failed_batches),
            "errors": self.errors,
        }


class Importer:
    """
    Imports files into the remote store.

    Clients that are not passed in are served by an HttpClient built from
    the settings, which the importer owns and closes.

    Usage:
        with Importer(settings) as importer:
            result = importer.run("metrics.txt")
        print(result.to_dict())
    """

    def __init__(
        self,
        settings: ImportSettings,
        query_client: Optional[QueryClient] = None,
        row_client: Optional[RowWriteClient] = None,
        column_client: Optional[ColumnWriteClient] = None,
        token: Optional[CancellationToken] = None,
        import_format: Optional[ImportFormat] = None,
    ):
        """
        Initialize the importer.

        Args:
            settings: Import settings
            query_client: Client for DDL commands
            row_client: Client for row writes
            column_client: Client for column writes (required for csv or
                column_write imports)
            token: Cancellation token shared with the dispatcher
            import_format: Format instance; looked up from settings.format
                if not given
        """
        self.settings = settings
        self.token = token or CancellationToken()
        self.import_format = import_format or get_format(settings.format)

        self._http: Optional[HttpClient] = None
        if query_client is None or row_client is None:
            self._http = HttpClient.from_settings(settings)
        self.query_client = query_client or self._http
        self.row_client = row_client or self._http
        self.column_client = column_client

    def close(self) -> None:
        """Close the owned HTTP client, if any."""
        if self._http is not None:
            self._http.close()
            self._http = None

    def __enter__(self) -> "Importer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def transport(self) -> str:
        """Transport for this import: forced by the format or from settings."""
        if self.import_format.forced_transport:
            return self.import_format.forced_transport
        return TRANSPORT_COLUMN if self.settings.column_write else TRANSPORT_ROW

    def run(self, path: Optional[Union[str, Path]] = None) -> ImportResult:
        """
        Import a file.

        Args:
            path: Input file (settings.path if None); gzip is detected

        Returns:
            ImportResult with statistics

        Raises:
            HeaderError: If a structured header cannot be mapped
            ConfigurationError: If no client exists for the transport
        """
        path = str(path or self.settings.path)
        logger.info(f"Importing {path} as {self.import_format.format_name}")
        with open_import_file(path) as file_handle:
            return self.import_stream(file_handle, path=path)

    def import_stream(
        self, file_handle: IO[str], path: Optional[str] = None
    ) -> ImportResult:
        """Import from an open text stream."""
        result = ImportResult(
            format_name=self.import_format.format_name,
            path=path,
            transport=self.transport,
        )
        dispatcher = BatchDispatcher.from_settings(
            self.settings,
            self.transport,
            row_client=self.row_client,
            column_client=self.column_client,
            token=self.token,
        )
        context = ImportContext()

        try:
            try:
                self._process_units(file_handle, context, dispatcher, result)
            except (HeaderError, ImportCancelledError):
                raise
            except Exception:
                logger.exception(
                    f"Import of {path or 'input'} stopped unexpectedly; "
                    f"flushing pending records"
                )
                self._drain(context, dispatcher, result)
                raise
            self._drain(context, dispatcher, result)
        except ImportCancelledError as e:
            result.cancelled = True
            result.errors.append(str(e))
            logger.error(
                f"Import cancelled: {e}; dropped {len(context.pending_lines)} lines "
                f"and {len(context.pending_points)} points still pending"
            )

        result.records_written = dispatcher.stats.records_written
        result.records_failed = dispatcher.stats.records_failed
        result.batches_failed = dispatcher.stats.batches_failed
        result.flushes = dispatcher.stats.flushes
        result.failed_batches = list(dispatcher.failed_batches)
        result.success = not result.errors and not result.cancelled
        result.completed_at = datetime.now().astimezone()

        logger.info(
            f"process finished: {result.units_processed} units, "
            f"{result.records_written} records written, "
            f"{result.records_failed} failed in {result.duration_seconds:.2f}s"
        )
        return result

    def _process_units(
        self,
        file_handle: IO[str],
        context: ImportContext,
        dispatcher: BatchDispatcher,
        result: ImportResult,
    ) -> None:
        try:
            for unit in self.import_format.read_units(file_handle):
                result.units_processed += 1
                try:
                    action = self.import_format.process(unit, context, self.settings)
                    self._apply(action, context, dispatcher, result)
                except (HeaderError, ImportCancelledError):
                    raise
                except IngestionError as e:
                    result.units_failed += 1
                    result.errors.append(str(e))
                    logger.error(f"Failed to import unit {result.units_processed}: {e}")
        except ParseError as e:
            # The stream itself could not be read (e.g. invalid JSON)
            result.errors.append(str(e))
            logger.error(f"Failed to read {result.path or 'input'}: {e}")

    def _apply(
        self,
        action: Action,
        context: ImportContext,
        dispatcher: BatchDispatcher,
        result: ImportResult,
    ) -> None:
        if isinstance(action, ExecuteQuery):
            self.token.check()
            self.query_client.query(action.command, timeout=self.token.remaining())
            result.queries_executed += 1
            logger.info(f"execute ddl success: {action.command}")
        elif isinstance(action, EnqueueLines):
            if not context.database:
                raise DatabaseRequiredError()
            self._enqueue(dispatcher.add_lines, context, action.lines, result)
        elif isinstance(action, EnqueuePoints):
            if not context.database:
                raise DatabaseRequiredError()
            self._enqueue(dispatcher.add_points, context, action.points, result)
        else:
            result.units_skipped += 1

    def _enqueue(
        self,
        add: Callable[[ImportContext, Sequence[Any]], None],
        context: ImportContext,
        records: Sequence[Any],
        result: ImportResult,
    ) -> None:
        # The unit is buffered even when a flush fails; the failed batch is
        # on the dead-letter list, so it is not counted as a failed unit
        try:
            add(context, records)
        except ImportCancelledError:
            raise
        except DrainError as e:
            result.errors.extend(str(error) for error in e.errors)
        except IngestionError as e:
            result.errors.append(str(e))

    def _drain(
        self,
        context: ImportContext,
        dispatcher: BatchDispatcher,
        result: ImportResult,
    ) -> None:
        try:
            dispatcher.drain(context)
        except DrainError as e:
            result.errors.extend(str(error) for error in e.errors)
            logger.error(f"Final flush failed: {e}")


def import_file(
    settings: ImportSettings,
    path: Optional[Union[str, Path]] = None,
    **clients,
) -> ImportResult:
    """
    Import one file with a short-lived Importer.

    Convenience function wrapping Importer.run().
    """
    with Importer(settings, **clients) as importer:
        return importer.run(path)
