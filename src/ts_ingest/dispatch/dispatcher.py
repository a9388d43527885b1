"""
Batch dispatcher.

Owns the flush policy for the pending buffers of an ImportContext:

- lines and points are flushed once a buffer reaches batch_size
- a line flush sends at most batch_size lines and keeps the rest
- a point flush sends every pending point
- drain() empties both buffers at end of input
- buffers filled under one database/retention policy are drained before
  records for another target are buffered

A batch that fails to send is removed from its buffer and kept on the
dead-letter list (failed_batches) so callers can inspect or re-submit it.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from ..config.constants import DEFAULT_BATCH_SIZE
from ..config.settings import ImportSettings
from ..ingestion.base import ImportContext, Point
from ..ingestion.exceptions import (
    ConfigurationError,
    DrainError,
    ImportCancelledError,
    IngestionError,
)
from .builders import BuilderRegistry
from .cancellation import CancellationToken
from .clients import ColumnWriteClient, RowWriteClient
from .strategies import (
    TRANSPORT_COLUMN,
    TRANSPORT_ROW,
    ColumnWriteStrategy,
    RowWriteStrategy,
    WriteStrategy,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailedBatch:
    """A batch that could not be sent, with the error that stopped it."""

    database: str
    retention_policy: str
    error: Exception
    lines: tuple[str, ...] = ()
    points: tuple[Point, ...] = ()

    @property
    def size(self) -> int:
        return len(self.lines) + len(self.points)


@dataclass
class DispatchStats:
    """Counters for one dispatcher."""

    flushes: int = 0
    records_written: int = 0
    records_failed: int = 0
    batches_failed: int = 0


class BatchDispatcher:
    """
    Flushes pending lines and points through a write strategy.

    Usage:
        dispatcher = BatchDispatcher(RowWriteStrategy(client, "ns"), batch_size=500)
        dispatcher.add_lines(context, ["cpu v=1 1"])
        ...
        dispatcher.drain(context)
    """

    def __init__(
        self,
        strategy: WriteStrategy,
        batch_size: int = DEFAULT_BATCH_SIZE,
        token: Optional[CancellationToken] = None,
        registry: Optional[BuilderRegistry] = None,
    ):
        self.strategy = strategy
        self.registry = registry
        self.batch_size = batch_size if batch_size > 0 else DEFAULT_BATCH_SIZE
        self.token = token or CancellationToken()
        self.stats = DispatchStats()
        self.failed_batches: list[FailedBatch] = []

    @classmethod
    def from_settings(
        cls,
        settings: ImportSettings,
        transport: str,
        row_client: Optional[RowWriteClient] = None,
        column_client: Optional[ColumnWriteClient] = None,
        token: Optional[CancellationToken] = None,
    ) -> "BatchDispatcher":
        """
        Build a dispatcher for the given transport ("row" or "column").

        Raises:
            ConfigurationError: If the client for the transport is missing
        """
        if transport == TRANSPORT_COLUMN:
            if column_client is None:
                raise ConfigurationError(
                    "column write client is required for column transport",
                    "column_write",
                )
            registry = BuilderRegistry()
            strategy: WriteStrategy = ColumnWriteStrategy(
                column_client,
                registry=registry,
                username=settings.username,
                password=settings.password,
                time_multiplier=settings.time_multiplier,
            )
        elif transport == TRANSPORT_ROW:
            if row_client is None:
                raise ConfigurationError(
                    "row write client is required for row transport",
                    "column_write",
                )
            registry = None
            strategy = RowWriteStrategy(row_client, settings.precision)
        else:
            raise ConfigurationError(f"unknown transport: {transport}", "transport")

        logger.info(f"Using {transport} write transport, batch size {settings.batch_size}")
        return cls(
            strategy, batch_size=settings.batch_size, token=token, registry=registry
        )

    @property
    def builder_registry(self) -> Optional[BuilderRegistry]:
        """The write-request-builder registry of a column transport, if any."""
        return self.registry

    @property
    def failed_records(self) -> int:
        return sum(batch.size for batch in self.failed_batches)

    # =========================================================================
    # Buffering
    # =========================================================================

    def add_lines(self, context: ImportContext, lines: Sequence[str]) -> None:
        """
        Append raw lines and flush full batches.

        Raises:
            DrainError: If flushing lines of the previous target failed;
                the new lines are buffered regardless
            IngestionError: If a threshold flush failed
        """
        switch_error = self._switch_target(context)
        context.pending_lines.extend(lines)
        while len(context.pending_lines) >= self.batch_size:
            self.flush_lines(context)
        if switch_error is not None:
            raise switch_error

    def add_points(self, context: ImportContext, points: Sequence[Point]) -> None:
        """Append points and flush once the buffer is full."""
        switch_error = self._switch_target(context)
        context.pending_points.extend(points)
        if len(context.pending_points) >= self.batch_size:
            self.flush_points(context)
        if switch_error is not None:
            raise switch_error

    def _switch_target(self, context: ImportContext) -> Optional[DrainError]:
        """
        Drain buffers filled under another database/retention policy.

        Returns:
            The DrainError of that drain, if any of its rounds failed
        """
        target = context.target
        if context.pending_target == target:
            return None

        error = None
        if context.pending_target is not None and context.has_pending:
            old_database, old_retention_policy = context.pending_target
            logger.info(
                f"Write target changed to {target[0]}.{target[1]}, flushing "
                f"pending records for {old_database}.{old_retention_policy}"
            )
            try:
                self.drain(context)
            except DrainError as e:
                error = e
        context.pending_target = target
        return error

    # =========================================================================
    # Flushing
    # =========================================================================

    def flush_lines(self, context: ImportContext) -> None:
        """
        Send up to batch_size pending lines.

        Raises:
            ImportCancelledError: If cancelled; nothing is removed
            IngestionError: If the batch failed; it is dead-lettered
        """
        if not context.pending_lines:
            return
        self.token.check()

        batch = tuple(context.pending_lines[: self.batch_size])
        del context.pending_lines[: self.batch_size]
        self._send(context, batch, lines=True)

    def flush_points(self, context: ImportContext) -> None:
        """
        Send every pending point.

        Raises:
            ImportCancelledError: If cancelled; nothing is removed
            IngestionError: If the batch failed; it is dead-lettered
        """
        if not context.pending_points:
            return
        self.token.check()

        batch = tuple(context.pending_points)
        context.pending_points.clear()
        self._send(context, batch, lines=False)

    def drain(self, context: ImportContext) -> int:
        """
        Flush everything still pending.

        Every remaining line batch is attempted even if an earlier one
        fails, then the point buffer is flushed once.

        Returns:
            Number of flushes performed

        Raises:
            ImportCancelledError: If cancelled mid-drain
            DrainError: With every failure, once all rounds were attempted
        """
        errors: list[Exception] = []
        rounds = 0

        while context.pending_lines:
            rounds += 1
            try:
                self.flush_lines(context)
            except ImportCancelledError:
                raise
            except IngestionError as e:
                errors.append(e)

        if context.pending_points:
            rounds += 1
            try:
                self.flush_points(context)
            except ImportCancelledError:
                raise
            except IngestionError as e:
                errors.append(e)

        if errors:
            raise DrainError(errors)
        if rounds:
            logger.debug(f"Drained pending buffers in {rounds} flushes")
        return rounds

    def _send(
        self,
        context: ImportContext,
        batch: Union[tuple[str, ...], tuple[Point, ...]],
        lines: bool,
    ) -> None:
        database, retention_policy = context.pending_target or context.target
        timeout = self.token.remaining()

        try:
            if lines:
                self.strategy.write_lines(database, retention_policy, batch, timeout=timeout)
            else:
                self.strategy.write_points(database, retention_policy, batch, timeout=timeout)
        except IngestionError as e:
            self.failed_batches.append(
                FailedBatch(
                    database=database,
                    retention_policy=retention_policy,
                    error=e,
                    lines=batch if lines else (),
                    points=() if lines else batch,
                )
            )
            self.stats.batches_failed += 1
            self.stats.records_failed += len(batch)
            logger.error(
                f"Failed to write batch of {len(batch)} records to "
                f"{database}.{retention_policy}: {e}"
            )
            raise

        self.stats.flushes += 1
        self.stats.records_written += len(batch)
        logger.debug(
            f"Wrote batch of {len(batch)} records to {database}.{retention_policy}"
        )
