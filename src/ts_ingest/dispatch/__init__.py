"""
Dispatch layer: batching and transport to the remote store.

Usage:
    from ts_ingest.dispatch import BatchDispatcher, HttpClient

    with HttpClient.from_settings(settings) as client:
        dispatcher = BatchDispatcher.from_settings(settings, "row", row_client=client)
"""

from .builders import (
    BuilderRegistry,
    Column,
    Record,
    RecordBuilder,
    RecordLine,
    RecordLineBuilder,
    WriteRequest,
    WriteRequestBuilder,
)
from .cancellation import CancellationToken
from .clients import ColumnWriteClient, QueryClient, RowWriteClient, WriteResponse
from .dispatcher import BatchDispatcher, DispatchStats, FailedBatch
from .http_client import HttpClient
from .strategies import (
    TRANSPORT_COLUMN,
    TRANSPORT_ROW,
    ColumnWriteStrategy,
    RowWriteStrategy,
    WriteStrategy,
    check_response,
    format_point,
)

__all__ = [
    # Contracts
    "QueryClient",
    "RowWriteClient",
    "ColumnWriteClient",
    "WriteResponse",
    "HttpClient",
    # Builders
    "RecordLine",
    "RecordLineBuilder",
    "Column",
    "Record",
    "RecordBuilder",
    "WriteRequest",
    "WriteRequestBuilder",
    "BuilderRegistry",
    # Strategies
    "TRANSPORT_ROW",
    "TRANSPORT_COLUMN",
    "WriteStrategy",
    "RowWriteStrategy",
    "ColumnWriteStrategy",
    "check_response",
    "format_point",
    # Dispatcher
    "BatchDispatcher",
    "DispatchStats",
    "FailedBatch",
    "CancellationToken",
]
