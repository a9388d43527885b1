"""
Collaborator contracts for talking to the remote store.

The dispatcher only depends on these protocols; the HTTP client in
http_client.py implements the query and row-write contracts, and any
column-write client (e.g. a gRPC stub wrapper) implements
ColumnWriteClient.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Protocol

if TYPE_CHECKING:
    from .builders import WriteRequest


@dataclass(frozen=True)
class WriteResponse:
    """Response to a column write request."""

    code: int
    message: str = ""


class QueryClient(Protocol):
    def query(self, command: str, timeout: Optional[float] = None) -> dict[str, Any]:
        """Run a query command and return the decoded response."""
        ...


class RowWriteClient(Protocol):
    def write(
        self,
        database: str,
        retention_policy: str,
        raw: str,
        precision: str,
        timeout: Optional[float] = None,
    ) -> None:
        """Write newline-joined line protocol text."""
        ...


class ColumnWriteClient(Protocol):
    def write(
        self, request: "WriteRequest", timeout: Optional[float] = None
    ) -> WriteResponse:
        """Send a built column write request."""
        ...
