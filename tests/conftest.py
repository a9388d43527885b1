"""
Shared fixtures: in-memory fakes for the remote store collaborators.
"""

from typing import Optional

import pytest

from ts_ingest.config import ImportSettings
from ts_ingest.dispatch import WriteResponse
from ts_ingest.ingestion.exceptions import TransportError


class FakeQueryClient:
    """Records every query; raises for commands listed in fail_on."""

    def __init__(self, fail_on: Optional[set[str]] = None):
        self.commands: list[str] = []
        self.timeouts: list[Optional[float]] = []
        self.fail_on = fail_on or set()

    def query(self, command: str, timeout: Optional[float] = None) -> dict:
        if command in self.fail_on:
            raise TransportError(f"query refused: {command}", status_code=400)
        self.commands.append(command)
        self.timeouts.append(timeout)
        return {"results": [{"statement_id": 0}]}


class FakeRowClient:
    """Records every row write; the n-th call fails if n is in fail_calls."""

    def __init__(self, fail_calls: Optional[set[int]] = None):
        self.writes: list[dict] = []
        self.calls = 0
        self.fail_calls = fail_calls or set()

    def write(self, database, retention_policy, raw, precision, timeout=None) -> None:
        self.calls += 1
        if self.calls in self.fail_calls:
            raise TransportError("write refused", status_code=500, body="boom")
        self.writes.append(
            {
                "database": database,
                "retention_policy": retention_policy,
                "raw": raw,
                "precision": precision,
                "timeout": timeout,
            }
        )

    @property
    def lines(self) -> list[str]:
        return [line for w in self.writes for line in w["raw"].split("\n")]


class FakeColumnClient:
    """Records every column write request and answers with queued codes."""

    def __init__(self, codes: Optional[list[int]] = None):
        self.requests = []
        self.codes = list(codes or [])

    def write(self, request, timeout=None) -> WriteResponse:
        self.requests.append(request)
        code = self.codes.pop(0) if self.codes else 0
        return WriteResponse(code=code, message="")

    @property
    def row_count(self) -> int:
        return sum(request.row_count for request in self.requests)


@pytest.fixture
def query_client() -> FakeQueryClient:
    return FakeQueryClient()


@pytest.fixture
def row_client() -> FakeRowClient:
    return FakeRowClient()


@pytest.fixture
def column_client() -> FakeColumnClient:
    return FakeColumnClient()


@pytest.fixture
def make_fake_row_client():
    """Factory for row clients failing on selected calls."""
    return FakeRowClient


@pytest.fixture
def make_fake_column_client():
    """Factory for column clients answering with queued response codes."""
    return FakeColumnClient


@pytest.fixture
def make_fake_query_client():
    """Factory for query clients failing on selected commands."""
    return FakeQueryClient


@pytest.fixture
def settings() -> ImportSettings:
    """Settings for a line protocol import with small batches."""
    return ImportSettings(
        username="admin",
        password="secret",
        batch_size=3,
        precision="ns",
    )
