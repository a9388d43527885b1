"""
Unit tests for the httpx query/write client, using httpx.MockTransport.
"""

from urllib.parse import parse_qs

import httpx
import pytest

from ts_ingest.config import ImportSettings
from ts_ingest.dispatch import HttpClient
from ts_ingest.ingestion.exceptions import TransportError


class Recorder:
    """Mock transport handler that records requests."""

    def __init__(self, status_code=204, json_body=None, text=""):
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.json_body = json_body
        self.text = text

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.json_body is not None:
            return httpx.Response(self.status_code, json=self.json_body)
        return httpx.Response(self.status_code, text=self.text)


def make_client(handler, **settings_kwargs) -> HttpClient:
    settings = ImportSettings(host="db.local", port=8086, **settings_kwargs)
    return HttpClient.from_settings(settings, transport=httpx.MockTransport(handler))


class TestQuery:
    """Tests for HttpClient.query()."""

    def test_query_posts_form(self):
        recorder = Recorder(200, json_body={"results": [{"statement_id": 0}]})
        with make_client(recorder, database="noaa") as client:
            body = client.query("CREATE DATABASE noaa")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/query"
        form = parse_qs(request.content.decode())
        assert form == {"q": ["CREATE DATABASE noaa"], "db": ["noaa"]}
        assert body == {"results": [{"statement_id": 0}]}

    def test_statement_error_raises(self):
        recorder = Recorder(200, json_body={"results": [{"error": "bad syntax"}]})
        with make_client(recorder) as client:
            with pytest.raises(TransportError, match="query failed: bad syntax"):
                client.query("CREATE DATABSE x")

    def test_basic_auth(self):
        recorder = Recorder(204)
        with make_client(recorder, username="admin", password="pw") as client:
            assert client.query("SHOW DATABASES") == {}
        assert recorder.requests[0].headers["authorization"].startswith("Basic ")


class TestWrite:
    """Tests for HttpClient.write()."""

    def test_write_params_and_body(self):
        recorder = Recorder(204)
        with make_client(recorder) as client:
            client.write("db", "autogen", "cpu v=1 1\ncpu v=2 2", "s")

        request = recorder.requests[0]
        assert request.url.path == "/write"
        assert dict(request.url.params) == {
            "db": "db",
            "rp": "autogen",
            "precision": "s",
        }
        assert request.content == b"cpu v=1 1\ncpu v=2 2"

    def test_error_status_raises_with_body(self):
        recorder = Recorder(400, text='{"error":"unable to parse"}')
        with make_client(recorder) as client:
            with pytest.raises(TransportError) as exc_info:
                client.write("db", "autogen", "garbage", "ns")

        assert exc_info.value.status_code == 400
        assert "unable to parse" in exc_info.value.body

    def test_connection_error_wrapped(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with make_client(refuse) as client:
            with pytest.raises(TransportError, match="write request failed"):
                client.write("db", "autogen", "cpu v=1 1", "ns")
