"""
Unit tests for write strategies, response code mapping and the batch
dispatcher.
"""

import pytest

from ts_ingest.dispatch import (
    BatchDispatcher,
    CancellationToken,
    ColumnWriteStrategy,
    RowWriteStrategy,
    WriteResponse,
    check_response,
    format_point,
)
from ts_ingest.ingestion.base import ImportContext, Point
from ts_ingest.ingestion.exceptions import (
    ConfigurationError,
    DrainError,
    ImportCancelledError,
    ParseError,
    TransportError,
    WriteResponseError,
)


def make_context(**kwargs) -> ImportContext:
    kwargs.setdefault("database", "db")
    kwargs.setdefault("retention_policy", "autogen")
    return ImportContext(**kwargs)


# =============================================================================
# Response Codes
# =============================================================================


class TestCheckResponse:
    """Tests for response code mapping."""

    def test_success(self):
        check_response(WriteResponse(0))

    @pytest.mark.parametrize(
        "code,message",
        [
            (1, "write failed, code: 1, partial write failure"),
            (2, "write failed, code: 2, write failure"),
            (7, "unexpected response code: 7"),
        ],
    )
    def test_failures(self, code, message):
        with pytest.raises(WriteResponseError) as exc_info:
            check_response(WriteResponse(code))
        assert exc_info.value.code == code
        assert str(exc_info.value) == message


# =============================================================================
# Strategies
# =============================================================================


class TestRowWriteStrategy:
    """Tests for row writes."""

    def test_lines_are_joined(self, row_client):
        strategy = RowWriteStrategy(row_client, "s")
        strategy.write_lines("db", "rp", ["a v=1 1", "b v=2 2"], timeout=3.0)

        assert row_client.writes == [
            {
                "database": "db",
                "retention_policy": "rp",
                "raw": "a v=1 1\nb v=2 2",
                "precision": "s",
                "timeout": 3.0,
            }
        ]

    def test_points_written_in_nanoseconds(self, row_client):
        strategy = RowWriteStrategy(row_client, "s")
        strategy.write_points("db", "rp", [Point("cpu", {"v": "1"}, {"h": "a"}, 7)])

        assert row_client.writes[0]["raw"] == "cpu,h=a v=1 7"
        assert row_client.writes[0]["precision"] == "ns"

    def test_format_point(self):
        point = Point("m", {"a": "1", "b": "2"}, {"t": "x"}, 9)
        assert format_point(point) == "m,t=x a=1,b=2 9"

    def test_format_point_quotes_text_fields(self):
        point = Point("m", {"msg": "hello world"}, {"h": "a b"}, 5)
        assert format_point(point) == 'm,h=a\\ b msg="hello world" 5'

    def test_format_point_escapes_keys_and_tag_values(self):
        point = Point("my m,x", {"f k=1": "2.5"}, {"t,k": "v=1"}, 1)
        assert format_point(point) == "my\\ m\\,x,t\\,k=v\\=1 f\\ k\\=1=2.5 1"

    @pytest.mark.parametrize(
        "value,rendered",
        [
            ("8.12", "8.12"),
            ("-3", "-3"),
            ("true", "true"),
            ("F", "F"),
            ('say "hi"', '"say \\"hi\\""'),
            ("C:\\tmp", '"C:\\\\tmp"'),
            ("nan", '"nan"'),
            (7, "7i"),
            (2.5, "2.5"),
            (False, "false"),
        ],
    )
    def test_format_point_field_values(self, value, rendered):
        assert format_point(Point("m", {"v": value}, timestamp=1)) == f"m v={rendered} 1"


class TestColumnWriteStrategy:
    """Tests for column writes."""

    def test_lines_grouped_by_measurement(self, column_client):
        strategy = ColumnWriteStrategy(column_client, username="u", password="p")
        strategy.write_lines("db", "rp", ["cpu v=1 1", "mem v=2 2", "cpu v=3 3"])

        request = column_client.requests[0]
        assert request.database == "db"
        assert request.retention_policy == "rp"
        assert request.username == "u"
        assert [r.measurement for r in request.records] == ["cpu", "mem"]
        assert request.records[0].timestamps == [1, 3]

    def test_builder_reused_and_reset(self, column_client):
        strategy = ColumnWriteStrategy(column_client)
        strategy.write_lines("db", "rp", ["cpu v=1 1"])
        strategy.write_lines("db", "rp", ["cpu v=2 2"])

        assert len(strategy.registry) == 1
        assert [r.row_count for r in column_client.requests] == [1, 1]

    def test_time_multiplier_applied_to_lines(self, column_client):
        strategy = ColumnWriteStrategy(column_client, time_multiplier=1000)
        strategy.write_lines("db", "rp", ["cpu v=1 5"])
        assert column_client.requests[0].records[0].timestamps == [5000]

    def test_malformed_line_fails_batch(self, column_client):
        strategy = ColumnWriteStrategy(column_client)
        with pytest.raises(ParseError):
            strategy.write_lines("db", "rp", ["cpu v=1 1", "cpu,t=1"])
        assert column_client.requests == []

    def test_error_code_raises(self, make_fake_column_client):
        strategy = ColumnWriteStrategy(make_fake_column_client(codes=[2]))
        with pytest.raises(WriteResponseError, match="code: 2"):
            strategy.write_points("db", "rp", [Point("cpu", {"v": 1})])


# =============================================================================
# Dispatcher
# =============================================================================


class TestBatchDispatcher:
    """Tests for flush policy and draining."""

    def test_threshold_flush_keeps_remainder(self, row_client):
        dispatcher = BatchDispatcher(RowWriteStrategy(row_client, "ns"), batch_size=3)
        context = make_context()

        for i in range(5):
            dispatcher.add_lines(context, [f"m v={i} {i}"])

        assert len(row_client.writes) == 1
        assert row_client.lines == ["m v=0 0", "m v=1 1", "m v=2 2"]
        assert context.pending_lines == ["m v=3 3", "m v=4 4"]

        assert dispatcher.drain(context) == 1
        assert len(row_client.writes) == 2
        assert context.pending_lines == []
        assert dispatcher.drain(context) == 0

    def test_oversized_enqueue_flushes_full_batches(self, row_client):
        dispatcher = BatchDispatcher(RowWriteStrategy(row_client, "ns"), batch_size=2)
        context = make_context()
        dispatcher.add_lines(context, [f"m v=1 {i}" for i in range(5)])

        assert [len(w["raw"].split("\n")) for w in row_client.writes] == [2, 2]
        assert len(context.pending_lines) == 1

    def test_point_flush_sends_everything(self, column_client):
        dispatcher = BatchDispatcher(ColumnWriteStrategy(column_client), batch_size=2)
        context = make_context()
        dispatcher.add_points(context, [Point("m", {"v": 1})])
        assert column_client.requests == []

        dispatcher.add_points(context, [Point("m", {"v": 2}), Point("m", {"v": 3})])
        assert column_client.row_count == 3
        assert context.pending_points == []

    def test_failed_batch_is_dead_lettered(self, make_fake_row_client):
        client = make_fake_row_client(fail_calls={1})
        dispatcher = BatchDispatcher(RowWriteStrategy(client, "ns"), batch_size=2)
        context = make_context()

        with pytest.raises(TransportError):
            dispatcher.add_lines(context, ["a v=1 1", "b v=2 2"])

        assert context.pending_lines == []
        assert len(dispatcher.failed_batches) == 1
        failed = dispatcher.failed_batches[0]
        assert failed.lines == ("a v=1 1", "b v=2 2")
        assert failed.database == "db"
        assert dispatcher.stats.records_failed == 2
        assert dispatcher.failed_records == 2

    def test_drain_aggregates_errors(self, make_fake_row_client):
        client = make_fake_row_client(fail_calls={1, 3})
        dispatcher = BatchDispatcher(RowWriteStrategy(client, "ns"), batch_size=2)
        context = make_context(pending_lines=[f"m v=1 {i}" for i in range(5)])

        with pytest.raises(DrainError) as exc_info:
            dispatcher.drain(context)

        assert len(exc_info.value.errors) == 2
        assert context.pending_lines == []
        assert len(client.writes) == 1
        assert dispatcher.stats.records_written == 2
        assert dispatcher.stats.records_failed == 3

    def test_cancelled_flush_keeps_buffer(self, row_client):
        token = CancellationToken()
        dispatcher = BatchDispatcher(
            RowWriteStrategy(row_client, "ns"), batch_size=10, token=token
        )
        context = make_context(pending_lines=["m v=1 1"])
        token.cancel()

        with pytest.raises(ImportCancelledError):
            dispatcher.drain(context)
        assert context.pending_lines == ["m v=1 1"]
        assert row_client.writes == []

    def test_remaining_time_passed_as_timeout(self, row_client):
        token = CancellationToken(timeout_seconds=60)
        dispatcher = BatchDispatcher(
            RowWriteStrategy(row_client, "ns"), batch_size=1, token=token
        )
        dispatcher.add_lines(make_context(), ["m v=1 1"])
        assert 0 < row_client.writes[0]["timeout"] <= 60

    def test_from_settings_requires_client(self, settings):
        with pytest.raises(ConfigurationError, match="column write client"):
            BatchDispatcher.from_settings(settings, "column")

    def test_from_settings_column_owns_registry(self, settings, column_client):
        dispatcher = BatchDispatcher.from_settings(
            settings, "column", column_client=column_client
        )
        assert dispatcher.batch_size == 3
        assert dispatcher.builder_registry is dispatcher.strategy.registry
        assert dispatcher.strategy.username == "admin"

    def test_from_settings_row_has_no_registry(self, settings, row_client):
        dispatcher = BatchDispatcher.from_settings(settings, "row", row_client=row_client)
        assert dispatcher.builder_registry is None

    def test_target_switch_flushes_previous_target(self, row_client):
        dispatcher = BatchDispatcher(RowWriteStrategy(row_client, "ns"), batch_size=10)
        context = make_context(database="a")
        dispatcher.add_lines(context, ["cpu v=1 1"])

        context.database = "b"
        dispatcher.add_lines(context, ["cpu v=2 2"])

        assert [(w["database"], w["raw"]) for w in row_client.writes] == [
            ("a", "cpu v=1 1")
        ]
        assert context.pending_lines == ["cpu v=2 2"]

        dispatcher.drain(context)
        assert row_client.writes[-1]["database"] == "b"
        assert row_client.writes[-1]["raw"] == "cpu v=2 2"

    def test_retention_policy_switch_flushes_points(self, column_client):
        dispatcher = BatchDispatcher(ColumnWriteStrategy(column_client), batch_size=10)
        context = make_context()
        dispatcher.add_points(context, [Point("m", {"v": 1}, timestamp=1)])

        context.retention_policy = "oneday"
        dispatcher.add_points(context, [Point("m", {"v": 2}, timestamp=2)])
        dispatcher.drain(context)

        assert [r.retention_policy for r in column_client.requests] == [
            "autogen",
            "oneday",
        ]
        assert [r.row_count for r in column_client.requests] == [1, 1]

    def test_failed_switch_flush_keeps_new_lines(self, make_fake_row_client):
        client = make_fake_row_client(fail_calls={1})
        dispatcher = BatchDispatcher(RowWriteStrategy(client, "ns"), batch_size=10)
        context = make_context(database="a")
        dispatcher.add_lines(context, ["cpu v=1 1"])

        context.database = "b"
        with pytest.raises(DrainError):
            dispatcher.add_lines(context, ["cpu v=2 2"])

        assert context.pending_lines == ["cpu v=2 2"]
        assert dispatcher.failed_batches[0].database == "a"
        assert context.pending_target == ("b", "autogen")


class TestCancellationToken:
    """Tests for cancellation."""

    def test_no_deadline(self):
        token = CancellationToken()
        token.check()
        assert token.remaining() is None
        assert token.cancelled is False

    def test_cancel(self):
        token = CancellationToken()
        token.cancel()
        assert token.cancelled is True
        with pytest.raises(ImportCancelledError, match="import cancelled"):
            token.check()

    def test_expired_deadline(self):
        token = CancellationToken(timeout_seconds=0)
        assert token.remaining() == 0.0
        with pytest.raises(ImportCancelledError, match="deadline exceeded"):
            token.check()
