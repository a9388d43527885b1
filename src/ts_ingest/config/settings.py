"""
Import settings and configuration management.

Supports loading from:
1. A configuration dictionary (e.g., parsed from a YAML file)
2. Environment variables (fallback)
"""

import os
from dataclasses import dataclass, field
from typing import Any

from .constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_COLUMN_WRITE_PORT,
    DEFAULT_FORMAT,
    DEFAULT_HOST,
    DEFAULT_HTTP_PORT,
    DEFAULT_PRECISION,
    DEFAULT_REQUEST_TIMEOUT_MS,
    COLUMN_NAME_TIME,
    FORMAT_CSV,
    FORMAT_JSON_INFLUX,
    FORMAT_JSON_PROM,
    FORMAT_LINE_PROTOCOL,
    PRECISION_MULTIPLIERS,
)

VALID_FORMATS = frozenset(
    [FORMAT_LINE_PROTOCOL, FORMAT_CSV, FORMAT_JSON_INFLUX, FORMAT_JSON_PROM]
)


def _split_names(value: Any) -> list[str]:
    """Accept either a list of names or a comma-separated string."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [name.strip() for name in value.split(",") if name.strip()]
    return [str(name) for name in value]


@dataclass
class ImportSettings:
    """
    Settings for a single import run.

    Connection settings are consumed by the HTTP client; the remaining
    settings drive the import state machine and the batch dispatcher.
    """

    # Connection
    host: str = DEFAULT_HOST
    port: int = DEFAULT_HTTP_PORT
    username: str = ""
    password: str = ""
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    column_write_port: int = DEFAULT_COLUMN_WRITE_PORT

    # Target schema
    database: str = ""
    retention_policy: str = ""
    measurement: str = ""
    tags: list[str] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    time_field: str = COLUMN_NAME_TIME

    # Input
    path: str = ""
    format: str = DEFAULT_FORMAT

    # Dispatch
    precision: str = DEFAULT_PRECISION
    batch_size: int = DEFAULT_BATCH_SIZE
    column_write: bool = False

    def __post_init__(self):
        if self.batch_size <= 0:
            self.batch_size = DEFAULT_BATCH_SIZE
        if not self.format:
            self.format = DEFAULT_FORMAT

    @property
    def time_multiplier(self) -> int:
        """
        Multiplier that scales a timestamp at the configured precision to ns.

        Raises:
            ConfigurationError: If precision is not one of s, ms, us, ns
        """
        if self.precision not in PRECISION_MULTIPLIERS:
            from ..ingestion.exceptions import ConfigurationError

            raise ConfigurationError(
                "incorrect timestamp precision, only support (s, ms, us, ns)"
            )
        return PRECISION_MULTIPLIERS[self.precision]

    @property
    def base_url(self) -> str:
        """Base URL of the HTTP query/write endpoint."""
        host = self.host
        if not host.startswith(("http://", "https://")):
            host = f"http://{host}"
        return f"{host.rstrip('/')}:{self.port}"

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if self.format not in VALID_FORMATS:
            errors.append(
                f"unknown format '{self.format}', "
                f"must be one of: {', '.join(sorted(VALID_FORMATS))}"
            )
        if self.precision not in PRECISION_MULTIPLIERS:
            errors.append(
                "incorrect timestamp precision, only support (s, ms, us, ns)"
            )
        if self.batch_size <= 0:
            errors.append(f"batch_size must be > 0, got {self.batch_size}")
        if not 0 < self.port < 65536:
            errors.append(f"port must be 1-65535, got {self.port}")

        overlap = sorted(set(self.tags) & set(self.fields))
        for name in overlap:
            errors.append(f"{name} is in both tags and fields")

        if self.format in (FORMAT_CSV, FORMAT_JSON_INFLUX, FORMAT_JSON_PROM):
            if not self.database:
                errors.append(f"database is required for {self.format} import")
        if self.format in (FORMAT_CSV, FORMAT_JSON_PROM) and not self.measurement:
            errors.append(f"measurement is required for {self.format} import")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (password masked)."""
        return {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "password": "***" if self.password else "",
            "request_timeout_ms": self.request_timeout_ms,
            "column_write_port": self.column_write_port,
            "database": self.database,
            "retention_policy": self.retention_policy,
            "measurement": self.measurement,
            "tags": list(self.tags),
            "fields": list(self.fields),
            "time_field": self.time_field,
            "path": self.path,
            "format": self.format,
            "precision": self.precision,
            "batch_size": self.batch_size,
            "column_write": self.column_write,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "ImportSettings":
        """
        Create settings from a configuration dictionary.

        Expected layout:
            connection: {host, port, username, password, timeout_ms}
            target: {database, retention_policy, measurement, tags, fields, time_field}
            import: {path, format, precision, batch_size, column_write,
                     column_write_port}
        """
        conn = config.get("connection", {}) or {}
        target = config.get("target", {}) or {}
        imp = config.get("import", {}) or {}

        return cls(
            host=conn.get("host", DEFAULT_HOST),
            port=int(conn.get("port", DEFAULT_HTTP_PORT)),
            username=conn.get("username", ""),
            password=conn.get("password", ""),
            request_timeout_ms=int(
                conn.get("timeout_ms", DEFAULT_REQUEST_TIMEOUT_MS)
            ),
            column_write_port=int(
                imp.get("column_write_port", DEFAULT_COLUMN_WRITE_PORT)
            ),
            database=target.get("database", ""),
            retention_policy=target.get("retention_policy", ""),
            measurement=target.get("measurement", ""),
            tags=_split_names(target.get("tags")),
            fields=_split_names(target.get("fields")),
            time_field=target.get("time_field", COLUMN_NAME_TIME),
            path=imp.get("path", ""),
            format=imp.get("format", DEFAULT_FORMAT),
            precision=imp.get("precision", DEFAULT_PRECISION),
            batch_size=int(imp.get("batch_size", DEFAULT_BATCH_SIZE)),
            column_write=bool(imp.get("column_write", False)),
        )

    @classmethod
    def from_env(cls) -> "ImportSettings":
        """Create settings from TS_INGEST_* environment variables."""

        def safe_int(key: str, default: int) -> int:
            """Safely parse int from env var, using default on error."""
            try:
                return int(os.environ.get(key, str(default)))
            except ValueError:
                return default

        def safe_bool(key: str, default: bool) -> bool:
            """Safely parse bool from env var."""
            return os.environ.get(key, str(default).lower()).lower() == "true"

        return cls(
            host=os.environ.get("TS_INGEST_HOST", DEFAULT_HOST),
            port=safe_int("TS_INGEST_PORT", DEFAULT_HTTP_PORT),
            username=os.environ.get("TS_INGEST_USERNAME", ""),
            password=os.environ.get("TS_INGEST_PASSWORD", ""),
            request_timeout_ms=safe_int(
                "TS_INGEST_TIMEOUT_MS", DEFAULT_REQUEST_TIMEOUT_MS
            ),
            column_write_port=safe_int(
                "TS_INGEST_COLUMN_WRITE_PORT", DEFAULT_COLUMN_WRITE_PORT
            ),
            database=os.environ.get("TS_INGEST_DATABASE", ""),
            retention_policy=os.environ.get("TS_INGEST_RETENTION_POLICY", ""),
            measurement=os.environ.get("TS_INGEST_MEASUREMENT", ""),
            tags=_split_names(os.environ.get("TS_INGEST_TAGS")),
            fields=_split_names(os.environ.get("TS_INGEST_FIELDS")),
            time_field=os.environ.get("TS_INGEST_TIME_FIELD", COLUMN_NAME_TIME),
            path=os.environ.get("TS_INGEST_PATH", ""),
            format=os.environ.get("TS_INGEST_FORMAT", DEFAULT_FORMAT),
            precision=os.environ.get("TS_INGEST_PRECISION", DEFAULT_PRECISION),
            batch_size=safe_int("TS_INGEST_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            column_write=safe_bool("TS_INGEST_COLUMN_WRITE", False),
        )
