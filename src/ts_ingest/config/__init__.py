"""Configuration module."""

from .constants import (
    COLUMN_NAME_TIME,
    DEFAULT_BATCH_SIZE,
    DEFAULT_FORMAT,
    DEFAULT_PRECISION,
    DEFAULT_RETENTION_POLICY,
    FORMAT_CSV,
    FORMAT_JSON_INFLUX,
    FORMAT_JSON_PROM,
    FORMAT_LINE_PROTOCOL,
    PRECISION_MULTIPLIERS,
)
from .loader import load_settings, read_config_file
from .settings import VALID_FORMATS, ImportSettings

__all__ = [
    # Defaults
    "COLUMN_NAME_TIME",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_FORMAT",
    "DEFAULT_PRECISION",
    "DEFAULT_RETENTION_POLICY",
    "PRECISION_MULTIPLIERS",
    # Formats
    "FORMAT_CSV",
    "FORMAT_JSON_INFLUX",
    "FORMAT_JSON_PROM",
    "FORMAT_LINE_PROTOCOL",
    "VALID_FORMATS",
    # Settings
    "ImportSettings",
    # Config loading
    "load_settings",
    "read_config_file",
]
