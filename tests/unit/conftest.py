"""
Pytest configuration and shared fixtures for unit tests.
"""

import pytest


@pytest.fixture(autouse=True)
def register_formats():
    """
    Ensure the built-in formats are registered before every test.

    A test that calls FormatRegistry.clear() would otherwise leave later
    tests without formats, so the classes are re-registered explicitly.
    """
    from ts_ingest.ingestion.formats import (
        CSVFormat,
        JSONInfluxFormat,
        JSONPromFormat,
        LineProtocolFormat,
    )
    from ts_ingest.ingestion.registry import FormatRegistry

    builtin = {
        "csv": CSVFormat,
        "jsoni": JSONInfluxFormat,
        "jsonp": JSONPromFormat,
        "line_protocol": LineProtocolFormat,
    }
    for name, format_class in builtin.items():
        if not FormatRegistry.is_format_registered(name):
            FormatRegistry.register_format(name, format_class)
