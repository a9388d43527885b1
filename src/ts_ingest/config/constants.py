"""
Constants for import formats, directive tokens and connection defaults.
"""

# =============================================================================
# Connection Defaults
# =============================================================================

DEFAULT_HOST = "localhost"
DEFAULT_HTTP_PORT = 8086
DEFAULT_COLUMN_WRITE_PORT = 8305
DEFAULT_REQUEST_TIMEOUT_MS = 5000

# =============================================================================
# Import Defaults
# =============================================================================

DEFAULT_RETENTION_POLICY = "autogen"
DEFAULT_BATCH_SIZE = 100
DEFAULT_PRECISION = "ns"

# Column name used for the time column in CSV headers and JSON-Influx series
COLUMN_NAME_TIME = "time"

# Field name used for Prometheus sample values when no field list is given
DEFAULT_PROM_FIELD = "value"

# =============================================================================
# Import Formats
# =============================================================================

FORMAT_LINE_PROTOCOL = "line_protocol"
FORMAT_CSV = "csv"
FORMAT_JSON_INFLUX = "jsoni"
FORMAT_JSON_PROM = "jsonp"

DEFAULT_FORMAT = FORMAT_LINE_PROTOCOL

# =============================================================================
# Line Protocol Directives
# =============================================================================

TOKEN_DDL = "# DDL"
TOKEN_DML = "# DML"
TOKEN_DATABASE = "# CONTEXT-DATABASE:"
TOKEN_RETENTION_POLICY = "# CONTEXT-RETENTION-POLICY:"

# =============================================================================
# Timestamp Precision
# =============================================================================

# Multiplier that scales a timestamp at the given precision to nanoseconds
PRECISION_MULTIPLIERS = {
    "ns": 1,
    "us": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "": 1,
}

# =============================================================================
# Column Write Response Codes
# =============================================================================

RESPONSE_CODE_SUCCESS = 0
RESPONSE_CODE_PARTIAL_FAILURE = 1
RESPONSE_CODE_FAILURE = 2
