"""
Shared fixtures for integration tests.

Provides sample import files for every supported format, written to a
temporary directory.
"""

import json
from pathlib import Path

import pytest

# =============================================================================
# SAMPLE FILE FIXTURES
# =============================================================================

LINE_PROTOCOL_SAMPLE = """\
# DDL
CREATE DATABASE NOAA_water_database
CREATE RETENTION POLICY oneday ON NOAA_water_database DURATION 1d REPLICATION 1

# DML
# CONTEXT-DATABASE: NOAA_water_database
# CONTEXT-RETENTION-POLICY: oneday

h2o_feet,location=coyote_creek water_level=8.120,level\\ description="between 6 and 9 feet" 1566000000
h2o_feet,location=coyote_creek water_level=8.005,level\\ description="between 6 and 9 feet" 1566000360
h2o_feet,location=santa_monica water_level=2.064,level\\ description="below 3 feet" 1566000000
h2o_feet,location=santa_monica water_level=2.116,level\\ description="below 3 feet" 1566000360
h2o_pH,location=coyote_creek pH=7 1566000000
"""

CSV_SAMPLE = """\
# exported from sensors
time,location,water_level,unit
1566000000,coyote_creek,8.12,feet
1566000360,coyote_creek,8.005,feet
1566000000,santa_monica,2.064,feet
1566000360,santa_monica,2.116,feet
1566000720,santa_monica,2.028,feet
"""

INFLUX_SAMPLE = {
    "results": [
        {
            "statement_id": 0,
            "series": [
                {
                    "name": "h2o_feet",
                    "tags": {"location": "coyote_creek"},
                    "columns": ["time", "water_level"],
                    "values": [
                        ["2019-08-17T00:00:00Z", 8.12],
                        ["2019-08-17T00:06:00Z", 8.005],
                    ],
                },
                {
                    "name": "h2o_feet",
                    "tags": {"location": "santa_monica"},
                    "columns": ["time", "water_level"],
                    "values": [["2019-08-17T00:00:00Z", 2.064]],
                },
            ],
        }
    ]
}

PROM_SAMPLE = {
    "status": "success",
    "data": {
        "resultType": "matrix",
        "result": [
            {
                "metric": {"__name__": "up", "instance": "localhost:9090"},
                "values": [[1566000000, "1"], [1566000015, "1"], [1566000030, "0"]],
            }
        ],
    },
}


@pytest.fixture
def sample_dir(tmp_path) -> Path:
    """Directory holding one sample file per format."""
    (tmp_path / "noaa.txt").write_text(LINE_PROTOCOL_SAMPLE)
    (tmp_path / "water.csv").write_text(CSV_SAMPLE)
    (tmp_path / "influx.json").write_text(json.dumps(INFLUX_SAMPLE))
    (tmp_path / "prom.json").write_text(json.dumps(PROM_SAMPLE))
    return tmp_path
