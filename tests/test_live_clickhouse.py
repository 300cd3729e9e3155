"""Checks against a real ClickHouse (e.g. the one from ``scripts/run_infra.py``).

Skipped unless RAYWATCH_LIVE_CLICKHOUSE=1.
"""
import os
import uuid

import pytest

from consumers.db.db import get_connection
from consumers.db.init_db import count_rows, describe_table, init_db, list_tables
from consumers.db.schema import (
    RAYDIUM_SWAPS_RAW_COLUMNS,
    RAYDIUM_SWAPS_RAW_TABLE,
    RAYDIUM_SWAPS_RAW_TYPES,
    SWAPS_DATABASE_SQL,
)

pytestmark = [
    pytest.mark.live,
    pytest.mark.skipif(os.getenv("RAYWATCH_LIVE_CLICKHOUSE") != "1", reason="no live ClickHouse"),
]


@pytest.fixture
def conn():
    conn = get_connection()
    conn.execute(SWAPS_DATABASE_SQL)
    conn.execute(f"DROP TABLE IF EXISTS {RAYDIUM_SWAPS_RAW_TABLE}")
    yield conn
    conn.close()


def test_applying_schema_twice_yields_one_table(conn):
    init_db(conn)
    init_db(conn)

    assert list_tables(conn).count("raydium_swaps_raw") == 1


def test_created_columns_match(conn):
    init_db(conn)

    assert describe_table(conn) == [(name, RAYDIUM_SWAPS_RAW_TYPES[name]) for name in RAYDIUM_SWAPS_RAW_COLUMNS]


def test_fresh_table_is_empty(conn):
    init_db(conn)

    assert count_rows(conn) == 0


def test_duplicate_sort_keys_are_accepted(conn):
    init_db(conn)
    rows = [
        {"id": str(uuid.uuid4()), "slot": 7, "idx": 1, "is_full_entry": 1, "raw": "{}", "ts": 1714564800},
        {"id": str(uuid.uuid4()), "slot": 7, "idx": 1, "is_full_entry": 0, "raw": "{}", "ts": 1714564800},
    ]

    conn.insert_rows(RAYDIUM_SWAPS_RAW_TABLE, RAYDIUM_SWAPS_RAW_COLUMNS, rows)

    assert count_rows(conn) == 2
