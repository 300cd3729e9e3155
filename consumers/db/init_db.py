import logging
import time

from consumers.db.db import get_connection
from consumers.db.schema import (
    RAYDIUM_SWAPS_RAW_TABLE,
    SWAPS_DATABASE,
    SWAPS_DATABASE_SQL,
    load_schema_sql,
)

logger = logging.getLogger(__name__)


def init_db(conn=None, schema_sql=None):
    """Create the ``swaps`` database and raw swap table if they are missing.

    Both statements use ``IF NOT EXISTS`` so running this against an
    already provisioned server leaves existing data untouched.
    """
    conn = conn or get_connection()
    conn.execute(SWAPS_DATABASE_SQL)
    conn.execute(schema_sql or load_schema_sql())
    logger.info(f"Schema applied for {RAYDIUM_SWAPS_RAW_TABLE}")
    return conn


def wait_until_ready(conn, timeout=30.0, interval=1.0, sleep=time.sleep, clock=time.monotonic):
    deadline = clock() + timeout
    attempt = 0
    while True:
        attempt += 1
        if conn.ping():
            logger.info(f"ClickHouse at {conn.url} is ready (attempt {attempt})")
            return True
        if clock() >= deadline:
            logger.warning(f"ClickHouse at {conn.url} not ready after {timeout:.0f}s")
            return False
        sleep(interval)


def list_tables(conn, database=SWAPS_DATABASE):
    return [line for line in conn.execute(f"SHOW TABLES FROM {database}").splitlines() if line]


def describe_table(conn, table=RAYDIUM_SWAPS_RAW_TABLE):
    return [(row["name"], row["type"]) for row in conn.query_rows(f"DESCRIBE TABLE {table}")]


def count_rows(conn, table=RAYDIUM_SWAPS_RAW_TABLE) -> int:
    return int(conn.execute(f"SELECT count() FROM {table}").strip())
