from pathlib import Path

import infra

SWAPS_DATABASE = "swaps"
RAYDIUM_SWAPS_RAW_TABLE = f"{SWAPS_DATABASE}.raydium_swaps_raw"

RAYDIUM_SWAPS_RAW_COLUMNS = [
    "id",
    "slot",
    "idx",
    "is_full_entry",
    "raw",
    "ts",
]

RAYDIUM_SWAPS_RAW_TYPES = {
    "id": "UUID",
    "slot": "UInt64",
    "idx": "UInt64",
    "is_full_entry": "UInt8",
    "raw": "String",
    "ts": "DateTime",
}

RAYDIUM_SWAPS_RAW_ORDER_BY = ("ts", "slot", "idx")

SWAPS_DATABASE_SQL = f"CREATE DATABASE IF NOT EXISTS {SWAPS_DATABASE}"

RAYDIUM_SWAPS_RAW_TABLE_SQL = f"""CREATE TABLE IF NOT EXISTS {RAYDIUM_SWAPS_RAW_TABLE} (
    {RAYDIUM_SWAPS_RAW_COLUMNS[0]} {RAYDIUM_SWAPS_RAW_TYPES["id"]},
    {RAYDIUM_SWAPS_RAW_COLUMNS[1]} {RAYDIUM_SWAPS_RAW_TYPES["slot"]},
    {RAYDIUM_SWAPS_RAW_COLUMNS[2]} {RAYDIUM_SWAPS_RAW_TYPES["idx"]},
    {RAYDIUM_SWAPS_RAW_COLUMNS[3]} {RAYDIUM_SWAPS_RAW_TYPES["is_full_entry"]},
    {RAYDIUM_SWAPS_RAW_COLUMNS[4]} {RAYDIUM_SWAPS_RAW_TYPES["raw"]},
    {RAYDIUM_SWAPS_RAW_COLUMNS[5]} {RAYDIUM_SWAPS_RAW_TYPES["ts"]}
) ENGINE = MergeTree()
ORDER BY ({", ".join(RAYDIUM_SWAPS_RAW_ORDER_BY)});
"""

INFRA_DIR = Path(infra.__file__).resolve().parent
SCHEMA_FILE = INFRA_DIR / "clickhouse-init.sql"


def load_schema_sql(path=None) -> str:
    """Return the table DDL, read from ``path`` when one is given."""
    if path is None:
        return RAYDIUM_SWAPS_RAW_TABLE_SQL
    return Path(path).read_text(encoding="utf-8")
