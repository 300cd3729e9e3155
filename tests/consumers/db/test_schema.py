import toml

from consumers.db.schema import (
    INFRA_DIR,
    RAYDIUM_SWAPS_RAW_COLUMNS,
    RAYDIUM_SWAPS_RAW_TABLE,
    RAYDIUM_SWAPS_RAW_TABLE_SQL,
    RAYDIUM_SWAPS_RAW_TYPES,
    SCHEMA_FILE,
    SWAPS_DATABASE_SQL,
    load_schema_sql,
)


def test_columns_in_table_order():
    assert RAYDIUM_SWAPS_RAW_COLUMNS == ["id", "slot", "idx", "is_full_entry", "raw", "ts"]
    assert list(RAYDIUM_SWAPS_RAW_TYPES) == RAYDIUM_SWAPS_RAW_COLUMNS


def test_column_types():
    assert RAYDIUM_SWAPS_RAW_TYPES == {
        "id": "UUID",
        "slot": "UInt64",
        "idx": "UInt64",
        "is_full_entry": "UInt8",
        "raw": "String",
        "ts": "DateTime",
    }


def test_table_statement_is_idempotent_mergetree():
    assert RAYDIUM_SWAPS_RAW_TABLE == "swaps.raydium_swaps_raw"
    assert RAYDIUM_SWAPS_RAW_TABLE_SQL.startswith("CREATE TABLE IF NOT EXISTS swaps.raydium_swaps_raw (")
    assert "ENGINE = MergeTree()" in RAYDIUM_SWAPS_RAW_TABLE_SQL
    assert "ORDER BY (ts, slot, idx);" in RAYDIUM_SWAPS_RAW_TABLE_SQL
    assert "PRIMARY KEY" not in RAYDIUM_SWAPS_RAW_TABLE_SQL
    assert SWAPS_DATABASE_SQL == "CREATE DATABASE IF NOT EXISTS swaps"


def test_column_lines_match_types():
    body = RAYDIUM_SWAPS_RAW_TABLE_SQL.split("(", 1)[1].split(") ENGINE", 1)[0]
    lines = [line.strip().rstrip(",") for line in body.strip().splitlines()]
    assert lines == [f"{name} {RAYDIUM_SWAPS_RAW_TYPES[name]}" for name in RAYDIUM_SWAPS_RAW_COLUMNS]


def test_infra_sql_file_matches_builtin_statement():
    assert SCHEMA_FILE.read_text(encoding="utf-8") == RAYDIUM_SWAPS_RAW_TABLE_SQL


def test_load_schema_sql(tmp_path):
    assert load_schema_sql() == RAYDIUM_SWAPS_RAW_TABLE_SQL

    custom = tmp_path / "custom.sql"
    custom.write_text("SELECT 1", encoding="utf-8")
    assert load_schema_sql(custom) == "SELECT 1"
    assert load_schema_sql(str(custom)) == "SELECT 1"


def test_infra_files_ship_with_the_package():
    assert (INFRA_DIR / "docker-compose.yml").is_file()
    assert (INFRA_DIR / "clickhouse-init.sql").is_file()

    pyproject = toml.load(INFRA_DIR.parent / "pyproject.toml")
    setuptools_cfg = pyproject["tool"]["setuptools"]
    assert "infra*" in setuptools_cfg["packages"]["find"]["include"]
    assert set(setuptools_cfg["package-data"]["infra"]) == {"*.sql", "*.yml"}
