"""Bring up Kafka + ClickHouse and provision the raw swap schema.

Runs as one linear sequence: ``docker compose up -d`` in ``infra/``,
wait for ClickHouse, push the schema over HTTP, print query hints.
Whether a failed schema push fails the run is controlled by
``--on-schema-error`` (``fail`` or ``tolerate``).
"""
import argparse
import logging
import shlex
import subprocess
import sys
import time
from pathlib import Path

from configs.settings import config_value, load_config
from consumers.db.db import ClickHouseError, connection_from_config
from consumers.db.init_db import init_db, wait_until_ready
from consumers.db.schema import INFRA_DIR, load_schema_sql

logger = logging.getLogger(__name__)

ON_SCHEMA_ERROR_FAIL = "fail"
ON_SCHEMA_ERROR_TOLERATE = "tolerate"

EXIT_OK = 0
EXIT_SCHEMA_FAILED = 1
EXIT_COMPOSE_FAILED = 2
EXIT_NOT_READY = 3

USAGE_HINTS = [
    "  curl 'http://localhost:8123/?query=SHOW+TABLES+FROM+swaps'",
    "  curl 'http://localhost:8123/?query=SELECT+count()+FROM+swaps.raydium_swaps_raw'",
]


def parse_args(argv=None, config=None):
    config = config or {}
    parser = argparse.ArgumentParser(description="Start Kafka + ClickHouse and apply the raw swap schema.")
    parser.add_argument("--config", default=None, help="Path to raywatch.toml")
    parser.add_argument(
        "--compose-command",
        default=config_value(config, "bootstrap", "compose_command", env="RAYWATCH_COMPOSE_COMMAND", default="docker compose"),
        help="Container orchestration command, e.g. 'docker compose' or 'docker-compose'",
    )
    parser.add_argument("--infra-dir", default=str(INFRA_DIR), help="Directory holding docker-compose.yml")
    parser.add_argument("--schema-file", default=None, help="SQL file to push instead of the built-in schema")
    parser.add_argument(
        "--fixed-delay",
        type=float,
        default=None,
        help="Sleep this many seconds instead of polling ClickHouse for readiness",
    )
    parser.add_argument(
        "--wait-timeout",
        type=float,
        default=float(config_value(config, "bootstrap", "wait_timeout", env="RAYWATCH_WAIT_TIMEOUT", default=30)),
        help="Seconds to poll ClickHouse before giving up",
    )
    parser.add_argument(
        "--on-schema-error",
        choices=[ON_SCHEMA_ERROR_FAIL, ON_SCHEMA_ERROR_TOLERATE],
        default=config_value(
            config, "bootstrap", "on_schema_error", env="RAYWATCH_ON_SCHEMA_ERROR", default=ON_SCHEMA_ERROR_FAIL
        ),
    )
    args = parser.parse_args(argv)
    # argparse only checks choices for values given on the command line
    if args.on_schema_error not in (ON_SCHEMA_ERROR_FAIL, ON_SCHEMA_ERROR_TOLERATE):
        parser.error(
            f"on_schema_error must be '{ON_SCHEMA_ERROR_FAIL}' or '{ON_SCHEMA_ERROR_TOLERATE}', "
            f"got {args.on_schema_error!r}"
        )
    return args


def start_services(compose_command: str, infra_dir, runner=subprocess.run) -> None:
    cmd = shlex.split(compose_command) + ["up", "-d"]
    runner(cmd, cwd=str(infra_dir), check=True)


def provision(conn, args, sleep=time.sleep) -> int:
    tolerate = args.on_schema_error == ON_SCHEMA_ERROR_TOLERATE

    if args.fixed_delay is not None:
        print(f"[*] Waiting {args.fixed_delay:g}s for ClickHouse to start...")
        sleep(args.fixed_delay)
    else:
        print(f"[*] Waiting up to {args.wait_timeout:g}s for ClickHouse to start...")
        if not wait_until_ready(conn, timeout=args.wait_timeout, sleep=sleep):
            logger.error(f"ClickHouse at {conn.url} did not become ready")
            if not tolerate:
                return EXIT_NOT_READY

    print("[*] Initializing ClickHouse schema...")
    try:
        init_db(conn, schema_sql=load_schema_sql(args.schema_file))
    except (ClickHouseError, OSError) as e:
        logger.error(f"Schema push failed, table is NOT provisioned: {e}")
        if not tolerate:
            return EXIT_SCHEMA_FAILED
        logger.warning("Continuing anyway because on-schema-error is 'tolerate'")
    return EXIT_OK


def run(argv=None, conn=None, runner=subprocess.run, sleep=time.sleep) -> int:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    known, _ = pre.parse_known_args(argv)
    config = load_config(known.config)
    args = parse_args(argv, config)

    print("[*] Starting Kafka + ClickHouse...")
    try:
        start_services(args.compose_command, Path(args.infra_dir), runner=runner)
    except (subprocess.CalledProcessError, OSError) as e:
        logger.error(f"Container startup failed: {e}")
        return EXIT_COMPOSE_FAILED

    owned = conn is None
    conn = conn or connection_from_config(config)
    try:
        status = provision(conn, args, sleep=sleep)
    finally:
        if owned:
            conn.close()
    if status != EXIT_OK:
        return status

    print("[*] Done.")
    print("Try:")
    for hint in USAGE_HINTS:
        print(hint)
    return EXIT_OK


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    sys.exit(run())


if __name__ == "__main__":
    main()
