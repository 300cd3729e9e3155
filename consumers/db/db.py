import json
import logging
import os

import httpx

from configs.settings import config_value

logger = logging.getLogger(__name__)


class ClickHouseError(Exception):
    def __init__(self, message, status_code=None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ClickHouseConnection:
    """Minimal client for the ClickHouse HTTP interface (port 8123)."""

    def __init__(
        self,
        host="localhost",
        port=8123,
        user="default",
        password="",
        credentials_in_query=False,
        timeout=10.0,
        session=None,
    ):
        self.host = host
        self.port = int(port)
        self.user = user
        self.password = password
        self.credentials_in_query = credentials_in_query
        self.timeout = timeout
        self.session = session or httpx.Client()

        if credentials_in_query:
            logger.warning(
                "ClickHouse credentials are sent in the query string for %s:%s; "
                "they will show up in server and proxy logs",
                self.host,
                self.port,
            )

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def _auth(self):
        if self.credentials_in_query:
            return {"user": self.user, "password": self.password}, {}
        return {}, {"X-ClickHouse-User": self.user, "X-ClickHouse-Key": self.password}

    def execute(self, sql: str, data=None) -> str:
        params, headers = self._auth()
        if data is None:
            body = sql
        else:
            params["query"] = sql
            body = data

        try:
            resp = self.session.post(
                self.url,
                params=params,
                headers=headers,
                content=body.encode("utf-8") if isinstance(body, str) else body,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise ClickHouseError(f"ClickHouse request to {self.url} failed: {e}") from e

        if resp.status_code >= 300:
            raise ClickHouseError(
                f"ClickHouse returned HTTP {resp.status_code}: {resp.text.strip()}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return resp.text

    def query_rows(self, sql: str) -> list:
        text = self.execute(f"{sql.rstrip().rstrip(';')} FORMAT JSONEachRow")
        return [json.loads(line) for line in text.splitlines() if line.strip()]

    def insert_rows(self, table: str, columns, rows) -> None:
        sql = f"INSERT INTO {table} ({', '.join(columns)}) FORMAT JSONEachRow"
        payload = "\n".join(
            json.dumps({col: row[col] for col in columns}, separators=(",", ":"))
            for row in rows
        )
        self.execute(sql, data=payload + "\n")

    def ping(self) -> bool:
        try:
            resp = self.session.get(f"{self.url}ping", timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.debug(f"ClickHouse ping failed: {e}")
            return False
        return resp.status_code == 200 and resp.text.strip() == "Ok."

    def close(self) -> None:
        self.session.close()


def _env_flag(name, default="0"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def get_connection(**overrides):
    settings = dict(
        host=os.getenv("CLICKHOUSE_HOST", "localhost"),
        port=os.getenv("CLICKHOUSE_PORT", "8123"),
        user=os.getenv("CLICKHOUSE_USER", "raywatch"),
        password=os.getenv("CLICKHOUSE_PASSWORD", "supersecret"),
        credentials_in_query=_env_flag("CLICKHOUSE_CREDENTIALS_IN_QUERY"),
        timeout=float(os.getenv("CLICKHOUSE_TIMEOUT", "10")),
    )
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return ClickHouseConnection(**settings)


def connection_from_config(config: dict):
    """Build a connection from the ``[clickhouse]`` table; env vars still win."""
    return get_connection(
        host=config_value(config, "clickhouse", "host", env="CLICKHOUSE_HOST"),
        port=config_value(config, "clickhouse", "port", env="CLICKHOUSE_PORT"),
        user=config_value(config, "clickhouse", "user", env="CLICKHOUSE_USER"),
        password=config_value(config, "clickhouse", "password", env="CLICKHOUSE_PASSWORD"),
    )
