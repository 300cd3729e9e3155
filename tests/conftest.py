import pytest

from consumers.db.db import ClickHouseConnection, ClickHouseError


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Records requests and replays queued responses (or raises queued exceptions)."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []
        self.closed = False

    def _next(self):
        item = self.responses.pop(0) if self.responses else FakeResponse()
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url, params=None, headers=None, content=None, timeout=None):
        self.calls.append({"method": "POST", "url": url, "params": params, "headers": headers, "data": content})
        return self._next()

    def get(self, url, timeout=None):
        self.calls.append({"method": "GET", "url": url})
        return self._next()

    def close(self):
        self.closed = True


class RecordingConnection:
    """Stands in for ClickHouseConnection without any HTTP."""

    url = "http://fake:8123/"

    def __init__(self, fail_on=None, ready=True):
        self.statements = []
        self.inserts = []
        self.fail_on = fail_on
        self.ready = ready
        self.pings = 0
        self.closed = False

    def execute(self, sql, data=None):
        self.statements.append(sql)
        if self.fail_on and self.fail_on in sql:
            raise ClickHouseError("Connection refused")
        return ""

    def insert_rows(self, table, columns, rows):
        if self.fail_on == "INSERT":
            raise ClickHouseError("insert rejected", status_code=500)
        self.inserts.append((table, list(columns), [dict(r) for r in rows]))

    def ping(self):
        self.pings += 1
        return self.ready

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def ch(fake_session):
    return ClickHouseConnection(host="ch", port=8123, user="raywatch", password="supersecret", session=fake_session)


@pytest.fixture
def recording_conn():
    return RecordingConnection()


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture
def make_conn():
    return RecordingConnection
