"""Tests for the psycopg2 driver boundary, using a fake connection."""

from __future__ import annotations

from typing import Any

import psycopg2
import psycopg2.errors
import pytest

from db.config import ConnectionConfig
from db.connection import ConnectionHandle
from db.database import Database
from db.driver import POSTGRES, SQLITE, get_driver
from db.errors import DatabaseConnectionError, QueryError


class _FakeCursor:
    def __init__(self, conn: "_FakeConnection") -> None:
        self._conn = conn
        self.description = None
        self.rowcount = -1
        self._rows: list[tuple[Any, ...]] = []

    def execute(self, sql: str, params: Any = None) -> None:
        self._conn.executed.append((sql, params))
        if sql == "SELECT lastval()":
            if self._conn.lastval_error is not None:
                raise self._conn.lastval_error
            if self._conn.lastval is None:
                raise psycopg2.errors.ObjectNotInPrerequisiteState("lastval is not yet defined in this session")
            self._rows = [(self._conn.lastval,)]
            return
        if sql.startswith("INSERT") and "RETURNING" in sql:
            self.description = (("id",),)
            self._rows = [(9,)]
            self.rowcount = 1
        elif sql.startswith("INSERT"):
            self.rowcount = 1
        elif sql.startswith("SELECT"):
            self.description = (("id",), ("title",))
            self._rows = [(7, "T")]

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._rows[0] if self._rows else None

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._rows)

    def close(self) -> None:
        return None


class _FakeConnection:
    def __init__(self, lastval: int | None = 42) -> None:
        self.autocommit = False
        self.closed = False
        self.lastval = lastval
        self.lastval_error: Exception | None = None
        self.executed: list[tuple[str, Any]] = []

    def cursor(self) -> _FakeCursor:
        return _FakeCursor(self)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def pg_config() -> ConnectionConfig:
    return ConnectionConfig(host="db.local", user="app", password="pw", database="vanilla", port=5432, connect_timeout=3)


def _connected(monkeypatch: pytest.MonkeyPatch, config: ConnectionConfig, conn: _FakeConnection) -> Database:
    monkeypatch.setattr("db.driver.psycopg2.connect", lambda **kwargs: conn)
    handle = ConnectionHandle(config, POSTGRES)
    handle.open()
    return Database(handle)


def test_connect_passes_credentials_and_enables_autocommit(monkeypatch: pytest.MonkeyPatch, pg_config: ConnectionConfig) -> None:
    captured: dict[str, Any] = {}
    conn = _FakeConnection()

    def _connect(**kwargs: Any) -> _FakeConnection:
        captured.update(kwargs)
        return conn

    monkeypatch.setattr("db.driver.psycopg2.connect", _connect)

    assert POSTGRES.connect(pg_config) is conn
    assert captured == {
        "host": "db.local",
        "port": 5432,
        "user": "app",
        "password": "pw",
        "dbname": "vanilla",
        "connect_timeout": 3,
    }
    assert conn.autocommit is True


def test_connect_failure_becomes_connection_error(monkeypatch: pytest.MonkeyPatch, pg_config: ConnectionConfig) -> None:
    def _connect(**kwargs: Any) -> _FakeConnection:
        raise psycopg2.OperationalError("password authentication failed")

    monkeypatch.setattr("db.driver.psycopg2.connect", _connect)
    handle = ConnectionHandle(pg_config, POSTGRES)

    with pytest.raises(DatabaseConnectionError, match="password authentication failed"):
        handle.open()


def test_insert_renders_pyformat_and_reads_lastval(monkeypatch: pytest.MonkeyPatch, pg_config: ConnectionConfig) -> None:
    conn = _FakeConnection(lastval=42)
    db = _connected(monkeypatch, pg_config, conn)

    result = db.execute("INSERT INTO tbl_posts (title) VALUES (:title)", {"title": "100% real"})

    assert result.affected_row_count == 1
    assert result.last_inserted_id == 42
    assert conn.executed == [
        ("INSERT INTO tbl_posts (title) VALUES (%(title)s)", {"title": "100% real"}),
        ("SELECT lastval()", None),
    ]


def test_lastval_inside_transaction_uses_savepoint(monkeypatch: pytest.MonkeyPatch, pg_config: ConnectionConfig) -> None:
    conn = _FakeConnection(lastval=None)
    db = _connected(monkeypatch, pg_config, conn)

    db.begin_transaction()
    result = db.execute("INSERT INTO tbl_posts (title) VALUES (:title)", {"title": "T"})

    assert result.last_inserted_id is None
    assert [sql for sql, _ in conn.executed] == [
        "BEGIN",
        "INSERT INTO tbl_posts (title) VALUES (%(title)s)",
        "SAVEPOINT last_insert_id",
        "SELECT lastval()",
        "ROLLBACK TO SAVEPOINT last_insert_id",
        "RELEASE SAVEPOINT last_insert_id",
    ]
    assert db.in_transaction() is True


def test_lastval_failure_inside_transaction_releases_savepoint(monkeypatch: pytest.MonkeyPatch, pg_config: ConnectionConfig) -> None:
    conn = _FakeConnection()
    conn.lastval_error = psycopg2.errors.InsufficientPrivilege("permission denied for sequence")
    db = _connected(monkeypatch, pg_config, conn)

    db.begin_transaction()
    with pytest.raises(QueryError, match="permission denied"):
        db.execute("INSERT INTO tbl_posts (title) VALUES (:title)", {"title": "T"})

    assert [sql for sql, _ in conn.executed][-3:] == [
        "SELECT lastval()",
        "ROLLBACK TO SAVEPOINT last_insert_id",
        "RELEASE SAVEPOINT last_insert_id",
    ]
    assert db.in_transaction() is True
    assert db.get_query_log()[-1].error


def test_insert_returning_takes_id_from_returned_row(monkeypatch: pytest.MonkeyPatch, pg_config: ConnectionConfig) -> None:
    conn = _FakeConnection(lastval=42)
    db = _connected(monkeypatch, pg_config, conn)

    result = db.execute("INSERT INTO tbl_posts (title) VALUES (:title) RETURNING id", {"title": "T"})

    assert result.last_inserted_id == 9
    assert result.affected_row_count == 1
    assert result.rows is None
    assert [sql for sql, _ in conn.executed] == ["INSERT INTO tbl_posts (title) VALUES (%(title)s) RETURNING id"]


def test_select_rows_become_dicts(monkeypatch: pytest.MonkeyPatch, pg_config: ConnectionConfig) -> None:
    db = _connected(monkeypatch, pg_config, _FakeConnection())

    result = db.execute("SELECT id, title FROM tbl_posts WHERE id = :id", {"id": 7})

    assert result.row == {"id": 7, "title": "T"}


def test_close_closes_driver_connection(monkeypatch: pytest.MonkeyPatch, pg_config: ConnectionConfig) -> None:
    conn = _FakeConnection()
    db = _connected(monkeypatch, pg_config, conn)

    db.close()

    assert conn.closed is True


def test_get_driver_by_name() -> None:
    assert get_driver("postgres") is POSTGRES
    assert get_driver("SQLite") is SQLITE
    with pytest.raises(ValueError):
        get_driver("mysql")
