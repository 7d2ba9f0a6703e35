"""Tests for connection config validation and the connection handle lifecycle."""

from __future__ import annotations

import dataclasses

import pytest

from db.config import ConnectionConfig
from db.connection import ConnectionHandle, HandleState
from db.driver import SQLITE
from db.errors import DatabaseConnectionError


def _config(**overrides: object) -> ConnectionConfig:
    values: dict[str, object] = {
        "host": "localhost",
        "user": "tester",
        "password": "",
        "database": ":memory:",
        "port": 5432,
    }
    values.update(overrides)
    return ConnectionConfig(**values)  # type: ignore[arg-type]


class _BrokenConnection:
    def cursor(self):  # type: ignore[no-untyped-def]
        raise RuntimeError("transport gone")

    def close(self) -> None:
        return None


def test_config_allows_empty_password() -> None:
    _config(password="").validate()


@pytest.mark.parametrize(
    "overrides",
    [{"host": ""}, {"user": ""}, {"database": ""}, {"password": None}, {"port": 0}, {"port": "5432"}],
)
def test_config_rejects_incomplete_fields(overrides: dict[str, object]) -> None:
    with pytest.raises(DatabaseConnectionError):
        _config(**overrides).validate()


def test_config_describe_hides_password() -> None:
    description = _config(password="s3cret").describe()

    assert "s3cret" not in description
    assert description == "tester@localhost:5432/:memory:"


def test_config_from_env_reads_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    import config

    monkeypatch.setattr(config, "DB_HOST", "db.internal")
    monkeypatch.setattr(config, "DB_PORT", 6543)
    monkeypatch.setattr(config, "DB_NAME", "vanilla")
    monkeypatch.setattr(config, "DB_USER", "app")
    monkeypatch.setattr(config, "DB_PASS", "pw")

    cfg = ConnectionConfig.from_env()

    assert (cfg.host, cfg.port, cfg.database, cfg.user, cfg.password) == ("db.internal", 6543, "vanilla", "app", "pw")


def test_handle_lifecycle() -> None:
    handle = ConnectionHandle(_config(), SQLITE)
    assert handle.state is HandleState.UNCONNECTED
    assert handle.ping() is False

    handle.open()
    assert handle.is_open
    assert handle.ping() is True

    handle.close()
    assert handle.state is HandleState.CLOSED
    assert handle.ping() is False


def test_cursor_autoconnects_unconnected_handle() -> None:
    handle = ConnectionHandle(_config(), SQLITE)

    cur = handle.cursor()
    cur.close()

    assert handle.state is HandleState.OPEN
    handle.close()


def test_closed_handle_cannot_reopen_or_hand_out_cursors() -> None:
    handle = ConnectionHandle(_config(), SQLITE)
    handle.open()
    handle.close()

    with pytest.raises(DatabaseConnectionError):
        handle.open()
    with pytest.raises(DatabaseConnectionError):
        handle.cursor()


def test_open_wraps_driver_failure(tmp_path) -> None:  # type: ignore[no-untyped-def]
    missing_dir = tmp_path / "missing" / "posts.db"
    handle = ConnectionHandle(_config(database=str(missing_dir)), SQLITE)

    with pytest.raises(DatabaseConnectionError) as excinfo:
        handle.open()

    assert excinfo.value.__cause__ is not None
    assert handle.state is HandleState.UNCONNECTED


def test_open_validates_config_before_connecting() -> None:
    calls: list[ConnectionConfig] = []
    driver = dataclasses.replace(SQLITE, connect=lambda cfg: calls.append(cfg))
    handle = ConnectionHandle(_config(host=""), driver)

    with pytest.raises(DatabaseConnectionError):
        handle.open()
    assert calls == []


def test_ping_never_raises() -> None:
    driver = dataclasses.replace(SQLITE, connect=lambda cfg: _BrokenConnection())
    handle = ConnectionHandle(_config(), driver)
    handle.open()

    assert handle.ping() is False


def test_close_clears_transaction_flag_and_query_log() -> None:
    handle = ConnectionHandle(_config(), SQLITE)
    handle.open()
    handle.in_transaction = True
    handle.query_log.append("SELECT 1", {}, 0.1, row_count=1)

    handle.close()

    assert handle.in_transaction is False
    assert len(handle.query_log) == 0


def test_close_unconnected_handle_marks_it_closed() -> None:
    handle = ConnectionHandle(_config(), SQLITE)

    handle.close()

    assert handle.state is HandleState.CLOSED
