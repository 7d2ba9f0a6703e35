"""
db/driver.py
------------
Adapters over the DB-API modules the layer can run on.

Each Driver knows how to open an autocommit connection from a
ConnectionConfig, which placeholder style it binds, which exception
class is its error root, and how to read the identifier generated by
the last INSERT on a cursor. Transactions are driven explicitly with
BEGIN/COMMIT/ROLLBACK, so every connection is opened in autocommit.
"""

import sqlite3
from dataclasses import dataclass
from typing import Any, Callable, Optional

import psycopg2
import psycopg2.errors

from db.config import ConnectionConfig


@dataclass(frozen=True)
class Driver:
    """
    Connection factory plus the dialect details the executor needs.

    Attributes:
        name: Short driver name ("postgres" or "sqlite").
        connect: Opens an autocommit DB-API connection.
        paramstyle: "pyformat" (%(name)s) or "named" (:name).
        error: Root exception class raised by the driver.
        last_insert_id: Reads the generated id from a cursor right after an INSERT.
            Receives the cursor and whether a transaction is open.
        identity_column: Column definition for an auto-generated primary key.
    """
    name: str
    connect: Callable[[ConnectionConfig], Any]
    paramstyle: str
    error: type
    last_insert_id: Callable[[Any, bool], Optional[int]]
    identity_column: str


# ── PostgreSQL (psycopg2) ─────────────────────────────────

def _connect_postgres(cfg: ConnectionConfig):
    conn = psycopg2.connect(
        host=cfg.host,
        port=cfg.port,
        user=cfg.user,
        password=cfg.password,
        dbname=cfg.database,
        connect_timeout=cfg.connect_timeout,
    )
    conn.autocommit = True
    return conn


def _postgres_last_insert_id(cursor, in_transaction: bool) -> Optional[int]:
    # lastval() is the session's most recent sequence value, so it only names
    # this INSERT's row when the target table draws its id from a sequence.
    # Statements written as INSERT ... RETURNING id never reach this function.
    # Inside a transaction block a failing lastval() would abort the whole
    # transaction, so it runs under a savepoint that is always released.
    if in_transaction:
        cursor.execute("SAVEPOINT last_insert_id")
    try:
        cursor.execute("SELECT lastval()")
        row = cursor.fetchone()
    except psycopg2.Error as e:
        if in_transaction:
            cursor.execute("ROLLBACK TO SAVEPOINT last_insert_id")
            cursor.execute("RELEASE SAVEPOINT last_insert_id")
        if isinstance(e, psycopg2.errors.ObjectNotInPrerequisiteState):
            return None
        raise
    if in_transaction:
        cursor.execute("RELEASE SAVEPOINT last_insert_id")
    return int(row[0]) if row and row[0] is not None else None


POSTGRES = Driver(
    name="postgres",
    connect=_connect_postgres,
    paramstyle="pyformat",
    error=psycopg2.Error,
    last_insert_id=_postgres_last_insert_id,
    identity_column="SERIAL PRIMARY KEY",
)


# ── SQLite (sqlite3) ──────────────────────────────────────

def _connect_sqlite(cfg: ConnectionConfig):
    # host/user/password/port are validated but unused: the database name is the file.
    # Statements are serialized by the Database lock, so the connection may be
    # shared across threads.
    return sqlite3.connect(
        cfg.database,
        timeout=cfg.connect_timeout,
        isolation_level=None,
        check_same_thread=False,
    )


def _sqlite_last_insert_id(cursor, in_transaction: bool) -> Optional[int]:
    return cursor.lastrowid


SQLITE = Driver(
    name="sqlite",
    connect=_connect_sqlite,
    paramstyle="named",
    error=sqlite3.Error,
    last_insert_id=_sqlite_last_insert_id,
    identity_column="INTEGER PRIMARY KEY AUTOINCREMENT",
)


_DRIVERS = {driver.name: driver for driver in (POSTGRES, SQLITE)}


def get_driver(name: str) -> Driver:
    """
    Look up a driver by name.

    Raises:
        ValueError: If the name is not a known driver.
    """
    try:
        return _DRIVERS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown database driver '{name}'. Expected one of: {', '.join(sorted(_DRIVERS))}"
        ) from None
