"""
db/database.py
--------------
The object callers hold: one connection handle plus its executor,
transaction controller and query log behind a single lock.

Statements on one connection must not interleave, so every call that
touches the connection runs under the same re-entrant lock; the scoped
``transaction()`` helper keeps the lock for its whole block.
"""

import threading
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional

from db.connection import ConnectionHandle
from db.executor import Outcome, StatementExecutor
from db.query_log import QueryLogEntry
from db.result import Result, Row
from db.transaction import TransactionController


class Database:
    """Facade over a ConnectionHandle."""

    def __init__(self, handle: ConnectionHandle):
        self.handle = handle
        self._lock = threading.RLock()
        self._executor = StatementExecutor(handle)
        self._transactions = TransactionController(handle)

    @property
    def driver_name(self) -> str:
        return self.handle.driver.name

    # ── Connection ────────────────────────────────────────

    def ping(self) -> bool:
        with self._lock:
            return self.handle.ping()

    def close(self) -> None:
        with self._lock:
            self.handle.close()

    # ── Statements ────────────────────────────────────────

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Result:
        with self._lock:
            return self._executor.execute(sql, params)

    def try_execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Outcome:
        with self._lock:
            return self._executor.try_execute(sql, params)

    def query_all(self, sql: str) -> list[Row]:
        with self._lock:
            return self._executor.query_all(sql)

    # ── Transactions ──────────────────────────────────────

    def begin_transaction(self) -> None:
        with self._lock:
            self._transactions.begin()

    def commit(self) -> None:
        with self._lock:
            self._transactions.commit()

    def rollback(self) -> None:
        with self._lock:
            self._transactions.rollback()

    def in_transaction(self) -> bool:
        return self._transactions.in_transaction()

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Scoped transaction; see TransactionController.transaction."""
        with self._lock, self._transactions.transaction():
            yield self

    # ── Query log ─────────────────────────────────────────

    def get_query_log(self) -> tuple[QueryLogEntry, ...]:
        with self._lock:
            return self.handle.query_log.entries()
