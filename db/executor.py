"""
db/executor.py
--------------
Runs parameterized statements on a ConnectionHandle.

Every call appends exactly one entry to the handle's query log, whether
the statement succeeds or fails (validation failures included), and
every failure surfaces as a QueryError chained to its cause.
"""

import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from db.connection import ConnectionHandle
from db.errors import DatabaseConnectionError, QueryError
from db.result import Result, Row
from db.statement import StatementKind, check_params, classify, render
from utils.logger import get_logger

logger = get_logger(__name__)

_ROWS_REQUIRED = "query_all requires a row-returning statement."

# Raised by the drivers while binding a scalar they cannot represent
# (an int wider than 64 bits, a str with a lone surrogate or a NUL byte).
_BIND_ERRORS = (ValueError, OverflowError)


@dataclass(frozen=True)
class Outcome:
    """Either a Result or the QueryError that prevented one."""
    result: Optional[Result] = None
    error: Optional[QueryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Result:
        """Return the result, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.result


class StatementExecutor:
    """Binds, runs and classifies statements, recording each one in the query log."""

    def __init__(self, handle: ConnectionHandle):
        self.handle = handle

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Result:
        """
        Execute one statement with ``:name`` placeholders.

        Args:
            sql: Statement text.
            params: Placeholder values by name; must match the placeholders exactly.

        Returns:
            A Result with rows for row-returning statements, or the affected
            row count (and generated id for INSERT) for mutating ones.

        Raises:
            QueryError: On invalid parameters or any driver failure.
        """
        params = dict(params or {})
        started = time.perf_counter()
        try:
            check_params(sql, params)
            result = self._run(sql, params)
        except QueryError as e:
            self._record(sql, params, started, error=str(e))
            raise
        self._record(sql, params, started, row_count=result.row_count)
        return result

    def try_execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Outcome:
        """Like ``execute`` but returns the failure instead of raising it."""
        try:
            return Outcome(result=self.execute(sql, params))
        except QueryError as e:
            return Outcome(error=e)

    def query_all(self, sql: str) -> list[Row]:
        """
        Fetch every row of a parameterless, row-returning statement.

        Raises:
            QueryError: If the statement has placeholders, returns no row set,
                or fails in the driver.
        """
        started = time.perf_counter()
        try:
            check_params(sql, {})
            if classify(sql).is_mutating:
                raise QueryError(_ROWS_REQUIRED, statement=sql)
            result = self._run(sql, {})
            if not result.returns_rows:
                raise QueryError(_ROWS_REQUIRED, statement=sql)
        except QueryError as e:
            self._record(sql, {}, started, error=str(e))
            raise
        self._record(sql, {}, started, row_count=result.row_count)
        return list(result.rows)

    # ── HELPERS ───────────────────────────────────────────

    def _run(self, sql: str, params: dict) -> Result:
        kind = classify(sql)
        text = render(sql, self.handle.driver.paramstyle)
        try:
            cur = self.handle.cursor()
        except DatabaseConnectionError as e:
            raise QueryError(f"Connection unavailable: {e}", statement=sql) from e
        try:
            cur.execute(text, params)
            if kind is StatementKind.SELECT or (kind is StatementKind.OTHER and cur.description):
                return Result(kind=kind, rows=self._fetch_rows(cur), affected_row_count=0)
            if kind is StatementKind.INSERT and cur.description:
                # INSERT ... RETURNING: the first returned column is the new id.
                returned = self._fetch_rows(cur)
                last_id = next(iter(returned[0].values()), None) if returned else None
                return Result(kind=kind, affected_row_count=len(returned), last_inserted_id=last_id)
            affected = max(cur.rowcount, 0)
            last_id = None
            if kind is StatementKind.INSERT and affected > 0:
                last_id = self.handle.driver.last_insert_id(cur, self.handle.in_transaction)
            return Result(kind=kind, affected_row_count=affected, last_inserted_id=last_id)
        except (self.handle.driver.error, *_BIND_ERRORS) as e:
            raise QueryError(str(e).strip() or type(e).__name__, statement=sql) from e
        finally:
            cur.close()

    @staticmethod
    def _fetch_rows(cur) -> tuple[Row, ...]:
        """Convert DB-API row tuples into column-name dicts."""
        columns = [column[0] for column in cur.description or ()]
        return tuple(dict(zip(columns, record)) for record in cur.fetchall())

    def _record(self, sql: str, params: dict, started: float, *, row_count: Optional[int] = None,
                error: Optional[str] = None) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        self.handle.query_log.append(sql, params, elapsed_ms, row_count=row_count, error=error)
        if error is None:
            logger.debug(f"{elapsed_ms:.2f} ms | {row_count} row(s) | {' '.join(sql.split())}")
        else:
            logger.error(f"Query failed after {elapsed_ms:.2f} ms: {error} | {' '.join(sql.split())}")
