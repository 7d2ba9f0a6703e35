"""
db/transaction.py
-----------------
Explicit transaction control over a ConnectionHandle.

Two states, idle and active, tracked by ``handle.in_transaction``.
Connections run in autocommit mode, so BEGIN/COMMIT/ROLLBACK are issued
as plain statements. Nothing here rolls back on its own except the
scoped ``transaction()`` helper.
"""

from contextlib import contextmanager
from typing import Iterator

from db.connection import ConnectionHandle
from db.errors import DatabaseConnectionError, TransactionError
from utils.logger import get_logger

logger = get_logger(__name__)


class TransactionController:
    """State machine forwarding begin/commit/rollback to the connection."""

    def __init__(self, handle: ConnectionHandle):
        self.handle = handle

    def in_transaction(self) -> bool:
        return self.handle.in_transaction

    def begin(self) -> None:
        """
        Start a transaction (idle -> active).

        Raises:
            TransactionError: If a transaction is already active or BEGIN fails.
        """
        if self.handle.in_transaction:
            raise TransactionError("A transaction is already active; nested transactions are not supported.")
        try:
            self._send("BEGIN")
        except (self.handle.driver.error, DatabaseConnectionError) as e:
            raise TransactionError(f"Could not begin transaction: {e}") from e
        self.handle.in_transaction = True
        logger.debug("Transaction started.")

    def commit(self) -> None:
        """
        Commit the active transaction (active -> idle).

        A failed COMMIT leaves the transaction active so the caller can roll back.

        Raises:
            TransactionError: If no transaction is active or COMMIT fails.
        """
        if not self.handle.in_transaction:
            raise TransactionError("Cannot commit: no active transaction.")
        try:
            self._send("COMMIT")
        except (self.handle.driver.error, DatabaseConnectionError) as e:
            raise TransactionError(f"Could not commit transaction: {e}") from e
        self.handle.in_transaction = False
        logger.debug("Transaction committed.")

    def rollback(self) -> None:
        """
        Discard everything since ``begin`` (active -> idle).

        Raises:
            TransactionError: If no transaction is active.
            DatabaseConnectionError: If ROLLBACK itself fails; the connection
                state is then unknown and the transaction flag is cleared.
        """
        if not self.handle.in_transaction:
            raise TransactionError("Cannot roll back: no active transaction.")
        try:
            self._send("ROLLBACK")
        except (self.handle.driver.error, DatabaseConnectionError) as e:
            self.handle.in_transaction = False
            logger.error(f"Rollback failed, connection state unknown: {e}")
            raise DatabaseConnectionError(f"Rollback failed: {e}") from e
        self.handle.in_transaction = False
        logger.debug("Transaction rolled back.")

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Run a block inside a transaction: commit on normal exit,
        roll back and re-raise if the block raises.
        """
        self.begin()
        try:
            yield
        except BaseException:
            if self.handle.in_transaction:
                self.rollback()
            raise
        self.commit()

    def _send(self, command: str) -> None:
        cur = self.handle.cursor()
        try:
            cur.execute(command)
        finally:
            cur.close()
