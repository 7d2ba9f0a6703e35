"""
db/connection.py
----------------
Owns the single live database connection.
The handle moves through UNCONNECTED -> OPEN -> CLOSED and never reopens;
the ConnectionManager builds a fresh handle after an explicit close.
"""

from enum import Enum
from typing import Optional

from db.config import ConnectionConfig
from db.driver import Driver
from db.errors import DatabaseConnectionError
from db.query_log import QueryLog
from utils.logger import get_logger

logger = get_logger(__name__)


class HandleState(Enum):
    UNCONNECTED = "unconnected"
    OPEN = "open"
    CLOSED = "closed"


class ConnectionHandle:
    """
    Wraps one DB-API connection together with its connection-scoped state:
    the transaction flag and the query log.
    """

    def __init__(self, config: ConnectionConfig, driver: Driver):
        self.config = config
        self.driver = driver
        self.state = HandleState.UNCONNECTED
        self.in_transaction = False
        self.query_log = QueryLog()
        self._conn = None

    @property
    def is_open(self) -> bool:
        return self.state is HandleState.OPEN

    def open(self) -> None:
        """
        Connect to the database.

        Raises:
            DatabaseConnectionError: If the config is incomplete, the server
                cannot be reached or rejects the credentials, or the handle
                was already closed.
        """
        if self.state is HandleState.OPEN:
            return
        if self.state is HandleState.CLOSED:
            raise DatabaseConnectionError("Connection handle is closed; request a new one from the manager.")
        self.config.validate()
        try:
            self._conn = self.driver.connect(self.config)
        except (self.driver.error, OSError) as e:
            logger.error(f"Failed to connect to {self.config.describe()} ({self.driver.name}): {e}")
            raise DatabaseConnectionError(f"Could not connect to {self.config.describe()}: {e}") from e
        self.state = HandleState.OPEN
        logger.info(f"Database connection opened: {self.config.describe()} ({self.driver.name})")

    def cursor(self):
        """
        Return a new DB-API cursor, connecting first if needed.

        Raises:
            DatabaseConnectionError: If the handle is closed or connecting fails.
        """
        if self.state is HandleState.UNCONNECTED:
            self.open()
        if self.state is HandleState.CLOSED:
            raise DatabaseConnectionError("Connection handle is closed.")
        try:
            return self._conn.cursor()
        except self.driver.error as e:
            raise DatabaseConnectionError(f"Could not obtain a cursor: {e}") from e

    def ping(self) -> bool:
        """Return True if the connection answers ``SELECT 1``. Never raises."""
        if self.state is not HandleState.OPEN:
            return False
        try:
            cur = self._conn.cursor()
            try:
                cur.execute("SELECT 1")
                row: Optional[tuple] = cur.fetchone()
            finally:
                cur.close()
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False
        return row is not None

    def close(self) -> None:
        """Close the connection and discard the transaction flag and query log."""
        if self.state is HandleState.OPEN:
            if self.in_transaction:
                logger.warning("Closing connection with an open transaction; the server will roll it back.")
            try:
                self._conn.close()
            finally:
                self._conn = None
                self.in_transaction = False
                self.query_log.clear()
                self.state = HandleState.CLOSED
            logger.info(f"Database connection closed: {self.config.describe()}")
            return
        self.in_transaction = False
        self.query_log.clear()
        self.state = HandleState.CLOSED
