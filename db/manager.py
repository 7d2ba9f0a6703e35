"""
db/manager.py
-------------
Lazily builds the single Database for a process and hands the same
instance back until it is explicitly closed.

The manager is an ordinary object owned by the composition root
(see main.py) and passed to whoever needs it; first-time construction
is guarded by a lock so racing threads open one connection only.
"""

import threading
from typing import Optional

from db.config import ConnectionConfig
from db.connection import ConnectionHandle
from db.database import Database
from db.driver import Driver, POSTGRES
from utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Construct-once, reuse-until-closed access to a Database."""

    def __init__(self, driver: Optional[Driver] = None):
        self.driver = driver or POSTGRES
        self._lock = threading.Lock()
        self._database: Optional[Database] = None
        self._config: Optional[ConnectionConfig] = None

    @property
    def has_instance(self) -> bool:
        return self._database is not None

    def get_instance(self, config: ConnectionConfig) -> Database:
        """
        Return the shared Database, connecting on first use.

        The config of the first successful call is kept; later calls get the
        existing instance whatever they pass.

        Args:
            config: Connection settings used if no instance exists yet.

        Raises:
            DatabaseConnectionError: If the connection attempt fails. No
                instance is kept, so a later call tries again.
        """
        database = self._database
        if database is not None:
            self._warn_if_different(config)
            return database
        with self._lock:
            if self._database is None:
                handle = ConnectionHandle(config, self.driver)
                handle.open()
                self._database = Database(handle)
                self._config = config
            else:
                self._warn_if_different(config)
            return self._database

    def close_connection(self) -> None:
        """Close the shared Database, if any; the next get_instance reconnects."""
        with self._lock:
            database = self._database
            if database is None:
                return
            self._database = None
            self._config = None
            database.close()

    def _warn_if_different(self, config: ConnectionConfig) -> None:
        current = self._config
        if current is not None and config != current:
            logger.warning(
                f"Ignoring connection config {config.describe()}; "
                f"already connected to {current.describe()}"
            )
