"""
db/config.py
------------
Immutable connection settings handed to the ConnectionManager.
"""

from dataclasses import dataclass
from typing import Optional

import config
from db.errors import DatabaseConnectionError


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Credentials and address of the database server.

    Attributes:
        host: Server host name.
        user: Login role.
        password: Login password (may be empty, never None).
        database: Database name (file path for SQLite).
        port: TCP port.
        connect_timeout: Seconds to wait for the server on connect.
    """
    host: str
    user: str
    password: Optional[str]
    database: str
    port: int
    connect_timeout: int = 5

    @classmethod
    def from_env(cls) -> "ConnectionConfig":
        """Build a config from the constants loaded in config.py."""
        return cls(
            host=config.DB_HOST,
            user=config.DB_USER,
            password=config.DB_PASS,
            database=config.DB_NAME,
            port=config.DB_PORT,
            connect_timeout=config.DB_CONNECT_TIMEOUT,
        )

    def validate(self) -> None:
        """
        Check that every field needed for a connection attempt is present.

        Raises:
            DatabaseConnectionError: If a field is missing or malformed.
        """
        missing = [
            name for name in ("host", "user", "database")
            if not getattr(self, name)
        ]
        if self.password is None:
            missing.append("password")
        if missing:
            raise DatabaseConnectionError(
                f"Incomplete connection config, missing: {', '.join(missing)}"
            )
        if isinstance(self.port, bool) or not isinstance(self.port, int) or self.port <= 0:
            raise DatabaseConnectionError(f"Invalid port in connection config: {self.port!r}")

    def describe(self) -> str:
        """Return a log-safe description (no password)."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"
