"""
db/errors.py
------------
Error taxonomy for the database layer.
Driver exceptions are always chained onto these (``raise ... from exc``)
so callers can render a message without importing driver modules.
"""

from typing import Optional


class DatabaseError(Exception):
    """Base class for every error raised by the db package."""


class DatabaseConnectionError(DatabaseError):
    """Connecting, authenticating or reaching the server failed, or the handle is unusable."""


class QueryError(DatabaseError):
    """A statement was rejected before execution or failed in the driver."""

    def __init__(self, message: str, statement: Optional[str] = None):
        super().__init__(message)
        self.statement = statement


class TransactionError(DatabaseError):
    """Illegal transaction state transition (nested begin, commit/rollback while idle)."""
