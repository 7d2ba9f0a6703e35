"""
db/query_log.py
---------------
Connection-scoped, append-only record of executed statements.
One entry is appended per executor call, success or failure, and the
whole log is discarded when the owning connection handle closes.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional


@dataclass(frozen=True)
class QueryLogEntry:
    """
    One executed statement.

    Attributes:
        statement: SQL text as submitted (with ``:name`` placeholders).
        params: Bound parameter values by name.
        elapsed_ms: Wall-clock execution time in milliseconds.
        row_count: Rows returned or affected; None when the statement failed.
        error: Failure message; None when the statement succeeded.
        executed_at: UTC time the entry was recorded.
    """
    statement: str
    params: Mapping[str, Any]
    elapsed_ms: float
    row_count: Optional[int] = None
    error: Optional[str] = None
    executed_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        """Plain dict for display or serialization."""
        return {
            "statement": self.statement,
            "params": dict(self.params),
            "elapsed_ms": round(self.elapsed_ms, 3),
            "row_count": self.row_count,
            "error": self.error,
            "executed_at": self.executed_at.isoformat(),
        }


class QueryLog:
    """Ordered sequence of QueryLogEntry objects."""

    def __init__(self):
        self._entries: list[QueryLogEntry] = []

    def append(
        self,
        statement: str,
        params: Mapping[str, Any],
        elapsed_ms: float,
        row_count: Optional[int] = None,
        error: Optional[str] = None,
    ) -> QueryLogEntry:
        """Record a statement; exactly one of ``row_count``/``error`` is meaningful."""
        entry = QueryLogEntry(
            statement=statement,
            params=MappingProxyType(dict(params)),
            elapsed_ms=max(0.0, elapsed_ms),
            row_count=None if error is not None else row_count,
            error=error,
        )
        self._entries.append(entry)
        return entry

    def entries(self) -> tuple[QueryLogEntry, ...]:
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[QueryLogEntry]:
        return iter(self.entries())
