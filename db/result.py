"""
db/result.py
------------
Normalized outcome of one executed statement.
"""

from dataclasses import dataclass
from typing import Any, Optional

from db.statement import StatementKind

Row = dict[str, Any]


@dataclass(frozen=True)
class Result:
    """
    What a statement produced.

    Row-returning statements carry ``rows`` (possibly empty); ``row`` is a
    view of its first element. Mutating statements leave ``rows`` as None
    and always carry ``affected_row_count``. ``last_inserted_id`` is only
    set after a successful INSERT.

    Attributes:
        kind: Statement category from the leading keyword.
        rows: Returned rows as column→value dicts, or None for mutating statements.
        affected_row_count: Rows changed (mutating) or returned (row-returning).
        last_inserted_id: Identifier generated by an INSERT.
    """
    kind: StatementKind
    rows: Optional[tuple[Row, ...]] = None
    affected_row_count: int = 0
    last_inserted_id: Optional[int] = None

    @property
    def returns_rows(self) -> bool:
        return self.rows is not None

    @property
    def row(self) -> Optional[Row]:
        """First returned row, or None when nothing was returned."""
        if not self.rows:
            return None
        return self.rows[0]

    @property
    def row_count(self) -> int:
        if self.rows is not None:
            return len(self.rows)
        return self.affected_row_count
