"""
db/statement.py
---------------
Parsing helpers for SQL statements written with ``:name`` placeholders.

The scanner skips string literals, quoted identifiers, comments and
PostgreSQL ``::type`` casts, so only real placeholders are reported.
Values are never spliced into the text: rendering only rewrites the
placeholder markers into the driver's parameter style.
"""

import re
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Mapping

from db.errors import QueryError

_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_QUOTES = ("'", '"', "`")

SCALAR_TYPES = (str, int, float, bool, Decimal, date, datetime, time, bytes, type(None))


class StatementKind(Enum):
    """Statement category derived from the leading keyword."""
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    OTHER = "OTHER"

    @property
    def is_mutating(self) -> bool:
        return self in (StatementKind.INSERT, StatementKind.UPDATE, StatementKind.DELETE)


def _skip_quoted(sql: str, start: int, quote: str) -> int:
    """Return the index just past the quoted run opening at ``start``."""
    pos = start + 1
    while True:
        pos = sql.find(quote, pos)
        if pos == -1:
            return len(sql)
        if sql.startswith(quote * 2, pos):
            pos += 2
            continue
        return pos + 1


def _skip_comment(sql: str, start: int) -> int:
    """Return the index past a comment at ``start``, or ``start`` if there is none."""
    if sql.startswith("--", start):
        end = sql.find("\n", start)
        return len(sql) if end == -1 else end + 1
    if sql.startswith("/*", start):
        end = sql.find("*/", start + 2)
        return len(sql) if end == -1 else end + 2
    return start


def _tokens(sql: str) -> Iterator[tuple[str, str]]:
    """Split ``sql`` into ("text", chunk) and ("param", name) tokens."""
    pos, size, chunk_start = 0, len(sql), 0
    while pos < size:
        char = sql[pos]
        if char in _QUOTES:
            pos = _skip_quoted(sql, pos, char)
            continue
        skipped = _skip_comment(sql, pos)
        if skipped != pos:
            pos = skipped
            continue
        if char == ":":
            if sql.startswith("::", pos):
                pos += 2
                continue
            match = _NAME.match(sql, pos + 1)
            if match:
                if chunk_start < pos:
                    yield "text", sql[chunk_start:pos]
                yield "param", match.group(0)
                pos = chunk_start = match.end()
                continue
        pos += 1
    if chunk_start < size:
        yield "text", sql[chunk_start:]


def placeholders(sql: str) -> tuple[str, ...]:
    """Names of the ``:name`` placeholders in ``sql``, in order of first use."""
    seen: dict[str, None] = {}
    for kind, value in _tokens(sql):
        if kind == "param":
            seen.setdefault(value, None)
    return tuple(seen)


def render(sql: str, paramstyle: str) -> str:
    """
    Rewrite ``:name`` placeholders for the driver's parameter style.

    Args:
        sql: Statement text with ``:name`` placeholders.
        paramstyle: "named" (returned unchanged) or "pyformat".

    Returns:
        Statement text ready for ``cursor.execute(text, params_dict)``.
    """
    if paramstyle == "named":
        return sql
    if paramstyle != "pyformat":
        raise ValueError(f"Unsupported paramstyle: {paramstyle}")
    parts = []
    for kind, value in _tokens(sql):
        if kind == "param":
            parts.append(f"%({value})s")
        else:
            # pyformat drivers treat every % as a marker once params are passed
            parts.append(value.replace("%", "%%"))
    return "".join(parts)


def leading_keyword(sql: str) -> str:
    """First keyword of the statement, upper-cased, ignoring comments and parentheses."""
    pos, size = 0, len(sql)
    while pos < size:
        if sql[pos].isspace() or sql[pos] == "(":
            pos += 1
            continue
        skipped = _skip_comment(sql, pos)
        if skipped == pos:
            break
        pos = skipped
    match = _NAME.match(sql, pos)
    return match.group(0).upper() if match else ""


def classify(sql: str) -> StatementKind:
    """Classify a statement by its leading keyword."""
    try:
        return StatementKind(leading_keyword(sql))
    except ValueError:
        return StatementKind.OTHER


def check_params(sql: str, params: Mapping[str, Any]) -> None:
    """
    Ensure ``params`` matches the placeholders of ``sql`` exactly.

    Raises:
        QueryError: On empty SQL, a missing or unused parameter, or a non-scalar value.
    """
    if not sql or not sql.strip():
        raise QueryError("Provide SQL to execute.", statement=sql)
    expected = set(placeholders(sql))
    given = set(params)
    missing = sorted(expected - given)
    unused = sorted(given - expected)
    if missing or unused:
        details = []
        if missing:
            details.append(f"missing values for {', '.join(':' + name for name in missing)}")
        if unused:
            details.append(f"no placeholder for {', '.join(':' + name for name in unused)}")
        raise QueryError(f"Parameter mismatch: {'; '.join(details)}", statement=sql)
    for name, value in params.items():
        if not isinstance(value, SCALAR_TYPES):
            raise QueryError(
                f"Parameter :{name} must be a scalar value, got {type(value).__name__}",
                statement=sql,
            )
