"""Statement splitting and confirmation messages for SQLite scripts.

Statements are split where SQLite itself considers them complete, so
semicolons inside string literals, comments and trigger bodies do not split.
"""

from __future__ import annotations

import re
import sqlite3

_COMMENTS = re.compile(r"--[^\n]*|/\*.*?\*/", re.DOTALL)

_CONFIRMATIONS = {
    "INSERT": "✓ Inserted {count} row(s)",
    "REPLACE": "✓ Inserted {count} row(s)",
    "UPDATE": "✓ Updated {count} row(s)",
    "DELETE": "✓ Deleted {count} row(s)",
    "CREATE": "✓ Created",
    "DROP": "✓ Dropped",
    "ALTER": "✓ Altered",
}


def _strip_comments(sql: str) -> str:
    return _COMMENTS.sub(" ", sql)


def has_sql(text: str) -> bool:
    """True if text holds anything besides comments, blanks and semicolons."""
    return bool(_strip_comments(text).strip().strip(";").strip())


def split_statements(sql: str) -> list[str]:
    """Split a script into complete statements, dropping empty ones."""
    statements = []
    current = ""
    parts = sql.split(";")
    for index, part in enumerate(parts):
        current += part
        if index == len(parts) - 1:
            break
        current += ";"
        if sqlite3.complete_statement(current):
            if has_sql(current):
                statements.append(current.strip())
            current = ""

    if has_sql(current):
        statements.append(current.strip())
    return statements


def is_complete(sql: str) -> bool:
    """False when a string literal, comment or BEGIN...END block is left open."""
    return sqlite3.complete_statement(sql.rstrip() + "\n;")


def leading_keyword(statement: str) -> str:
    words = _strip_comments(statement).split()
    return words[0].upper() if words else ""


def describe_change(statement: str, rowcount: int) -> str | None:
    """Confirmation message for a statement that returned no rows."""
    template = _CONFIRMATIONS.get(leading_keyword(statement))
    if template is None:
        return None
    return template.format(count=max(rowcount, 0))
