"""SQLRunner: executes SQLite scripts in a guest process."""

from __future__ import annotations

from coderunner.core.models import SyntaxCheck
from coderunner.core.protocol import SQL_CHANNEL
from coderunner.runtimes.base import SandboxedRunner
from coderunner.runtimes.sql.statements import is_complete

EXAMPLE_CODE = """-- SQL example (SQLite)
-- Create a table
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    age INTEGER,
    email TEXT
);

-- Insert rows
INSERT INTO users (name, age, email) VALUES
    ('Alice', 25, 'alice@example.com'),
    ('Bob', 30, 'bob@example.com'),
    ('Carol', 28, 'carol@example.com');

-- Query rows
SELECT * FROM users;

-- Filtered query
SELECT name, age FROM users WHERE age > 26;

-- Aggregates
SELECT COUNT(*) AS total, AVG(age) AS avg_age FROM users;
"""


class SQLRunner(SandboxedRunner):
    language = "sql"
    channel = SQL_CHANNEL
    guest_module = "coderunner.runtimes.sql.guest"

    def get_placeholder(self) -> str:
        return "-- Enter SQL statements\nSELECT 1 + 1 AS result;"

    def get_example_code(self) -> str:
        return EXAMPLE_CODE

    def validate_syntax(self, code: str) -> SyntaxCheck:
        """Check that no string literal, comment or trigger body is left open.

        Table and column names are not resolved.
        """
        if not is_complete(code):
            return SyntaxCheck(valid=False, error="Incomplete SQL: unterminated literal or block")
        return SyntaxCheck(valid=True)
