"""SQL guest: runs statements against a fresh in-memory SQLite database.

A failing statement is reported and execution continues with the next one;
the request fails overall if any statement failed.
"""

from __future__ import annotations

import contextlib
import sqlite3
from typing import Any

from coderunner.core.models import OutputLevel
from coderunner.core.protocol import SQL_CHANNEL
from coderunner.runtimes.sql.statements import describe_change, split_statements
from coderunner.sandbox.guest import Emit, GuestFailure, GuestRuntime, main

STATEMENT_PREVIEW_LENGTH = 100


def _cell(value: Any) -> Any:
    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    return value


def _preview(statement: str) -> str:
    if len(statement) <= STATEMENT_PREVIEW_LENGTH:
        return statement
    return statement[:STATEMENT_PREVIEW_LENGTH] + "..."


class SQLGuest(GuestRuntime):
    channel = SQL_CHANNEL

    def load(self) -> None:
        self.loading(f"SQLite {sqlite3.sqlite_version} environment loaded")

    def run(self, code: str, emit: Emit) -> None:
        statements = split_statements(code)
        if not statements:
            emit(OutputLevel.INFO, "No SQL statements to execute")
            return

        failures = 0
        with contextlib.closing(sqlite3.connect(":memory:", isolation_level=None)) as conn:
            for index, statement in enumerate(statements):
                try:
                    cursor = conn.execute(statement)
                    if cursor.description is not None:
                        columns = [column[0] for column in cursor.description]
                        rows = [[_cell(value) for value in row] for row in cursor.fetchall()]
                        emit(
                            OutputLevel.RESULT,
                            {"columns": columns, "rows": rows, "statement_index": index},
                        )
                    else:
                        message = describe_change(statement, cursor.rowcount)
                        if message is not None:
                            emit(OutputLevel.INFO, message)
                except sqlite3.Error as e:
                    failures += 1
                    emit(OutputLevel.ERROR, f"Statement failed: {e}")
                    emit(OutputLevel.ERROR, f"Statement: {_preview(statement)}")

        if failures:
            raise GuestFailure(
                f"{failures} of {len(statements)} statement(s) failed", reported=True
            )


if __name__ == "__main__":
    main(SQLGuest)
