"""JsonRunner: validates JSON and re-serializes it in canonical form.

On success an INFO summary (``Object, 3 keys``) is followed by a
``json-formatted`` event holding the 2-space re-serialization and the parsed
value. On failure the error names the 1-based line and column of the
parser's offset.
"""

from __future__ import annotations

import json
import re
from typing import Any

from coderunner.core.models import OutputLevel, SyntaxCheck
from coderunner.runtimes.base import DirectRunner
from coderunner.sandbox.guest import Emit

EXAMPLE_CODE = """{
  "name": "coderunner",
  "version": "0.1.0",
  "features": [
    "code execution",
    "live output",
    "previews"
  ],
  "languages": {
    "javascript": true,
    "python": true,
    "sql": true
  },
  "author": {
    "name": "Developer",
    "email": "dev@example.com"
  }
}
"""


# Strings are matched first so a constant's name inside one is skipped.
_CONSTANT_TOKEN = re.compile(r'"(?:[^"\\]|\\.)*"|(-?Infinity|NaN)')


class _NonStandardConstant(ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


def _reject_constant(name: str) -> Any:
    raise _NonStandardConstant(name)


def loads_strict(text: str) -> Any:
    """Parse JSON, rejecting the NaN and Infinity constants json.loads allows.

    Raises:
        json.JSONDecodeError: For any document that is not standard JSON
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except _NonStandardConstant as e:
        position = next(
            (match.start(1) for match in _CONSTANT_TOKEN.finditer(text) if match.group(1) == e.name),
            0,
        )
        raise json.JSONDecodeError(f"{e.name} is not valid JSON", text, position) from None


def offset_to_line_col(text: str, offset: int) -> tuple[int, int]:
    """Convert a character offset into a 1-based (line, column) pair."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def format_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, allow_nan=False)


def describe_value(value: Any) -> str:
    if isinstance(value, dict):
        return f"Object, {len(value)} keys"
    if isinstance(value, list):
        return f"Array, {len(value)} items"
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, (int, float)):
        return "Number"
    if isinstance(value, str):
        return "String"
    return "null"


class JsonRunner(DirectRunner):
    language = "json"

    def render(self, code: str, emit: Emit) -> None:
        value = loads_strict(code)
        emit(OutputLevel.INFO, f"✓ Valid JSON | {describe_value(value)}")
        emit(OutputLevel.JSON_FORMATTED, {"json": format_json(value), "parsed": value})

    def describe_error(self, code: str, exc: Exception) -> str:
        if isinstance(exc, json.JSONDecodeError):
            line, column = offset_to_line_col(code, exc.pos)
            return f"✗ Invalid JSON: line {line}, column {column}: {exc.msg}"
        return f"✗ Invalid JSON: {exc}"

    def validate_syntax(self, code: str) -> SyntaxCheck:
        try:
            loads_strict(code)
        except json.JSONDecodeError as e:
            line, column = offset_to_line_col(code, e.pos)
            return SyntaxCheck(valid=False, error=f"line {line}, column {column}: {e.msg}")
        return SyntaxCheck(valid=True)

    def get_placeholder(self) -> str:
        return '{\n  "key": "value"\n}'

    def get_example_code(self) -> str:
        return EXAMPLE_CODE
