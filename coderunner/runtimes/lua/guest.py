"""Lua guest: runs each request in a fresh ``lupa`` LuaRuntime.

``print`` and ``io.write`` are routed to LOG events. A chunk that returns a
non-nil value has it echoed as ``=> value``.
"""

from __future__ import annotations

import re
from typing import Any

import lupa

from coderunner.core.models import OutputLevel
from coderunner.core.protocol import LUA_CHANNEL
from coderunner.sandbox.guest import Emit, GuestRuntime, LineWriter, main

_CHUNK_LOCATION = re.compile(r'\[string "[^"]*"\]:(\d+):')

PRELUDE = """
local emit_write = ...
print = function(...)
    local parts = {}
    for i = 1, select("#", ...) do
        parts[i] = tostring((select(i, ...)))
    end
    emit_write(table.concat(parts, "\\t") .. "\\n")
end
io.write = function(...)
    for i = 1, select("#", ...) do
        emit_write(tostring((select(i, ...))))
    end
    return io
end
"""


def normalize_lua_error(message: str) -> str:
    """Replace chunk locations (``[string "..."]:3:``) with ``line 3:``.

    Only the first line is kept; lupa appends a stack traceback after it.
    """
    lines = message.strip().splitlines()
    return _CHUNK_LOCATION.sub(r"line \1:", lines[0] if lines else message)


class LuaGuest(GuestRuntime):
    channel = LUA_CHANNEL

    def load(self) -> None:
        version = lupa.LuaRuntime().eval("_VERSION")
        self.loading(f"{version} environment loaded")

    def run(self, code: str, emit: Emit) -> None:
        lua = lupa.LuaRuntime(unpack_returned_tuples=True)
        stdout = LineWriter(emit, OutputLevel.LOG)
        lua.execute(PRELUDE, stdout.write)

        try:
            result = lua.execute(code)
        finally:
            stdout.finish()

        text = self._describe(lua, result)
        if text is not None:
            emit(OutputLevel.RESULT, f"=> {text}")

    def _describe(self, lua: Any, result: Any) -> str | None:
        if result is None:
            return None
        tostring = lua.globals().tostring
        values = result if isinstance(result, tuple) else (result,)
        return ", ".join(str(tostring(value)) for value in values)

    def format_error(self, exc: BaseException) -> str:
        if isinstance(exc, lupa.LuaError):
            return normalize_lua_error(str(exc))
        return super().format_error(exc)


if __name__ == "__main__":
    main(LuaGuest)
