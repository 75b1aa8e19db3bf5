"""LuaRunner: executes Lua through lupa in a guest process."""

from __future__ import annotations

import importlib.util
from typing import Any

from coderunner.core.errors import SandboxBootstrapError
from coderunner.core.protocol import LUA_CHANNEL
from coderunner.runtimes.base import SandboxedRunner

EXAMPLE_CODE = """-- Lua example
print("Hello, Lua!")

-- Variables and arithmetic
local x = 10
local y = 20
print("x + y = " .. (x + y))

-- Tables (arrays)
local fruits = {"apple", "banana", "orange"}
for i, fruit in ipairs(fruits) do
    print(i .. ": " .. fruit)
end

-- Functions
local function factorial(n)
    if n <= 1 then
        return 1
    else
        return n * factorial(n - 1)
    end
end

print("5! = " .. factorial(5))

return factorial(6)
"""


class LuaRunner(SandboxedRunner):
    language = "lua"
    channel = LUA_CHANNEL
    guest_module = "coderunner.runtimes.lua.guest"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        if importlib.util.find_spec("lupa") is None:
            raise SandboxBootstrapError("lupa is not installed")
        super().__init__(*args, **kwargs)

    def get_placeholder(self) -> str:
        return '-- Enter Lua code\nprint("Hello, World!")'

    def get_example_code(self) -> str:
        return EXAMPLE_CODE
