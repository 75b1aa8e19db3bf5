"""Lua runtime: a Lua VM embedded with ``lupa`` inside a guest process.

Provides LuaRunner. The runner is only registered when ``lupa`` is importable.
"""

from .runner import LuaRunner

__all__ = ["LuaRunner"]
