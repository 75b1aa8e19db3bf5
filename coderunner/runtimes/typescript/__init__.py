"""TypeScript runtime: the TypeScript compiler running inside QuickJS-WASM.

Provides TypeScriptRunner.
"""

from .runner import TypeScriptRunner

__all__ = ["TypeScriptRunner"]
