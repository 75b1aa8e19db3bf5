"""JavaScript runtime: QuickJS compiled to WASM, run by Wasmtime in a guest process.

Provides JavaScriptRunner. Each execution gets a fresh WASM store with fuel
and memory limits.
"""

from .runner import JavaScriptRunner

__all__ = ["JavaScriptRunner"]
