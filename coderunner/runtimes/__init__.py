"""Language runners.

Each language lives in its own subpackage. Sandboxed languages also ship a
``guest`` module that runs inside the child process.
"""

from __future__ import annotations

from .base import DirectRunner, SandboxedRunner

__all__ = ["DirectRunner", "SandboxedRunner"]
