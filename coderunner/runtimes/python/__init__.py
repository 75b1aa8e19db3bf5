"""Python runtime: CPython ``exec`` inside a guest interpreter process.

Provides PythonRunner. The guest side lives in ``coderunner.runtimes.python.guest``
and supports top-level ``await`` and last-expression result echo.
"""

from .runner import PythonRunner

__all__ = ["PythonRunner"]
