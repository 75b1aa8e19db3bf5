"""Python guest: runs user code with ``exec`` in a fresh namespace.

Top-level ``await`` is allowed; if the code ends in an expression its value is
echoed as a RESULT event (``repr``), the way an interactive prompt would.
"""

from __future__ import annotations

import ast
import asyncio
import builtins
import contextlib
import inspect
import platform
import traceback
from types import CodeType
from typing import Any

from coderunner.core.models import OutputLevel
from coderunner.core.protocol import PYTHON_CHANNEL
from coderunner.sandbox.guest import Emit, GuestFailure, GuestRuntime, LineWriter, main

FILENAME = "<exec>"
COMPILE_FLAGS = ast.PyCF_ALLOW_TOP_LEVEL_AWAIT


def compile_source(code: str) -> tuple[CodeType, CodeType | None]:
    """Compile code into its body and an optional trailing expression."""
    tree = compile(code, FILENAME, "exec", flags=ast.PyCF_ONLY_AST | COMPILE_FLAGS, dont_inherit=True)
    tail = None
    if tree.body and isinstance(tree.body[-1], ast.Expr):
        expression = ast.Expression(tree.body.pop().value)
        tail = compile(expression, FILENAME, "eval", flags=COMPILE_FLAGS, dont_inherit=True)
    body = compile(tree, FILENAME, "exec", flags=COMPILE_FLAGS, dont_inherit=True)
    return body, tail


def _is_async(code: CodeType | None) -> bool:
    return code is not None and bool(code.co_flags & inspect.CO_COROUTINE)


async def _evaluate_async(body: CodeType, tail: CodeType | None, namespace: dict[str, Any]) -> Any:
    value = eval(body, namespace)
    if _is_async(body):
        await value
    if tail is None:
        return None
    result = eval(tail, namespace)
    if _is_async(tail):
        result = await result
    return result


class PythonGuest(GuestRuntime):
    channel = PYTHON_CHANNEL

    def load(self) -> None:
        self.loading(f"Python {platform.python_version()} environment loaded")

    def run(self, code: str, emit: Emit) -> None:
        body, tail = compile_source(code)
        namespace: dict[str, Any] = {"__name__": "__main__", "__builtins__": builtins}
        stdout = LineWriter(emit, OutputLevel.LOG)
        stderr = LineWriter(emit, OutputLevel.ERROR)
        result = None

        try:
            with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
                if _is_async(body) or _is_async(tail):
                    result = asyncio.run(_evaluate_async(body, tail, namespace))
                else:
                    eval(body, namespace)
                    if tail is not None:
                        result = eval(tail, namespace)
        except SystemExit as e:
            if e.code not in (None, 0):
                raise GuestFailure(f"SystemExit: {e.code}") from None
        finally:
            stdout.finish()
            stderr.finish()

        if result is not None:
            emit(OutputLevel.RESULT, repr(result))

    def format_error(self, exc: BaseException) -> str:
        if isinstance(exc, SyntaxError) and exc.filename == FILENAME:
            return f"{type(exc).__name__}: {exc.msg} (line {exc.lineno})"

        frames = [frame for frame in traceback.extract_tb(exc.__traceback__) if frame.filename == FILENAME]
        lines = []
        if frames:
            lines.append("Traceback (most recent call last):")
            lines.extend(f"  line {frame.lineno}, in {frame.name}" for frame in frames)
        lines.extend(line.rstrip("\n") for line in traceback.format_exception_only(type(exc), exc))
        return "\n".join(lines)


if __name__ == "__main__":
    main(PythonGuest)
