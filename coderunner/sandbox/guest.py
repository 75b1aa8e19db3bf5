"""Guest-side serve loop shared by every sandboxed language.

A guest module subclasses GuestRuntime, implements load() and run(), and ends
with ``main(MyGuest)``. The process then:

1. Moves its protocol streams aside (user prints cannot corrupt them: fd 1 is
   pointed at stderr and fd 0 at the null device).
2. Loads its engine; a failure is reported as an ERROR without a request id.
3. Posts ``<P>_SANDBOX_READY`` and serves ``EXECUTE_<P>`` requests from stdin,
   one at a time, until stdin closes.
"""

from __future__ import annotations

import io
import os
import sys
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import IO, Any, ClassVar

from pydantic import BaseModel

from coderunner.core.models import OutputLevel
from coderunner.core.protocol import (
    Channel,
    Complete,
    ExecuteRequest,
    GuestError,
    Loading,
    Output,
    SandboxReady,
)

Emit = Callable[[OutputLevel, Any], None]


class LineWriter(io.TextIOBase):
    """Text stream that emits one event per completed line."""

    def __init__(self, emit: Emit, level: OutputLevel) -> None:
        super().__init__()
        self._emit = emit
        self._level = level
        self._buffer = ""

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self._emit(self._level, line)
        return len(text)

    def finish(self) -> None:
        """Emit a trailing partial line, if any."""
        if self._buffer:
            self._emit(self._level, self._buffer)
            self._buffer = ""


class GuestFailure(Exception):
    """Raised by run() to fail a request with a prepared message.

    Attributes:
        reported: True when the details were already emitted as ERROR output,
                  so only the terminal COMPLETE carries the message
    """

    def __init__(self, message: str, reported: bool = False) -> None:
        super().__init__(message)
        self.reported = reported


class GuestRuntime(ABC):
    """Base class for the engine side of a sandboxed language."""

    channel: ClassVar[Channel]

    def __init__(self, argv: Sequence[str] | None = None) -> None:
        self.argv = list(argv or [])
        self._input: IO[str] | None = None
        self._output: IO[str] | None = None

    def load(self) -> None:
        """Bring the engine up. Raise to report a bootstrap failure."""
        return None

    @abstractmethod
    def run(self, code: str, emit: Emit) -> None:
        """Execute one request, emitting output as it is produced."""

    def format_error(self, exc: BaseException) -> str:
        """Normalize an engine exception into a one-message string."""
        if isinstance(exc, GuestFailure):
            return str(exc)
        return f"{type(exc).__name__}: {exc}"

    def loading(self, message: str) -> None:
        """Report bootstrap progress."""
        self._post(Loading(message=message))

    def serve(self) -> int:
        self._claim_stdio()
        try:
            self.load()
        except Exception as e:
            self._post(GuestError(message=self.format_error(e)))
            return 1

        self._post(SandboxReady())
        assert self._input is not None
        for line in self._input:
            request = self.channel.decode_request(line)
            if request is None:
                continue
            self._handle(request)
        return 0

    def _handle(self, request: ExecuteRequest) -> None:
        request_id = request.request_id
        started = time.perf_counter()

        def emit(level: OutputLevel, data: Any) -> None:
            self._post(Output(request_id=request_id, level=level, data=data))

        def elapsed() -> float:
            return (time.perf_counter() - started) * 1000

        try:
            self.run(request.code, emit)
        except GuestFailure as e:
            message = str(e)
            if not e.reported:
                self._post(GuestError(request_id=request_id, message=message))
            self._post(Complete(request_id=request_id, success=False, duration_ms=elapsed(), error=message))
        except Exception as e:
            message = self.format_error(e)
            self._post(GuestError(request_id=request_id, message=message))
            self._post(Complete(request_id=request_id, success=False, duration_ms=elapsed(), error=message))
        else:
            self._post(Complete(request_id=request_id, success=True, duration_ms=elapsed()))

    def _claim_stdio(self) -> None:
        sys.stdout.flush()
        in_fd = os.dup(0)
        out_fd = os.dup(1)

        devnull = os.open(os.devnull, os.O_RDONLY)
        os.dup2(devnull, 0)
        os.close(devnull)
        os.dup2(2, 1)

        self._input = os.fdopen(in_fd, "r", encoding="utf-8", errors="replace", newline="\n")
        self._output = os.fdopen(out_fd, "w", encoding="utf-8", newline="\n")

    def _post(self, message: BaseModel) -> None:
        assert self._output is not None
        self._output.write(self.channel.encode(message))
        self._output.flush()


def main(runtime_cls: type[GuestRuntime], argv: Sequence[str] | None = None) -> None:
    """Entry point for ``python -m coderunner.runtimes.<lang>.guest``."""
    runtime = runtime_cls(sys.argv[1:] if argv is None else argv)
    sys.exit(runtime.serve())
