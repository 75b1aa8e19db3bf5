"""Runner variants: sandboxed (guest process) and direct (in-process).

SandboxedRunner lazily builds one SandboxManager and forwards execute() to it,
converting every sandbox failure into a failed ExecutionResult plus an ERROR
event. DirectRunner renders code locally through an emit callback.
"""

from __future__ import annotations

import os
import time
from abc import abstractmethod
from pathlib import Path
from typing import Any, ClassVar

from coderunner.core.base import BaseRunner, OutputSink
from coderunner.core.errors import ExecutionTimeoutError, RunnerError
from coderunner.core.models import ExecutionResult, OutputEvent, OutputLevel
from coderunner.core.protocol import Channel
from coderunner.sandbox.guest import Emit
from coderunner.sandbox.manager import SandboxManager

# Directory containing the coderunner package, put on the guest's PYTHONPATH.
PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent


class SandboxedRunner(BaseRunner):
    """Runner whose code executes in a guest process.

    Subclasses name their Channel and the guest module launched with
    ``python -m``; guest_args() adds engine-specific arguments.
    """

    channel: ClassVar[Channel]
    guest_module: ClassVar[str]

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._manager: SandboxManager | None = None

    @property
    def manager(self) -> SandboxManager | None:
        return self._manager

    def guest_args(self) -> list[str]:
        return []

    def guest_command(self) -> list[str]:
        return [self.settings.python_executable, "-m", self.guest_module, *self.guest_args()]

    def guest_environment(self) -> dict[str, str]:
        env = dict(os.environ)
        existing = env.get("PYTHONPATH")
        env["PYTHONPATH"] = (
            os.pathsep.join([str(PACKAGE_ROOT), existing]) if existing else str(PACKAGE_ROOT)
        )
        env["PYTHONIOENCODING"] = "utf-8"
        return env

    async def initialize(self) -> None:
        if self._manager is None:
            self._manager = SandboxManager(
                channel=self.channel,
                command=self.guest_command(),
                language=self.language,
                display_name=self.display_name,
                logger=self.logger,
                env=self.guest_environment(),
            )

    async def execute(
        self,
        code: str,
        on_output: OutputSink | None = None,
        timeout: float | None = None,
    ) -> ExecutionResult:
        timeout_ms = timeout if timeout is not None else self.settings.timeout_for(self.language)
        self.logger.log_execution_start(self.language, timeout_ms, len(code.encode("utf-8")))
        started = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - started) * 1000

        try:
            await self.initialize()
            assert self._manager is not None
            result = await self._manager.execute(code, on_output, timeout_ms)
        except ExecutionTimeoutError as e:
            result = self._failure(on_output, str(e), elapsed(), error="timeout", timed_out=True)
            if self.settings.recycle_on_timeout and not e.queued:
                await self.cleanup()
        except RunnerError as e:
            result = self._failure(on_output, str(e), elapsed())
        except Exception as e:
            result = self._failure(on_output, f"{type(e).__name__}: {e}", elapsed())

        self.logger.log_execution_complete(result)
        return result

    async def cleanup(self) -> None:
        manager, self._manager = self._manager, None
        if manager is not None:
            await manager.destroy()


class DirectRunner(BaseRunner):
    """Runner that renders code in-process without a guest."""

    @abstractmethod
    def render(self, code: str, emit: Emit) -> None:
        """Process code, emitting events; raise to report failure."""

    def describe_error(self, code: str, exc: Exception) -> str:
        return f"{type(exc).__name__}: {exc}"

    async def execute(
        self,
        code: str,
        on_output: OutputSink | None = None,
        timeout: float | None = None,
    ) -> ExecutionResult:
        timeout_ms = timeout if timeout is not None else self.settings.timeout_for(self.language)
        self.logger.log_execution_start(self.language, timeout_ms, len(code.encode("utf-8")))
        started = time.perf_counter()

        def emit(level: OutputLevel, data: Any) -> None:
            self._emit(on_output, OutputEvent(level=level, data=data))

        try:
            self.render(code, emit)
        except Exception as e:
            result = self._failure(
                on_output,
                self.describe_error(code, e),
                (time.perf_counter() - started) * 1000,
            )
        else:
            result = ExecutionResult(
                success=True,
                duration_ms=(time.perf_counter() - started) * 1000,
                language=self.language,
            )

        self.logger.log_execution_complete(result)
        return result
