"""Lifecycle and protocol driver for one guest process.

SandboxManager owns exactly one guest child process and speaks its Channel:
it spawns the guest on first use, waits for ``<P>_SANDBOX_READY``, sends one
``EXECUTE_<P>`` at a time and relays ``<P>_OUTPUT``/``<P>_ERROR`` to the
caller's sink until ``<P>_COMPLETE`` resolves the request.

A single reader task consumes the guest's stdout, so messages are handled in
the order the guest sent them. Requests are serialized with an asyncio.Lock;
the timeout budget of a request covers waiting for the lock, loading the
guest, and running the code. A timeout abandons the request but leaves the
guest running: the manager is flagged ``suspect`` and any late message tagged
with the abandoned request id is dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import signal
import time
import uuid
from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from coderunner.core.errors import (
    ExecutionTimeoutError,
    RunnerError,
    SandboxBootstrapError,
    SandboxCrashedError,
    SandboxDestroyedError,
)
from coderunner.core.logging import RunnerLogger
from coderunner.core.models import ExecutionResult, OutputEvent, OutputLevel
from coderunner.core.protocol import (
    Channel,
    Complete,
    ExecuteRequest,
    GuestError,
    Loading,
    MessageKind,
    Output,
    SandboxReady,
)

if TYPE_CHECKING:
    from coderunner.core.base import OutputSink

# Single protocol lines can carry large query results.
STREAM_LIMIT = 16 * 1024 * 1024
STDERR_TAIL_LINES = 20
_POSIX = hasattr(os, "killpg")


def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a guest together with any children it started."""
    with contextlib.suppress(ProcessLookupError, PermissionError):
        if _POSIX:
            os.killpg(process.pid, signal.SIGKILL)
        elif process.returncode is None:
            process.kill()


class SandboxState(str, Enum):
    """Observable lifecycle state of a SandboxManager."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    DESTROYED = "destroyed"


@dataclass
class _PendingRequest:
    request_id: str
    code: str
    on_output: OutputSink | None
    future: asyncio.Future[ExecutionResult]
    admitted: bool = False
    dispatched: bool = False
    error_relayed: bool = False
    started: float = field(default_factory=time.perf_counter)

    @property
    def settled(self) -> bool:
        return self.future.done()


class SandboxManager:
    """Drives one guest process through the sandbox protocol.

    The state returns to READY once a request settles. A request that timed
    out after reaching the guest leaves the state at FAILED, since the guest
    may still be busy with it, until the next request is dispatched. A
    request that timed out while still queued changes nothing.

    Attributes:
        channel: Message namespace of the guest language
        command: argv used to spawn the guest process
        language: Language id, used for logging and results
        display_name: Human-readable language name for progress messages
        suspect: True once a request timed out while the guest kept running
    """

    def __init__(
        self,
        channel: Channel,
        command: Sequence[str],
        language: str,
        display_name: str | None = None,
        logger: RunnerLogger | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.channel = channel
        self.command = list(command)
        self.language = language
        self.display_name = display_name or language
        self.logger = logger or RunnerLogger()
        self.env = dict(env) if env is not None else None
        self.suspect = False

        self._state = SandboxState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self._process: asyncio.subprocess.Process | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._ready = False
        self._spawned_at = 0.0
        self._pending: _PendingRequest | None = None
        self._fatal_error: str | None = None
        self._stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)

    @property
    def state(self) -> SandboxState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._ready and self._state is not SandboxState.DESTROYED

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    async def execute(
        self,
        code: str,
        on_output: OutputSink | None = None,
        timeout_ms: float | None = None,
    ) -> ExecutionResult:
        """Run code in the guest and wait for its terminal message.

        Args:
            code: Source text to send in the EXECUTE request
            on_output: Sink for output events of this request
            timeout_ms: Budget in milliseconds; None waits indefinitely

        Returns:
            ExecutionResult built from the guest's COMPLETE message

        Raises:
            SandboxDestroyedError: If the manager was destroyed
            SandboxBootstrapError: If the guest failed to load
            SandboxCrashedError: If the guest exited mid-request
            ExecutionTimeoutError: If the budget elapsed first
        """
        if self._state is SandboxState.DESTROYED:
            raise SandboxDestroyedError(f"{self.display_name} sandbox has been destroyed")
        if self._fatal_error is not None:
            raise SandboxBootstrapError(self._fatal_error)

        pending = _PendingRequest(
            request_id=uuid.uuid4().hex,
            code=code,
            on_output=on_output,
            future=asyncio.get_running_loop().create_future(),
        )
        deadline = None if timeout_ms is None else timeout_ms / 1000
        try:
            async with asyncio.timeout(deadline):
                async with self._lock:
                    return await self._run(pending)
        except TimeoutError:
            queued = not pending.admitted
            self.logger.log_timeout(self.language, timeout_ms or 0, pending.request_id, queued=queued)
            if not queued:
                self.suspect = True
                if self._state is SandboxState.EXECUTING:
                    self._state = SandboxState.FAILED
            raise ExecutionTimeoutError(timeout_ms or 0, queued=queued) from None

    async def _run(self, pending: _PendingRequest) -> ExecutionResult:
        if self._state is SandboxState.DESTROYED:
            raise SandboxDestroyedError(f"{self.display_name} sandbox has been destroyed")
        if self._fatal_error is not None:
            raise SandboxBootstrapError(self._fatal_error)

        pending.admitted = True
        self._pending = pending
        try:
            if self._process is None:
                await self._spawn(pending)
            if self._ready:
                await self._dispatch(pending)
            return await pending.future
        finally:
            if self._pending is pending:
                self._pending = None
            if self._ready and self._state in (SandboxState.COMPLETED, SandboxState.FAILED):
                self._state = SandboxState.READY

    async def _spawn(self, pending: _PendingRequest) -> None:
        self._state = SandboxState.LOADING
        self._ready = False
        self._stderr_tail.clear()
        self._relay(pending, OutputEvent(level=OutputLevel.INFO, data=f"Loading {self.display_name} runtime..."))

        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.env,
                limit=STREAM_LIMIT,
                start_new_session=_POSIX,
            )
        except OSError as e:
            message = f"Failed to start {self.display_name} runtime: {e}"
            self._mark_fatal(message)
            raise SandboxBootstrapError(message) from e

        self._process = process
        self._spawned_at = time.perf_counter()
        self.logger.log_sandbox_started(self.language, process.pid, self.command)
        self._reader_task = asyncio.create_task(self._read_stdout(process))
        self._stderr_task = asyncio.create_task(self._drain_stderr(process))

    async def _dispatch(self, pending: _PendingRequest) -> None:
        process = self._process
        if process is None or process.stdin is None:
            raise SandboxCrashedError(f"{self.display_name} runtime is not running")

        pending.dispatched = True
        pending.started = time.perf_counter()
        self._state = SandboxState.EXECUTING
        line = self.channel.encode_request(ExecuteRequest(request_id=pending.request_id, code=pending.code))
        try:
            process.stdin.write(line.encode("utf-8"))
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise SandboxCrashedError(f"{self.display_name} runtime closed its input: {e}") from e

    async def _read_stdout(self, process: asyncio.subprocess.Process) -> None:
        assert process.stdout is not None
        while True:
            try:
                line = await process.stdout.readline()
            except ValueError:
                self.logger.log_protocol_violation(self.language, "line exceeds stream limit", None)
                continue
            if not line:
                break

            message = self.channel.decode(line)
            if message is None:
                self.logger.log_protocol_violation(self.language, "malformed or unknown message", None)
                continue
            await self._handle_message(message)

        await self._on_exit(process)

    async def _handle_message(
        self, message: SandboxReady | Loading | Output | GuestError | Complete
    ) -> None:
        pending = self._pending

        if isinstance(message, SandboxReady):
            await self._on_ready()
        elif isinstance(message, Loading):
            if pending is not None and not pending.settled:
                self._relay(pending, OutputEvent(level=OutputLevel.INFO, data=message.message))
        elif isinstance(message, Output):
            if self._owns(pending, message.request_id):
                self._relay(pending, message.to_event())  # type: ignore[arg-type]
            else:
                self._drop(message.request_id, MessageKind.OUTPUT)
        elif isinstance(message, GuestError):
            if message.request_id is None and not self._ready:
                self._on_bootstrap_error(message.message)
            elif self._owns(pending, message.request_id):
                assert pending is not None
                pending.error_relayed = True
                self._relay(pending, OutputEvent(level=OutputLevel.ERROR, data=message.message))
            else:
                self._drop(message.request_id, MessageKind.ERROR)
        elif isinstance(message, Complete):
            if self._owns(pending, message.request_id):
                assert pending is not None
                self._complete(pending, message)
            else:
                self._drop(message.request_id, MessageKind.COMPLETE)

    def _owns(self, pending: _PendingRequest | None, request_id: str | None) -> bool:
        return (
            pending is not None
            and pending.dispatched
            and not pending.settled
            and request_id == pending.request_id
        )

    def _drop(self, request_id: str | None, kind: MessageKind) -> None:
        self.logger.log_protocol_violation(
            self.language,
            f"message for stale or unknown request {request_id}",
            self.channel.message_type(kind),
        )

    async def _on_ready(self) -> None:
        if self._ready:
            self._drop(None, MessageKind.READY)
            return

        self._ready = True
        self._state = SandboxState.READY
        startup_ms = (time.perf_counter() - self._spawned_at) * 1000
        self.logger.log_sandbox_ready(self.language, startup_ms)

        pending = self._pending
        if pending is not None and not pending.dispatched and not pending.settled:
            try:
                await self._dispatch(pending)
            except RunnerError as e:
                self._settle_error(pending, e)

    def _on_bootstrap_error(self, message: str) -> None:
        self._mark_fatal(message)
        pending = self._pending
        if pending is not None:
            self._settle_error(pending, SandboxBootstrapError(message))

    def _complete(self, pending: _PendingRequest, message: Complete) -> None:
        if not message.success and not pending.error_relayed:
            self._relay(
                pending,
                OutputEvent(level=OutputLevel.ERROR, data=message.error or "Execution failed"),
            )

        duration_ms = message.duration_ms
        if duration_ms <= 0:
            duration_ms = (time.perf_counter() - pending.started) * 1000

        self._state = SandboxState.COMPLETED if message.success else SandboxState.FAILED
        pending.future.set_result(
            ExecutionResult(
                success=message.success,
                duration_ms=duration_ms,
                language=self.language,
                error=None if message.success else (message.error or "Execution failed"),
            )
        )

    async def _on_exit(self, process: asyncio.subprocess.Process) -> None:
        returncode = await process.wait()
        if self._stderr_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._stderr_task

        if self._state is SandboxState.DESTROYED or self._process is not process:
            return

        detail = self._stderr_tail[-1] if self._stderr_tail else f"exit code {returncode}"
        pending = self._pending
        self._process = None

        if not self._ready:
            if self._fatal_error is None:
                self._mark_fatal(f"{self.display_name} runtime exited before it was ready: {detail}")
            if pending is not None:
                self._settle_error(pending, SandboxBootstrapError(self._fatal_error or detail))
            return

        self._ready = False
        self._state = SandboxState.FAILED
        if pending is not None:
            self._settle_error(
                pending,
                SandboxCrashedError(f"{self.display_name} runtime exited unexpectedly: {detail}"),
            )

    async def _drain_stderr(self, process: asyncio.subprocess.Process) -> None:
        assert process.stderr is not None
        while True:
            try:
                raw = await process.stderr.readline()
            except ValueError:
                continue
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip()
            if line:
                self._stderr_tail.append(line)
                self.logger.log_guest_stderr(self.language, line)

    def _mark_fatal(self, message: str) -> None:
        self._fatal_error = message
        self._state = SandboxState.FAILED
        self.logger.log_bootstrap_failed(self.language, message)

    def _settle_error(self, pending: _PendingRequest, error: RunnerError) -> None:
        if not pending.settled:
            pending.future.set_exception(error)

    def _relay(self, pending: _PendingRequest, event: OutputEvent) -> None:
        if pending.on_output is None:
            return
        try:
            pending.on_output(event)
        except Exception as e:
            self.logger.log_sink_error(self.language, f"{type(e).__name__}: {e}")

    async def destroy(self) -> None:
        """Kill the guest, stop the reader tasks and fail any pending request.

        Idempotent. A destroyed manager rejects further execute() calls.
        """
        if self._state is SandboxState.DESTROYED:
            return

        self._state = SandboxState.DESTROYED
        self._ready = False
        process, self._process = self._process, None
        tasks = [task for task in (self._reader_task, self._stderr_task) if task is not None]
        self._reader_task = self._stderr_task = None

        for task in tasks:
            task.cancel()

        if process is not None:
            _kill(process)
            await process.wait()

        await asyncio.gather(*tasks, return_exceptions=True)

        pending = self._pending
        if pending is not None:
            self._settle_error(
                pending, SandboxDestroyedError(f"{self.display_name} sandbox was destroyed")
            )

        self.logger.log_sandbox_destroyed(self.language, process.pid if process else None)
