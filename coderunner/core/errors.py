"""Exception classes for runner and sandbox failures.

Provides domain-specific exceptions raised by the sandbox manager and the
settings loader. Runners catch every RunnerError at their execute() boundary
and convert it into a failed ExecutionResult, so callers of execute() never
see these directly.
"""

from __future__ import annotations


class RunnerError(Exception):
    """Base class for all code runner failures."""

    pass


class SettingsValidationError(RunnerError):
    """Raised when runner settings are invalid.

    Wraps Pydantic ValidationError with a domain-specific name, the same way
    a malformed config/runner.toml or a negative timeout is reported.
    """

    pass


class SandboxBootstrapError(RunnerError):
    """Raised when a guest runtime fails to load.

    Covers a missing engine (interpreter not installed, WASM binary absent),
    a guest that reports an error before signalling readiness, and a guest
    process that exits before it ever became ready. A manager in this state
    stays failed until it is destroyed and recreated.
    """

    pass


class SandboxCrashedError(RunnerError):
    """Raised when the guest process exits while a request is in flight."""

    pass


class SandboxDestroyedError(RunnerError):
    """Raised when a destroyed sandbox manager is asked to execute code."""

    pass


class ExecutionTimeoutError(RunnerError):
    """Raised when no terminal message arrives within the timeout budget.

    The guest is not stopped: it may still be running the abandoned request.

    Attributes:
        timeout_ms: The budget that elapsed, in milliseconds
        queued: True if the budget ran out while another request held the
            guest, so this request never reached it
    """

    def __init__(self, timeout_ms: float, queued: bool = False) -> None:
        super().__init__(f"Execution timed out after {timeout_ms:g} ms")
        self.timeout_ms = timeout_ms
        self.queued = queued
