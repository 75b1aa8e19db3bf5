"""Structured logging for runner executions and sandbox lifecycle events.

Provides RunnerLogger class that uses structlog for structured event emission
(runner.execution.start, runner.sandbox.ready, protocol violations). Configures
structlog with console rendering by default but allows custom configuration.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TextIO

import structlog

if TYPE_CHECKING:
    from coderunner.core.models import ExecutionResult


def configure_structlog(
    level: int = logging.INFO, use_json: bool = False, file: TextIO | None = None
) -> None:
    """Configure structlog with sensible defaults for runner logging.

    Args:
        level: Minimum log level (default: logging.INFO)
        use_json: If True, use JSON renderer; otherwise use console renderer
        file: Stream to write log lines to (default: stdout)
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=file),
        cache_logger_on_first_use=True,
    )


class RunnerLogger:
    """Wrapper for structured logging of runner and sandbox events.

    Accepts either structlog or standard logging.Logger instances and normalizes
    emission so callers do not need to care which backend is in use.
    """

    _MAX_SNIPPET_LENGTH = 200
    _SNIPPET_TRUNCATION_SUFFIX = "...[truncated]"

    def __init__(self, logger: Any = None) -> None:
        """Initialize RunnerLogger with optional custom logger.

        Args:
            logger: Optional structlog BoundLogger, logging.Logger, or string name.
                    If None, a default structlog logger named 'coderunner' is created.
                    If string, creates a structlog logger with that name.
        """
        if logger is None:
            self._logger = structlog.get_logger("coderunner")
        elif isinstance(logger, str):
            self._logger = structlog.get_logger(logger)
        else:
            self._logger = logger

    @property
    def logger(self) -> Any:
        """Expose the underlying logger instance (structlog or logging.Logger)."""
        return self._logger

    def _emit(self, level: int, message: str, **fields: Any) -> None:
        """Emit a log record regardless of logger backend."""
        extra = dict(fields)
        extra.setdefault("log_message", message)
        extra.setdefault("event", message.split(".", 1)[-1] if "." in message else message)
        extra.setdefault("event_type", extra.get("event"))

        if isinstance(self._logger, logging.Logger):
            self._logger.log(level, message, extra=extra)
            return

        method_name = logging.getLevelName(level).lower()
        log_method = getattr(self._logger, method_name, None)
        if not callable(log_method):
            log_method = self._logger.info

        log_kwargs = dict(extra)
        event_value = log_kwargs.pop("event", None)
        event_arg = event_value if event_value is not None else message
        log_method(event_arg, **log_kwargs)

    def _snippet(self, text: str) -> str:
        """Shorten guest-provided text to keep logs concise."""
        if len(text) <= self._MAX_SNIPPET_LENGTH:
            return text
        keep = self._MAX_SNIPPET_LENGTH - len(self._SNIPPET_TRUNCATION_SUFFIX)
        return f"{text[:keep]}{self._SNIPPET_TRUNCATION_SUFFIX}"

    def log_execution_start(
        self, language: str, timeout_ms: float, code_bytes: int, **extra: Any
    ) -> None:
        """Log the start of an execute() call.

        Args:
            language: Language id of the runner
            timeout_ms: Timeout budget applied to the call
            code_bytes: Size of the submitted code in bytes
            **extra: Additional key-value pairs to include in log event
        """
        self._emit(
            logging.INFO,
            "runner.execution.start",
            event="execution.start",
            language=language,
            timeout_ms=timeout_ms,
            code_bytes=code_bytes,
            **extra,
        )

    def log_execution_complete(self, result: ExecutionResult) -> None:
        """Log the terminal result of an execute() call.

        Args:
            result: ExecutionResult returned to the caller
        """
        log_kwargs: dict[str, Any] = {
            "event": "execution.complete",
            "language": result.language,
            "success": result.success,
            "duration_ms": result.duration_ms,
            "timed_out": result.timed_out,
        }
        if result.error is not None:
            log_kwargs["error"] = self._snippet(result.error)

        self._emit(logging.INFO, "runner.execution.complete", **log_kwargs)

    def log_sandbox_started(self, language: str, pid: int | None, command: list[str]) -> None:
        """Log that a guest process was spawned for a sandbox manager."""
        self._emit(
            logging.INFO,
            "runner.sandbox.started",
            event="sandbox.started",
            language=language,
            pid=pid,
            command=command,
        )

    def log_sandbox_ready(self, language: str, startup_ms: float) -> None:
        """Log that a guest signalled readiness."""
        self._emit(
            logging.INFO,
            "runner.sandbox.ready",
            event="sandbox.ready",
            language=language,
            startup_ms=startup_ms,
        )

    def log_sandbox_destroyed(self, language: str, pid: int | None) -> None:
        """Log teardown of a guest process."""
        self._emit(
            logging.INFO,
            "runner.sandbox.destroyed",
            event="sandbox.destroyed",
            language=language,
            pid=pid,
        )

    def log_bootstrap_failed(self, language: str, error: str) -> None:
        """Log a guest runtime that failed to load."""
        self._emit(
            logging.ERROR,
            "runner.sandbox.bootstrap_failed",
            event="sandbox.bootstrap_failed",
            language=language,
            error=self._snippet(error),
        )

    def log_timeout(
        self, language: str, timeout_ms: float, request_id: str | None, queued: bool = False
    ) -> None:
        """Log a request abandoned after its timeout elapsed.

        Emitted at WARNING level. Unless the request was still queued, the
        guest may still be running it and the manager should be considered
        suspect.
        """
        self._emit(
            logging.WARNING,
            "runner.sandbox.timeout",
            event="sandbox.timeout",
            language=language,
            timeout_ms=timeout_ms,
            request_id=request_id,
            queued=queued,
        )

    def log_protocol_violation(self, language: str, reason: str, message_type: str | None) -> None:
        """Log a dropped guest message (late output, malformed envelope, unknown type)."""
        self._emit(
            logging.DEBUG,
            "runner.protocol.violation",
            event="protocol.violation",
            language=language,
            reason=reason,
            message_type=message_type,
        )

    def log_guest_stderr(self, language: str, line: str) -> None:
        """Log a line the guest process wrote to stderr."""
        self._emit(
            logging.DEBUG,
            "runner.guest.stderr",
            event="guest.stderr",
            language=language,
            line=self._snippet(line),
        )

    def log_runner_skipped(self, language: str, reason: str) -> None:
        """Log a descriptor whose runner implementation could not be loaded."""
        self._emit(
            logging.WARNING,
            "runner.registry.skipped",
            event="registry.skipped",
            language=language,
            reason=reason,
        )

    def log_sink_error(self, language: str, error: str) -> None:
        """Log an exception raised by a caller's output sink."""
        self._emit(
            logging.ERROR,
            "runner.sink.error",
            event="sink.error",
            language=language,
            error=self._snippet(error),
        )
