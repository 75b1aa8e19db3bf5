"""Abstract base class for language runners.

Provides BaseRunner ABC that defines the contract every runner satisfies
(Python, SQL, Lua, HTML preview, ...): initialize(), execute(), cleanup(),
get_placeholder() and get_example_code(). Each runner must implement execute()
and the two text producers while sharing descriptor handling, settings,
logging, and safe relaying of output events.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, ClassVar

from coderunner.core.languages import get_descriptor
from coderunner.core.models import (
    ExecutionResult,
    LanguageDescriptor,
    OutputEvent,
    OutputLevel,
    RunnerSettings,
    SyntaxCheck,
)

if TYPE_CHECKING:
    from coderunner.core.logging import RunnerLogger

OutputSink = Callable[[OutputEvent], None]


class BaseRunner(ABC):
    """Abstract base class for language runners.

    Defines the contract that all runners implement. A runner is created once
    per language by the registry and lives for the whole session.

    Attributes:
        language: Language id (class-level default used to find the descriptor)
        descriptor: LanguageDescriptor this runner implements
        settings: RunnerSettings with timeouts and engine locations
        logger: RunnerLogger for structured event logging
    """

    language: ClassVar[str]

    def __init__(
        self,
        descriptor: LanguageDescriptor | None = None,
        settings: RunnerSettings | None = None,
        logger: RunnerLogger | None = None,
    ) -> None:
        """Initialize BaseRunner with descriptor, settings, and logger.

        Args:
            descriptor: Optional descriptor. If None, the static table entry
                        for the class's language id is used.
            settings: Optional RunnerSettings. If None, defaults are used.
            logger: Optional RunnerLogger. If None, creates default logger.
        """
        if descriptor is None:
            descriptor = get_descriptor(self.language)
            if descriptor is None:
                raise ValueError(f"No language descriptor for {self.language!r}")
        self.descriptor = descriptor
        self.language = descriptor.id  # type: ignore[misc]
        self.settings = settings or RunnerSettings()

        if logger is None:
            # Import here to avoid circular dependency
            from coderunner.core.logging import RunnerLogger
            self.logger = RunnerLogger()
        else:
            self.logger = logger

    @property
    def display_name(self) -> str:
        return self.descriptor.display_name

    @property
    def icon(self) -> str:
        return self.descriptor.icon

    @property
    def file_extension(self) -> str:
        return self.descriptor.file_extension

    async def initialize(self) -> None:
        """Prepare the runner; idempotent. Direct runners have nothing to do."""
        return None

    @abstractmethod
    async def execute(
        self,
        code: str,
        on_output: OutputSink | None = None,
        timeout: float | None = None,
    ) -> ExecutionResult:
        """Run code and relay its output.

        Implementations must never raise: every failure is reported as an
        ERROR-level event plus a failed ExecutionResult.

        Args:
            code: Source text in this runner's language
            on_output: Sink called once per OutputEvent, in production order
            timeout: Budget in milliseconds (None = language default)

        Returns:
            ExecutionResult resolved exactly once
        """

    async def cleanup(self) -> None:
        """Release held resources; safe to call when nothing was initialized."""
        return None

    @abstractmethod
    def get_placeholder(self) -> str:
        """Short hint shown in an empty editor."""

    @abstractmethod
    def get_example_code(self) -> str:
        """Runnable example program for this language."""

    def validate_syntax(self, code: str) -> SyntaxCheck:
        """Syntax-only check without executing anything.

        Languages without a cheap local parser report valid.
        """
        return SyntaxCheck(valid=True)

    def _emit(self, sink: OutputSink | None, event: OutputEvent) -> None:
        """Relay one event to the caller's sink, logging sink failures."""
        if sink is None:
            return
        try:
            sink(event)
        except Exception as e:
            self.logger.log_sink_error(self.language, f"{type(e).__name__}: {e}")

    def _failure(
        self,
        sink: OutputSink | None,
        message: str,
        duration_ms: float = 0.0,
        error: str | None = None,
        timed_out: bool = False,
    ) -> ExecutionResult:
        """Emit an ERROR event and build the matching failed result."""
        self._emit(sink, OutputEvent(level=OutputLevel.ERROR, data=message))
        return ExecutionResult(
            success=False,
            duration_ms=duration_ms,
            language=self.language,
            error=error if error is not None else message,
            timed_out=timed_out,
        )
