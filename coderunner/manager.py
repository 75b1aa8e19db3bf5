"""RunnerManager: the caller-facing coordinator over the language registry.

Adds the checks a UI needs around Runner.execute(): empty code and unknown
languages are rejected up front, a language that is already running rejects
a second run, and output beyond the configured limit is replaced by a single
truncation notice.
"""

from __future__ import annotations

from collections.abc import Callable

from coderunner.core.base import OutputSink
from coderunner.core.logging import RunnerLogger
from coderunner.core.models import (
    ExecutionResult,
    LanguageDescriptor,
    OutputEvent,
    OutputLevel,
    RunnerSettings,
    SyntaxCheck,
)
from coderunner.core.registry import LanguageRegistry

DEFAULT_LANGUAGE = "javascript"


class RunnerManager:
    """Coordinates runs across languages.

    The busy guard is per language: runs in different languages may overlap,
    a second run in the same language is rejected while the first is active.

    Attributes:
        registry: LanguageRegistry holding the runners
        settings: RunnerSettings (output_limit is read from here)
        current_language: Language last selected by the caller
    """

    def __init__(
        self,
        registry: LanguageRegistry | None = None,
        settings: RunnerSettings | None = None,
        logger: RunnerLogger | None = None,
    ) -> None:
        self.settings = settings or (registry.settings if registry else RunnerSettings())
        self.logger = logger or (registry.logger if registry else RunnerLogger())
        self.registry = registry or LanguageRegistry(settings=self.settings, logger=self.logger)
        self.current_language = DEFAULT_LANGUAGE
        self._running: set[str] = set()

    @property
    def output_limit(self) -> int:
        return self.settings.output_limit

    def is_running(self, language: str | None = None) -> bool:
        if language is None:
            return bool(self._running)
        return language in self._running

    async def run(
        self,
        code: str,
        language: str,
        on_output: OutputSink | None = None,
        timeout: float | None = None,
    ) -> ExecutionResult:
        """Execute code in a language, relaying at most output_limit events.

        Returns:
            ExecutionResult; rejections are failures with an ERROR event
        """
        if not code or not code.strip():
            return self._reject(language, "Code cannot be empty", on_output)

        runner = self.registry.get_runner(language)
        if runner is None:
            return self._reject(language, f"Unsupported language: {language}", on_output)

        if language in self._running:
            return self._reject(language, "Code is already running, please wait...", on_output)

        self._running.add(language)
        try:
            return await runner.execute(code, self._limit_output(on_output), timeout)
        finally:
            self._running.discard(language)

    def _limit_output(self, on_output: OutputSink | None) -> OutputSink | None:
        if on_output is None:
            return None

        limit = self.output_limit
        count = 0

        def sink(event: OutputEvent) -> None:
            nonlocal count
            if count < limit:
                count += 1
                on_output(event)
            elif count == limit:
                count += 1
                on_output(
                    OutputEvent(
                        level=OutputLevel.WARN,
                        data=f"Output limit reached ({limit} entries); further output is ignored...",
                        truncated=True,
                    )
                )

        return sink

    def _reject(self, language: str, message: str, on_output: OutputSink | None) -> ExecutionResult:
        if on_output is not None:
            _safe_call(on_output, OutputEvent(level=OutputLevel.ERROR, data=message), self.logger, language)
        return ExecutionResult(success=False, language=language, error=message)

    async def stop(self, language: str | None = None) -> None:
        """Abandon the active run of a language by recycling its runner.

        The in-flight run resolves as a failure; the next run starts a fresh
        sandbox.
        """
        language = language or self.current_language
        if language not in self._running:
            return

        runner = self.registry.get_runner(language)
        if runner is not None:
            await runner.cleanup()
        self._running.discard(language)

    def validate_syntax(self, code: str, language: str) -> SyntaxCheck:
        runner = self.registry.get_runner(language)
        if runner is None:
            return SyntaxCheck(valid=False, error=f"Unsupported language: {language}")
        return runner.validate_syntax(code)

    def get_example_code(self, language: str) -> str:
        runner = self.registry.get_runner(language)
        return runner.get_example_code() if runner is not None else ""

    def get_all_languages(self) -> tuple[LanguageDescriptor, ...]:
        return self.registry.get_all_languages()

    def set_current_language(self, language: str) -> None:
        self.current_language = language

    def get_current_language(self) -> str:
        return self.current_language

    async def cleanup(self) -> None:
        for language in list(self._running):
            await self.stop(language)
        await self.registry.cleanup()


def _safe_call(
    sink: Callable[[OutputEvent], None],
    event: OutputEvent,
    logger: RunnerLogger,
    language: str,
) -> None:
    try:
        sink(event)
    except Exception as e:
        logger.log_sink_error(language, f"{type(e).__name__}: {e}")
