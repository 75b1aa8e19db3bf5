"""Directory of live runners, keyed by language id.

LanguageRegistry is built once from the language descriptor table. Each
descriptor's RunnerKind is mapped to a factory through RUNNER_FACTORIES; a
factory is either a callable or a "module:attribute" path resolved with
importlib. A kind whose factory is missing, fails to import, or fails to
construct is left out of the registry: that language is simply unsupported.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from coderunner.core.languages import LANGUAGES, find_language
from coderunner.core.logging import RunnerLogger
from coderunner.core.models import LanguageDescriptor, RunnerKind, RunnerSettings

if TYPE_CHECKING:
    from coderunner.core.base import BaseRunner

RunnerFactory = Callable[..., "BaseRunner"]

RUNNER_FACTORIES: dict[RunnerKind, str | RunnerFactory] = {
    RunnerKind.PYTHON: "coderunner.runtimes.python:PythonRunner",
    RunnerKind.SQL: "coderunner.runtimes.sql:SQLRunner",
    RunnerKind.LUA: "coderunner.runtimes.lua:LuaRunner",
    RunnerKind.RUBY: "coderunner.runtimes.ruby:RubyRunner",
    RunnerKind.TYPESCRIPT: "coderunner.runtimes.typescript:TypeScriptRunner",
    RunnerKind.JAVASCRIPT: "coderunner.runtimes.javascript:JavaScriptRunner",
    RunnerKind.HTML: "coderunner.runtimes.html:HtmlRunner",
    RunnerKind.JSON: "coderunner.runtimes.json:JsonRunner",
    RunnerKind.MARKDOWN: "coderunner.runtimes.markdown:MarkdownRunner",
}


def resolve_factory(factory: str | RunnerFactory) -> RunnerFactory:
    """Turn a "module:attribute" path into the callable it names.

    Raises:
        ImportError: If the module cannot be imported
        AttributeError: If the attribute does not exist
        TypeError: If the resolved object is not callable
    """
    if not isinstance(factory, str):
        return factory

    module_name, _, attribute = factory.partition(":")
    module = importlib.import_module(module_name)
    resolved = getattr(module, attribute)
    if not callable(resolved):
        raise TypeError(f"{factory} is not callable")
    return resolved  # type: ignore[no-any-return]


class LanguageRegistry:
    """Maps language ids to their live runner instances.

    Holds no execution state of its own: each runner owns its sandbox.

    Attributes:
        settings: RunnerSettings passed to every runner it builds
        logger: RunnerLogger shared with the runners it builds
    """

    def __init__(
        self,
        languages: Iterable[LanguageDescriptor] = LANGUAGES,
        factories: Mapping[RunnerKind, str | RunnerFactory] | None = None,
        settings: RunnerSettings | None = None,
        logger: RunnerLogger | None = None,
    ) -> None:
        self.settings = settings or RunnerSettings()
        self.logger = logger or RunnerLogger()
        self._languages = tuple(languages)
        self._factories = dict(RUNNER_FACTORIES if factories is None else factories)
        self._runners: dict[str, BaseRunner] = {}
        self._build()

    def _build(self) -> None:
        for descriptor in self._languages:
            factory = self._factories.get(descriptor.runner_kind)
            if factory is None:
                self.logger.log_runner_skipped(descriptor.id, "no runner factory registered")
                continue

            try:
                runner = resolve_factory(factory)(
                    descriptor=descriptor, settings=self.settings, logger=self.logger
                )
            except Exception as e:
                self.logger.log_runner_skipped(descriptor.id, f"{type(e).__name__}: {e}")
                continue

            self.register(descriptor.id, runner)

    def register(self, language: str, runner: BaseRunner) -> None:
        """Insert or replace the runner for a language id."""
        self._runners[language] = runner

    def get_runner(self, language: str) -> BaseRunner | None:
        return self._runners.get(language)

    def is_supported(self, language: str) -> bool:
        return language in self._runners

    def get_supported_languages(self) -> list[dict[str, Any]]:
        """Languages with a live runner, in registration order."""
        return [
            {"id": language, "name": runner.display_name}
            for language, runner in self._runners.items()
        ]

    def get_all_languages(self) -> tuple[LanguageDescriptor, ...]:
        """Every descriptor, supported or not."""
        return self._languages

    def get_language(self, language: str) -> LanguageDescriptor | None:
        for descriptor in self._languages:
            if descriptor.id == language:
                return descriptor
        return None

    def find_language(self, name: str) -> LanguageDescriptor | None:
        """Resolve an id, alias, or file name to a descriptor."""
        return find_language(name, self._languages)

    async def cleanup(self) -> None:
        """Release every runner's sandbox."""
        for runner in self._runners.values():
            await runner.cleanup()
