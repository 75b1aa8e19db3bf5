"""Tests for the language table and LanguageRegistry."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from coderunner.core import LANGUAGES, BaseRunner, RunnerKind, find_language, get_descriptor
from coderunner.core.models import ExecutionResult
from coderunner.core.registry import RUNNER_FACTORIES, LanguageRegistry, resolve_factory
from coderunner.runtimes.html import HtmlRunner
from coderunner.runtimes.json import JsonRunner


class StubRunner(BaseRunner):
    """Minimal runner used to populate registries in tests."""

    language = "python"

    async def execute(self, code, on_output=None, timeout=None):
        return ExecutionResult(success=True, language=self.language)

    def get_placeholder(self):
        return "stub"

    def get_example_code(self):
        return "stub()"


def _broken_factory(**kwargs):
    raise RuntimeError("engine unavailable")


class TestLanguageTable:
    """Test the static language descriptors."""

    def test_ids_unique(self):
        ids = [lang.id for lang in LANGUAGES]
        assert len(ids) == len(set(ids)) == 9

    def test_every_kind_has_a_factory(self):
        assert set(RUNNER_FACTORIES) == set(RunnerKind)

    def test_get_descriptor(self):
        assert get_descriptor("sql").display_name == "SQL"
        assert get_descriptor("cobol") is None

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("python", "python"),
            ("Python", "python"),
            ("py", "python"),
            (".py", "python"),
            ("script.PY", "python"),
            ("query.sql", "sql"),
            ("ts", "typescript"),
            ("page.htm", "html"),
            ("README.md", "markdown"),
            ("Gemfile.rb", "ruby"),
        ],
    )
    def test_find_language(self, name, expected):
        assert find_language(name).id == expected

    def test_find_language_unknown(self):
        assert find_language("cobol") is None
        assert find_language("") is None
        assert find_language("archive.tar.gz") is None


class TestResolveFactory:
    """Test factory path resolution."""

    def test_import_path(self):
        assert resolve_factory("coderunner.runtimes.html:HtmlRunner") is HtmlRunner

    def test_callable_passthrough(self):
        assert resolve_factory(StubRunner) is StubRunner

    def test_missing_module(self):
        with pytest.raises(ImportError):
            resolve_factory("coderunner.runtimes.nope:Runner")

    def test_missing_attribute(self):
        with pytest.raises(AttributeError):
            resolve_factory("coderunner.runtimes.html:Nope")


class TestLanguageRegistry:
    """Test registry construction and lookups."""

    def _registry(self, runner_logger, factories):
        return LanguageRegistry(factories=factories, logger=runner_logger)

    def test_builds_runners_from_factories(self, runner_logger):
        registry = self._registry(
            runner_logger, {RunnerKind.HTML: HtmlRunner, RunnerKind.JSON: JsonRunner}
        )
        assert registry.is_supported("html")
        assert registry.is_supported("json")
        assert not registry.is_supported("python")
        assert isinstance(registry.get_runner("json"), JsonRunner)

    def test_same_instance_every_lookup(self, runner_logger):
        registry = self._registry(runner_logger, {RunnerKind.HTML: HtmlRunner})
        assert registry.get_runner("html") is registry.get_runner("html")

    def test_unknown_language(self, runner_logger):
        registry = self._registry(runner_logger, {RunnerKind.HTML: HtmlRunner})
        assert registry.get_runner("cobol") is None
        assert registry.get_language("cobol") is None

    def test_failing_factory_is_skipped_and_logged(self, runner_logger, log_capture):
        """Test a factory that raises leaves its language unsupported."""
        registry = self._registry(
            runner_logger, {RunnerKind.HTML: HtmlRunner, RunnerKind.PYTHON: _broken_factory}
        )
        assert not registry.is_supported("python")
        assert registry.is_supported("html")

        skipped = {entry["language"]: entry["reason"] for entry in log_capture.named("registry.skipped")}
        assert skipped["python"] == "RuntimeError: engine unavailable"

    def test_unimportable_factory_is_skipped(self, runner_logger):
        registry = self._registry(runner_logger, {RunnerKind.LUA: "coderunner.runtimes.nope:Runner"})
        assert not registry.is_supported("lua")

    def test_all_languages_listed_even_if_unsupported(self, runner_logger):
        registry = self._registry(runner_logger, {RunnerKind.HTML: HtmlRunner})
        assert len(registry.get_all_languages()) == len(LANGUAGES)
        assert registry.get_language("python").display_name == "Python"

    def test_supported_languages_shape(self, runner_logger):
        registry = self._registry(
            runner_logger, {RunnerKind.JSON: JsonRunner, RunnerKind.HTML: HtmlRunner}
        )
        assert registry.get_supported_languages() == [
            {"id": "html", "name": "HTML"},
            {"id": "json", "name": "JSON"},
        ]

    def test_register_replaces_runner(self, runner_logger):
        registry = self._registry(runner_logger, {})
        stub = StubRunner(logger=runner_logger)
        registry.register("python", stub)
        assert registry.get_runner("python") is stub
        assert registry.is_supported("python")

    def test_find_language_uses_table(self, runner_logger):
        registry = self._registry(runner_logger, {})
        assert registry.find_language("notes.md").id == "markdown"

    def test_runners_share_settings_and_logger(self, runner_logger):
        registry = self._registry(runner_logger, {RunnerKind.HTML: HtmlRunner})
        runner = registry.get_runner("html")
        assert runner.settings is registry.settings
        assert runner.logger is runner_logger

    @pytest.mark.asyncio
    async def test_cleanup_reaches_every_runner(self, runner_logger):
        registry = self._registry(runner_logger, {})
        first, second = StubRunner(logger=runner_logger), StubRunner(logger=runner_logger)
        first.cleanup = AsyncMock()
        second.cleanup = AsyncMock()
        registry.register("a", first)
        registry.register("b", second)

        await registry.cleanup()

        first.cleanup.assert_awaited_once()
        second.cleanup.assert_awaited_once()
