"""Tests for RubyRunner and Ruby error normalization."""

from __future__ import annotations

import shutil

import pytest

from coderunner.core.models import OutputLevel, RunnerSettings
from coderunner.runtimes.ruby import RubyRunner
from coderunner.runtimes.ruby.guest import normalize_ruby_error

requires_ruby = pytest.mark.skipif(shutil.which("ruby") is None, reason="ruby not installed")


@pytest.fixture
def runner(settings, runner_logger) -> RubyRunner:
    return RubyRunner(settings=settings, logger=runner_logger)


async def run_once(runner, code, collector):
    try:
        return await runner.execute(code, collector)
    finally:
        await runner.cleanup()


class TestNormalizeRubyError:
    """Test stderr normalization."""

    def test_backtick_location(self):
        stderr = (
            "main.rb:3:in `<main>': undefined local variable or method `x' for main:Object (NameError)\n"
            "\tfrom -e:4:in `eval'\n"
        )
        assert normalize_ruby_error(stderr) == (
            "line 3: undefined local variable or method `x' for main:Object (NameError)"
        )

    def test_quote_location(self):
        assert normalize_ruby_error("main.rb:2:in '<main>': boom (RuntimeError)") == "line 2: boom (RuntimeError)"

    def test_eval_frame_prefix(self):
        stderr = "-e:4:in 'Kernel#eval': main.rb:1: syntax errors found (SyntaxError)\n> 1 | def (\n"
        assert normalize_ruby_error(stderr) == "line 1: syntax errors found (SyntaxError)"

    def test_location_without_method(self):
        assert normalize_ruby_error("\nmain.rb:5: warning-ish text") == "line 5: warning-ish text"

    def test_blank(self):
        assert normalize_ruby_error("\n  \n") == ""


class TestMissingInterpreter:
    """Test bootstrap failure when ruby is absent."""

    @pytest.mark.asyncio
    async def test_missing_interpreter_fails_run(self, runner_logger, collector):
        runner = RubyRunner(
            settings=RunnerSettings(ruby_executable="definitely-not-ruby-xyz"), logger=runner_logger
        )
        result = await run_once(runner, 'puts "hi"', collector)

        assert result.success is False
        assert result.error == "Ruby interpreter not found: definitely-not-ruby-xyz"
        assert collector.errors == ["Ruby interpreter not found: definitely-not-ruby-xyz"]


@requires_ruby
@pytest.mark.engine
class TestRubyExecution:
    """Test Ruby code executed through the system interpreter."""

    @pytest.mark.asyncio
    async def test_puts(self, runner, collector):
        result = await run_once(runner, 'puts "Hello, Ruby!"\nputs [1, 2].sum', collector)

        assert result.success is True
        assert collector.logs == ["Hello, Ruby!", "3"]

    @pytest.mark.asyncio
    async def test_final_value_echoed(self, runner, collector):
        await run_once(runner, 'name = "Rex"\n"#{name} barks"', collector)
        assert collector.results == ['=> "Rex barks"']

    @pytest.mark.asyncio
    async def test_nil_value_not_echoed(self, runner, collector):
        await run_once(runner, 'puts "only output"', collector)
        assert collector.results == []

    @pytest.mark.asyncio
    async def test_runtime_error(self, runner, collector):
        result = await run_once(runner, 'puts "before"\nraise "boom"', collector)

        assert result.success is False
        assert result.error == "line 2: boom (RuntimeError)"
        assert collector.logs == ["before"]
        assert collector.errors == ["line 2: boom (RuntimeError)"]

    @pytest.mark.asyncio
    async def test_syntax_error(self, runner, collector):
        result = await run_once(runner, "def broken(\n", collector)

        assert result.success is False
        assert "syntax error" in result.error.lower()

    @pytest.mark.asyncio
    async def test_loading_reports_version(self, runner, collector):
        await run_once(runner, "1", collector)
        assert any(info.startswith("ruby ") for info in collector.at(OutputLevel.INFO))
