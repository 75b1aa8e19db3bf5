"""Tests for PythonRunner executing code in its guest interpreter."""

from __future__ import annotations

import asyncio
import time

import pytest

from coderunner.core.models import OutputLevel, RunnerSettings
from coderunner.runtimes.python import PythonRunner
from coderunner.runtimes.python.guest import compile_source


@pytest.fixture
def runner(settings, runner_logger) -> PythonRunner:
    return PythonRunner(settings=settings, logger=runner_logger)


async def run_once(runner, code, collector, timeout=None):
    try:
        return await runner.execute(code, collector, timeout=timeout)
    finally:
        await runner.cleanup()


class TestCompileSource:
    """Test splitting of a trailing expression."""

    def test_trailing_expression_split(self):
        body, tail = compile_source("x = 1\nx + 1")
        assert tail is not None
        namespace: dict = {}
        exec(body, namespace)
        assert eval(tail, namespace) == 2

    def test_no_trailing_expression(self):
        _, tail = compile_source("x = 1")
        assert tail is None

    def test_syntax_error_reports_line(self):
        with pytest.raises(SyntaxError) as excinfo:
            compile_source("x = 1\ndef (:\n")
        assert excinfo.value.lineno == 2


class TestPythonExecution:
    """Test code execution through the guest process."""

    @pytest.mark.asyncio
    async def test_print_emits_one_log_event(self, runner, collector):
        result = await run_once(runner, "print('Hello, Runner!')", collector)

        assert result.success is True
        assert result.language == "python"
        assert result.duration_ms > 0
        assert collector.logs == ["Hello, Runner!"]

    @pytest.mark.asyncio
    async def test_loading_notices(self, runner, collector):
        """Test the first run reports loading and the interpreter version."""
        await run_once(runner, "pass", collector)

        infos = collector.at(OutputLevel.INFO)
        assert infos[0] == "Loading Python runtime..."
        assert any(info.startswith("Python 3.") and info.endswith("environment loaded") for info in infos)

    @pytest.mark.asyncio
    async def test_trailing_expression_is_echoed(self, runner, collector):
        result = await run_once(runner, "total = sum([1, 2, 3])\n{'total': total}", collector)

        assert result.success is True
        assert collector.results == ["{'total': 6}"]

    @pytest.mark.asyncio
    async def test_none_result_not_echoed(self, runner, collector):
        await run_once(runner, "print('x')", collector)
        assert collector.results == []

    @pytest.mark.asyncio
    async def test_top_level_await(self, runner, collector):
        code = (
            "import asyncio\n"
            "async def fetch():\n"
            "    await asyncio.sleep(0.01)\n"
            "    return 'Async data loaded!'\n"
            "data = await fetch()\n"
            "print(data)\n"
        )
        result = await run_once(runner, code, collector)

        assert result.success is True
        assert collector.logs == ["Async data loaded!"]

    @pytest.mark.asyncio
    async def test_multiline_print_splits_lines(self, runner, collector):
        await run_once(runner, "print('a\\nb')\nprint('c', end='')", collector)
        assert collector.logs == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_stderr_is_error_output(self, runner, collector):
        result = await run_once(runner, "import sys\nsys.stderr.write('careful\\n')", collector)

        assert result.success is True
        assert "careful" in collector.errors

    @pytest.mark.asyncio
    async def test_raw_fd_writes_do_not_corrupt_protocol(self, runner, collector):
        """Test writing straight to fd 1 cannot break the message stream."""
        result = await run_once(runner, "import os\nos.write(1, b'raw bytes\\n')\nprint('after')", collector)

        assert result.success is True
        assert collector.logs == ["after"]

    @pytest.mark.asyncio
    async def test_runtime_error(self, runner, collector):
        """Test exceptions become an ERROR event and a failed result."""
        result = await run_once(runner, "x = 1\n1 / 0", collector)

        assert result.success is False
        assert "ZeroDivisionError: division by zero" in result.error
        assert "line 2" in result.error
        assert len(collector.errors) == 1
        assert "ZeroDivisionError" in collector.errors[0]

    @pytest.mark.asyncio
    async def test_syntax_error(self, runner, collector):
        result = await run_once(runner, "def broken(:\n    pass", collector)

        assert result.success is False
        assert result.error.startswith("SyntaxError:")
        assert "(line 1)" in result.error

    @pytest.mark.asyncio
    async def test_output_before_error_is_kept(self, runner, collector):
        await run_once(runner, "print('before')\nraise ValueError('bad')", collector)

        assert collector.logs == ["before"]
        assert "ValueError: bad" in collector.errors[0]

    @pytest.mark.asyncio
    async def test_sys_exit(self, runner, collector):
        """Test exit code 0 succeeds and a non-zero code fails."""
        try:
            ok = await runner.execute("import sys\nsys.exit(0)", collector)
            failed = await runner.execute("import sys\nsys.exit(3)", collector)
        finally:
            await runner.cleanup()

        assert ok.success is True
        assert failed.success is False
        assert failed.error == "SystemExit: 3"

    @pytest.mark.asyncio
    async def test_state_is_fresh_per_execution(self, runner, collector):
        """Test variables from one run are not visible to the next."""
        try:
            first = await runner.execute("leftover = 42", collector)
            second = await runner.execute("leftover", collector)
        finally:
            await runner.cleanup()

        assert first.success is True
        assert second.success is False
        assert "NameError" in second.error

    @pytest.mark.asyncio
    async def test_guest_process_is_reused(self, runner):
        try:
            await runner.execute("pass")
            pid = runner.manager.pid
            await runner.execute("pass")
            assert runner.manager.pid == pid
        finally:
            await runner.cleanup()
        assert runner.manager is None


class TestPythonTimeouts:
    """Test timeout handling for runaway code."""

    @pytest.mark.asyncio
    async def test_infinite_loop_times_out(self, runner, collector):
        started = time.perf_counter()
        result = await run_once(runner, "while True:\n    pass", collector, timeout=1000)

        assert time.perf_counter() - started < 5
        assert result.success is False
        assert result.timed_out is True
        assert result.error == "timeout"
        assert any("timed out" in error for error in collector.errors)

    @pytest.mark.asyncio
    async def test_recycle_on_timeout_drops_the_guest(self, runner_logger, collector):
        runner = PythonRunner(
            settings=RunnerSettings(recycle_on_timeout=True), logger=runner_logger
        )
        try:
            result = await runner.execute("while True:\n    pass", collector, timeout=1000)
            assert result.timed_out is True
            assert runner.manager is None

            after = await runner.execute("print('fresh')", collector)
        finally:
            await runner.cleanup()

        assert after.success is True
        assert "fresh" in collector.logs

    @pytest.mark.asyncio
    async def test_queued_timeout_keeps_the_running_request(self, runner_logger):
        runner = PythonRunner(
            settings=RunnerSettings(recycle_on_timeout=True), logger=runner_logger
        )
        try:
            await runner.execute("print('warm')", timeout=10_000)
            manager = runner.manager
            first = asyncio.create_task(
                runner.execute("import time\ntime.sleep(1)\nprint('done')", timeout=10_000)
            )
            await asyncio.sleep(0.1)

            queued = await runner.execute("print('queued')", timeout=200)
            assert queued.timed_out is True
            assert runner.manager is manager
            assert manager.suspect is False

            result = await first
        finally:
            await runner.cleanup()

        assert result.success is True

    @pytest.mark.asyncio
    async def test_timeout_logged(self, runner, log_capture):
        await run_once(runner, "while True:\n    pass", None, timeout=500)

        completed = log_capture.named("execution.complete")
        assert completed[-1]["timed_out"] is True
        assert log_capture.named("sandbox.timeout")


class TestPythonSyntaxCheck:
    """Test validate_syntax without execution."""

    def test_valid(self, runner):
        assert runner.validate_syntax("x = await something()").valid is True

    def test_invalid(self, runner):
        check = runner.validate_syntax("print('a'\n")
        assert check.valid is False
        assert check.error.startswith("line 1:")

    def test_null_byte(self, runner):
        assert runner.validate_syntax("x = 1\x00").valid is False

    def test_texts(self, runner):
        assert "print" in runner.get_placeholder()
        assert runner.validate_syntax(runner.get_example_code()).valid is True
