"""Tests for the coderunner command-line interface."""

from __future__ import annotations

from pathlib import Path

import pytest

from coderunner.__main__ import main, parse_args


@pytest.fixture
def no_config(tmp_path: Path) -> list[str]:
    return ["--config", str(tmp_path / "missing.toml")]


class TestParseArgs:
    def test_run_options(self):
        args = parse_args(["run", "script.py", "-l", "python", "-t", "500"])
        assert args.command == "run"
        assert args.file == "script.py"
        assert args.language == "python"
        assert args.timeout == 500.0

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestCommands:
    def test_list(self, no_config, capsys):
        assert main([*no_config, "list"]) == 0
        out = capsys.readouterr().out
        assert "Languages" in out
        assert "python" in out
        assert "markdown" in out

    def test_example(self, no_config, capsys):
        assert main([*no_config, "example", "sql"]) == 0
        assert "CREATE TABLE users" in capsys.readouterr().out

    def test_check_valid_and_invalid(self, no_config, tmp_path, capsys):
        good = tmp_path / "good.json"
        good.write_text('{"a": 1}')
        bad = tmp_path / "bad.json"
        bad.write_text('{"a": }')

        assert main([*no_config, "check", str(good)]) == 0
        assert "Syntax OK" in capsys.readouterr().out
        assert main([*no_config, "check", str(bad)]) == 1
        assert "line 1, column 7" in capsys.readouterr().out

    def test_run_json_file(self, no_config, tmp_path, capsys):
        source = tmp_path / "data.json"
        source.write_text("[1, 2, 3]")

        assert main([*no_config, "run", str(source)]) == 0
        out = capsys.readouterr().out
        assert "Valid JSON" in out
        assert "success" in out

    def test_run_python_file(self, no_config, tmp_path, capsys):
        source = tmp_path / "hello.py"
        source.write_text("print('hello from cli')\nraise SystemExit(2)")

        assert main([*no_config, "run", str(source)]) == 1
        out = capsys.readouterr().out
        assert "hello from cli" in out
        assert "SystemExit: 2" in out

    def test_unknown_extension(self, no_config, tmp_path):
        source = tmp_path / "notes.xyz"
        source.write_text("hi")
        with pytest.raises(SystemExit, match="Cannot determine language"):
            main([*no_config, "run", str(source)])

    def test_invalid_settings(self, tmp_path, capsys):
        config = tmp_path / "runner.toml"
        config.write_text("output_limit = 0\n")
        assert main(["--config", str(config), "list"]) == 2
        assert "Invalid settings" in capsys.readouterr().err
