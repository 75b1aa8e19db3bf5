#!/usr/bin/env python3
"""
Command-line interface for coderunner.

    python -m coderunner list
    python -m coderunner example python
    python -m coderunner run script.sql
    python -m coderunner run - --language lua --timeout 5000 < script.lua
    python -m coderunner check data.json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from coderunner.core.errors import SettingsValidationError
from coderunner.core.logging import RunnerLogger, configure_structlog
from coderunner.core.models import LanguageDescriptor, OutputEvent, OutputLevel
from coderunner.core.registry import LanguageRegistry
from coderunner.manager import RunnerManager
from coderunner.settings import load_settings

console = Console()
error_console = Console(stderr=True)

_LEVEL_STYLES = {
    OutputLevel.LOG: "",
    OutputLevel.INFO: "dim",
    OutputLevel.WARN: "yellow",
    OutputLevel.ERROR: "bold red",
    OutputLevel.RESULT: "cyan",
}

# rich lexer names for the syntax-highlighted views
_LEXERS = {"markdown": "md", "typescript": "ts", "javascript": "js"}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="coderunner",
        description="Run code in Python, SQL, Lua, Ruby, TypeScript, JavaScript and preview markup",
    )
    parser.add_argument(
        "--config",
        default="config/runner.toml",
        metavar="PATH",
        help="Runner settings file (default: config/runner.toml)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log sandbox lifecycle events")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List languages and whether they are available")

    example = commands.add_parser("example", help="Print the example program of a language")
    example.add_argument("language")

    run = commands.add_parser("run", help="Run a source file ('-' reads stdin)")
    run.add_argument("file")
    run.add_argument("-l", "--language", default=None, help="Language id or alias (default: from extension)")
    run.add_argument("-t", "--timeout", type=float, default=None, metavar="MS", help="Timeout in milliseconds")

    check = commands.add_parser("check", help="Check syntax without running")
    check.add_argument("file")
    check.add_argument("-l", "--language", default=None)

    return parser.parse_args(argv)


def render_event(event: OutputEvent) -> None:
    """Print one output event."""
    if event.level is OutputLevel.HTML_PREVIEW:
        console.print(Panel(Syntax(event.data["html"], "html"), title="HTML preview", expand=False))
    elif event.level is OutputLevel.MARKDOWN_PREVIEW:
        console.print(Panel(Markdown(event.data["raw"]), title="Markdown preview"))
    elif event.level is OutputLevel.JSON_FORMATTED:
        console.print(Syntax(event.data["json"], "json"))
    elif event.level is OutputLevel.RESULT and isinstance(event.data, dict) and "columns" in event.data:
        console.print(_result_table(event.data))
    else:
        console.print(event.text, style=_LEVEL_STYLES.get(event.level, ""), markup=False, highlight=False)


def _result_table(data: dict[str, Any]) -> Table:
    table = Table(box=box.SIMPLE_HEAVY, title=f"Statement {data.get('statement_index', 0) + 1}")
    for column in data["columns"]:
        table.add_column(str(column))
    for row in data["rows"]:
        table.add_row(*("NULL" if value is None else str(value) for value in row))
    return table


def _languages_table(registry: LanguageRegistry) -> Table:
    table = Table(title="Languages", box=box.ROUNDED)
    table.add_column("", no_wrap=True)
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Extension")
    table.add_column("Aliases")
    table.add_column("Available")
    for descriptor in registry.get_all_languages():
        available = registry.is_supported(descriptor.id)
        table.add_row(
            descriptor.icon,
            descriptor.id,
            descriptor.display_name,
            descriptor.file_extension,
            ", ".join(descriptor.aliases),
            "[green]yes[/green]" if available else "[red]no[/red]",
        )
    return table


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _resolve_language(registry: LanguageRegistry, name: str | None, path: str) -> LanguageDescriptor:
    key = name or (path if path != "-" else "")
    descriptor = registry.find_language(key) if key else None
    if descriptor is None:
        raise SystemExit(f"Cannot determine language for {name or path!r}; use --language")
    return descriptor


async def run_file(manager: RunnerManager, path: str, language: str | None, timeout: float | None) -> int:
    descriptor = _resolve_language(manager.registry, language, path)
    code = _read_source(path)
    manager.set_current_language(descriptor.id)

    console.rule(f"{descriptor.icon} {descriptor.display_name}")
    try:
        result = await manager.run(
            code,
            descriptor.id,
            on_output=render_event,
            timeout=timeout,
        )
    finally:
        await manager.cleanup()

    status = "[green]✓ success[/green]" if result.success else "[red]✗ failed[/red]"
    console.rule(f"{status} in {result.duration_ms:.1f} ms", style="dim")
    return 0 if result.success else 1


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    configure_structlog(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        use_json=args.json_logs,
        file=sys.stderr,
    )

    try:
        settings = load_settings(args.config)
    except SettingsValidationError as e:
        error_console.print(f"[red]Invalid settings:[/red] {e}")
        return 2

    logger = RunnerLogger()
    registry = LanguageRegistry(settings=settings, logger=logger)
    manager = RunnerManager(registry=registry, settings=settings, logger=logger)

    if args.command == "list":
        console.print(_languages_table(registry))
        return 0

    if args.command == "example":
        descriptor = _resolve_language(registry, args.language, "")
        code = manager.get_example_code(descriptor.id)
        if not code:
            error_console.print(f"[red]{descriptor.display_name} is not available[/red]")
            return 1
        console.print(Syntax(code, _LEXERS.get(descriptor.id, descriptor.id), line_numbers=True))
        return 0

    if args.command == "check":
        descriptor = _resolve_language(registry, args.language, args.file)
        check = manager.validate_syntax(_read_source(args.file), descriptor.id)
        if check.valid:
            console.print("[green]✓ Syntax OK[/green]")
            return 0
        console.print(f"[red]✗ {check.error}[/red]")
        return 1

    try:
        return asyncio.run(run_file(manager, args.file, args.language, args.timeout))
    except KeyboardInterrupt:
        error_console.print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
