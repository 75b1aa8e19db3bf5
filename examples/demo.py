"""
Tour of coderunner across every supported language.

Showcases:
- One RunnerManager driving sandboxed and in-process languages
- Live output events rendered as they arrive
- Failure reporting (runtime errors, timeouts, partial SQL failures)
- Parallel runs in different languages
- Structured logging of sandbox lifecycle events
"""

import asyncio
import logging

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from coderunner import OutputEvent, OutputLevel, RunnerManager, configure_structlog

console = Console()

configure_structlog(level=logging.WARNING)


def show(event: OutputEvent) -> None:
    style = {
        OutputLevel.ERROR: "red",
        OutputLevel.WARN: "yellow",
        OutputLevel.INFO: "dim",
        OutputLevel.RESULT: "cyan",
    }.get(event.level, "")
    console.print(f"  [{event.level.value}] {event.text}", style=style, markup=False)


async def demo_examples(manager: RunnerManager) -> None:
    """Run the bundled example program of every available language."""
    summary = Table(title="Example programs")
    summary.add_column("Language")
    summary.add_column("Result")
    summary.add_column("Duration (ms)", justify="right")

    for descriptor in manager.get_all_languages():
        if not manager.registry.is_supported(descriptor.id):
            summary.add_row(descriptor.display_name, "[dim]unavailable[/dim]", "-")
            continue

        console.print(Panel(f"{descriptor.icon} {descriptor.display_name}", expand=False))
        result = await manager.run(manager.get_example_code(descriptor.id), descriptor.id, show)
        summary.add_row(
            descriptor.display_name,
            "[green]ok[/green]" if result.success else f"[red]{result.error}[/red]",
            f"{result.duration_ms:.1f}",
        )

    console.print(summary)


async def demo_failures(manager: RunnerManager) -> None:
    """Show how errors and timeouts are reported."""
    console.print(Panel("Failures", expand=False))

    await manager.run("values = [1, 2]\nvalues[5]", "python", show)
    await manager.run("SELECT * FROM missing;\nSELECT 'still runs' AS note;", "sql", show)

    result = await manager.run("while True:\n    pass", "python", show, timeout=1000)
    console.print(f"  timed_out={result.timed_out}")
    # The interpreter is still spinning; recycle it.
    await manager.registry.get_runner("python").cleanup()


async def demo_parallel(manager: RunnerManager) -> None:
    """Different languages run side by side."""
    console.print(Panel("Parallel runs", expand=False))
    results = await asyncio.gather(
        manager.run("import time\ntime.sleep(0.5)\nprint('python done')", "python", show),
        manager.run("SELECT 'sql done' AS status;", "sql", show),
        manager.run('{"parallel": true}', "json", show),
    )
    console.print(f"  all succeeded: {all(result.success for result in results)}")


async def main() -> None:
    manager = RunnerManager()
    try:
        await demo_examples(manager)
        await demo_failures(manager)
        await demo_parallel(manager)
    finally:
        await manager.cleanup()


if __name__ == "__main__":
    asyncio.run(main())
