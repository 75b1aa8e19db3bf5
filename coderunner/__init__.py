"""coderunner: run code in many languages behind one interface.

Sandboxed languages (Python, SQL, Lua, Ruby, TypeScript, JavaScript) execute
in dedicated guest processes reached through a line-delimited JSON protocol;
HTML, JSON and Markdown are rendered in-process.

Quick start::

    import asyncio
    from coderunner import RunnerManager

    async def main():
        manager = RunnerManager()
        result = await manager.run("print('hi')", "python", on_output=print)
        await manager.cleanup()

    asyncio.run(main())
"""

from __future__ import annotations

from coderunner.core import (
    LANGUAGES,
    BaseRunner,
    ExecutionResult,
    ExecutionTimeoutError,
    LanguageDescriptor,
    OutputEvent,
    OutputLevel,
    RunnerError,
    RunnerKind,
    RunnerSettings,
    SandboxBootstrapError,
    SandboxCrashedError,
    SandboxDestroyedError,
    SettingsValidationError,
    SyntaxCheck,
    find_language,
)
from coderunner.core.logging import RunnerLogger, configure_structlog
from coderunner.core.registry import LanguageRegistry
from coderunner.manager import RunnerManager
from coderunner.settings import DEFAULT_SETTINGS, load_settings

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SETTINGS",
    "LANGUAGES",
    "BaseRunner",
    "ExecutionResult",
    "ExecutionTimeoutError",
    "LanguageDescriptor",
    "LanguageRegistry",
    "OutputEvent",
    "OutputLevel",
    "RunnerError",
    "RunnerKind",
    "RunnerLogger",
    "RunnerManager",
    "RunnerSettings",
    "SandboxBootstrapError",
    "SandboxCrashedError",
    "SandboxDestroyedError",
    "SettingsValidationError",
    "SyntaxCheck",
    "configure_structlog",
    "find_language",
    "load_settings",
]
