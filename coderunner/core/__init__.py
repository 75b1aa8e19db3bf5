"""Core runner abstractions and models.

This module provides the foundational types and interfaces for the
multi-language code runner: Pydantic models for language descriptors,
output events and results, the protocol bridge, the base runner
abstraction, the language registry, and error types.
"""

from __future__ import annotations

from .base import BaseRunner, OutputSink
from .errors import (
    ExecutionTimeoutError,
    RunnerError,
    SandboxBootstrapError,
    SandboxCrashedError,
    SandboxDestroyedError,
    SettingsValidationError,
)
from .languages import LANGUAGES, find_language, get_descriptor
from .models import (
    ExecutionResult,
    LanguageDescriptor,
    OutputEvent,
    OutputLevel,
    RunnerKind,
    RunnerSettings,
    SyntaxCheck,
)

__all__ = [
    "LANGUAGES",
    "BaseRunner",
    "ExecutionResult",
    "ExecutionTimeoutError",
    "LanguageDescriptor",
    "OutputEvent",
    "OutputLevel",
    "OutputSink",
    "RunnerError",
    "RunnerKind",
    "RunnerSettings",
    "SandboxBootstrapError",
    "SandboxCrashedError",
    "SandboxDestroyedError",
    "SettingsValidationError",
    "SyntaxCheck",
    "find_language",
    "get_descriptor",
]
