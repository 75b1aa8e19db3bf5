"""Shared pytest fixtures for all tests."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog

from coderunner.core.logging import RunnerLogger
from coderunner.core.models import OutputEvent, OutputLevel, RunnerSettings

FAKE_GUEST = Path(__file__).with_name("fake_guest.py")


class StructlogCapture:
    """Helper to capture structlog events."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        """Capture event dict (structlog processor signature)."""
        self.events.append(event_dict.copy())
        return event_dict

    def named(self, event: str) -> list[dict[str, Any]]:
        return [entry for entry in self.events if entry.get("event") == event]


class OutputCollector:
    """Output sink that records every event it receives."""

    def __init__(self) -> None:
        self.events: list[OutputEvent] = []

    def __call__(self, event: OutputEvent) -> None:
        self.events.append(event)

    def at(self, level: OutputLevel) -> list[Any]:
        return [event.data for event in self.events if event.level is level]

    @property
    def logs(self) -> list[Any]:
        return self.at(OutputLevel.LOG)

    @property
    def errors(self) -> list[Any]:
        return self.at(OutputLevel.ERROR)

    @property
    def results(self) -> list[Any]:
        return self.at(OutputLevel.RESULT)


@pytest.fixture
def log_capture() -> StructlogCapture:
    """Fixture providing structlog event capture."""
    return StructlogCapture()


@pytest.fixture
def runner_logger(log_capture: StructlogCapture) -> RunnerLogger:
    """RunnerLogger backed by a structlog logger with capture processor."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            log_capture,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.BoundLogger,
        context_class=dict,
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    return RunnerLogger(structlog.get_logger("test_coderunner"))


@pytest.fixture
def collector() -> OutputCollector:
    return OutputCollector()


@pytest.fixture
def settings() -> RunnerSettings:
    return RunnerSettings(python_executable=sys.executable)


@pytest.fixture
def fake_guest_command() -> Callable[..., list[str]]:
    """Build the argv of the scripted fake guest."""

    def build(mode: str = "ready") -> list[str]:
        return [sys.executable, str(FAKE_GUEST), mode]

    return build


@pytest.fixture(autouse=True)
def reset_structlog():
    """Restore structlog defaults so configured streams do not leak between tests."""
    yield
    structlog.reset_defaults()
