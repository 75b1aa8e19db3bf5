"""Pydantic models for languages, output events, and execution results.

Provides validated data models shared by the registry, the runners, the
sandbox manager, and the protocol bridge. Everything that crosses the
orchestrator/guest boundary is one of these models or built from them.
"""

from __future__ import annotations

import json
import sys
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from coderunner.core.errors import SettingsValidationError


class RunnerKind(str, Enum):
    """Runner implementation used for a language descriptor."""

    PYTHON = "python"
    SQL = "sql"
    LUA = "lua"
    RUBY = "ruby"
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    HTML = "html"
    JSON = "json"
    MARKDOWN = "markdown"


class LanguageDescriptor(BaseModel):
    """Static description of a supported language.

    Attributes:
        id: Unique language key (e.g. "python")
        display_name: Human-readable name shown by the UI
        icon: Short glyph shown next to the name
        file_extension: Canonical source file extension, including the dot
        runner_kind: Which runner implementation executes this language
        aliases: Extra names and extensions that resolve to this language
    """

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    icon: str
    file_extension: str
    runner_kind: RunnerKind
    aliases: tuple[str, ...] = ()


class OutputLevel(str, Enum):
    """Closed set of output event kinds.

    LOG, INFO, WARN, ERROR and RESULT carry text. The preview and formatted
    kinds carry a dict payload for a specific renderer.
    """

    LOG = "log"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    RESULT = "result"
    HTML_PREVIEW = "html-preview"
    MARKDOWN_PREVIEW = "markdown-preview"
    JSON_FORMATTED = "json-formatted"

    @property
    def is_structured(self) -> bool:
        return self in (
            OutputLevel.HTML_PREVIEW,
            OutputLevel.MARKDOWN_PREVIEW,
            OutputLevel.JSON_FORMATTED,
        )


class OutputEvent(BaseModel):
    """A single piece of output relayed to the caller's sink.

    Attributes:
        level: Event kind
        data: Text for textual levels, a dict for structured kinds (and for
              tabular SQL results)
        truncated: True on the notice emitted when the output limit is hit
    """

    level: OutputLevel
    data: Any = None
    truncated: bool = False

    @property
    def text(self) -> str:
        """Payload rendered as a single string."""
        if self.data is None:
            return ""
        if isinstance(self.data, str):
            return self.data
        if isinstance(self.data, (list, tuple)):
            return " ".join(str(item) for item in self.data)
        return json.dumps(self.data, ensure_ascii=False, default=str)


class ExecutionResult(BaseModel):
    """Terminal outcome of one execute() call.

    Attributes:
        success: Whether the code ran to completion without errors
        duration_ms: Execution time in milliseconds (guest-measured when the
                     guest reported completion, orchestrator-measured otherwise)
        language: Language id of the runner that produced this result
        error: Failure message; "timeout" when the budget elapsed
        timed_out: True when the orchestrator stopped waiting. The guest may
                   still be running; recycle the runner with cleanup()
    """

    success: bool
    duration_ms: float = Field(default=0.0, ge=0)
    language: str
    error: str | None = None
    timed_out: bool = False

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "success": True,
                    "duration_ms": 12.5,
                    "language": "python",
                    "error": None,
                    "timed_out": False,
                }
            ]
        }
    }


class SyntaxCheck(BaseModel):
    """Result of a syntax-only validation."""

    valid: bool
    error: str | None = None


class RunnerSettings(BaseModel):
    """Type-safe configuration for runners and their sandbox managers.

    Attributes:
        default_timeout_ms: Timeout applied when neither the call nor
                            timeouts_ms names one
        timeouts_ms: Per-language timeout overrides, keyed by language id
        output_limit: Maximum events relayed per run by RunnerManager
        recycle_on_timeout: Destroy the sandbox after a request times out in
                            the guest so the next call starts a fresh one;
                            requests that timed out while queued are exempt
        python_executable: Interpreter used to launch guest processes
        ruby_executable: Ruby interpreter driven by the Ruby guest
        quickjs_wasm_path: QuickJS WASM binary (None = search bin/)
        typescript_js_path: TypeScript compiler bundle (None = search vendor_js/)
        fuel_budget: WASM instruction limit for QuickJS guests
        memory_bytes: Linear memory cap for QuickJS guests
    """

    default_timeout_ms: int = Field(default=30_000, gt=0)
    timeouts_ms: dict[str, int] = Field(default_factory=lambda: {"lua": 15_000})
    output_limit: int = Field(default=1000, gt=0)
    recycle_on_timeout: bool = False
    python_executable: str = Field(default_factory=lambda: sys.executable)
    ruby_executable: str = "ruby"
    quickjs_wasm_path: str | None = None
    typescript_js_path: str | None = None
    fuel_budget: int = Field(default=2_000_000_000, gt=0)
    memory_bytes: int = Field(default=128_000_000, gt=0)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise SettingsValidationError(f"Invalid runner settings: {e}") from e

    @field_validator("timeouts_ms")
    @classmethod
    def validate_timeouts(cls, v: dict[str, int]) -> dict[str, int]:
        """Ensure per-language timeouts are positive."""
        for language, timeout in v.items():
            if timeout <= 0:
                raise ValueError(f"Timeout for {language!r} must be positive")
        return v

    def timeout_for(self, language: str) -> int:
        """Default timeout in milliseconds for a language."""
        return self.timeouts_ms.get(language, self.default_timeout_ms)
