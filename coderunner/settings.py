"""Runner configuration loading.

Provides default runner settings and TOML-based configuration loading for
timeouts, output limits, and engine locations.
"""

from __future__ import annotations

import os
import tomllib
from typing import Any

from coderunner.core.errors import SettingsValidationError
from coderunner.core.models import RunnerSettings

DEFAULT_SETTINGS: dict[str, Any] = {
    # Applied when neither the call nor timeouts_ms names a budget
    "default_timeout_ms": 30_000,

    # Per-language overrides, keyed by language id
    "timeouts_ms": {
        "lua": 15_000,
    },

    # Events relayed per run before the truncation notice
    "output_limit": 1000,

    # Destroy the guest after a timeout instead of leaving it running
    "recycle_on_timeout": False,

    # External engines
    "ruby_executable": "ruby",

    # QuickJS host limits - instruction budget and linear memory cap
    "fuel_budget": 2_000_000_000,
    "memory_bytes": 128_000_000,
}


def load_settings(path: str = "config/runner.toml") -> RunnerSettings:
    """Load and merge user runner configuration with defaults.

    Performs a shallow merge of user-provided TOML settings with
    DEFAULT_SETTINGS. The timeouts_ms table is deep-merged so a file can
    override one language without dropping the other defaults.

    Args:
        path: Path to the settings TOML file. If the file doesn't exist,
              returns RunnerSettings with defaults.

    Returns:
        RunnerSettings: Validated settings model with merged configuration.

    Raises:
        SettingsValidationError: If settings contain invalid values (negative
                                 timeouts, invalid types, etc.)
        tomllib.TOMLDecodeError: If TOML file is malformed
        OSError: If file exists but cannot be read
    """
    if not os.path.exists(path):
        return RunnerSettings(**DEFAULT_SETTINGS)

    with open(path, "rb") as f:
        data = tomllib.load(f)

    settings = DEFAULT_SETTINGS | data

    timeouts = data.get("timeouts_ms", {})
    if not isinstance(timeouts, dict):
        raise SettingsValidationError("timeouts_ms must be a table of language = milliseconds")
    settings["timeouts_ms"] = DEFAULT_SETTINGS["timeouts_ms"] | timeouts

    return RunnerSettings(**settings)
