"""Guest process management and the guest-side serve loop."""

from __future__ import annotations

from .guest import Emit, GuestFailure, GuestRuntime, LineWriter, main
from .manager import SandboxManager, SandboxState

__all__ = [
    "Emit",
    "GuestFailure",
    "GuestRuntime",
    "LineWriter",
    "SandboxManager",
    "SandboxState",
    "main",
]
