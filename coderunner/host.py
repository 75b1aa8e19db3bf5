"""WASM host for the QuickJS JavaScript engine.

QuickJSHost compiles the QuickJS WASI binary once with Wasmtime and runs each
script in a fresh Store with:
- WASI capability-based filesystem isolation (only the script directory and
  explicitly mounted read-only directories are visible)
- Deterministic execution limits via fuel budgeting
- A hard cap on WASM linear memory

Used by the JavaScript and TypeScript guests.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from wasmtime import (
    Config,
    DirPerms,
    Engine,
    ExitTrap,
    FilePerms,
    Linker,
    Module,
    Store,
    Trap,
    WasiConfig,
)

GUEST_MOUNT_PATH = "/app"
SCRIPT_NAME = "user_code.js"
OUTPUT_CAP_BYTES = 2_000_000


@dataclass
class HostResult:
    """Outcome of one QuickJS run.

    Attributes:
        stdout: Captured standard output (capped)
        stderr: Captured standard error (capped), with a trap notice appended
        exit_code: WASI exit status (1 when the run trapped)
        trap_reason: "out_of_fuel", "memory_limit", "trap", "proc_exit" or None
        fuel_consumed: Instructions executed, None if unavailable
    """

    stdout: str
    stderr: str
    exit_code: int
    trap_reason: str | None = None
    fuel_consumed: int | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and self.trap_reason is None

    def error_message(self) -> str:
        """First meaningful stderr line, or a description of the trap."""
        for line in self.stderr.splitlines():
            if line.strip():
                return line.strip()
        if self.trap_reason == "out_of_fuel":
            return "Execution trapped: OutOfFuel"
        return f"QuickJS exited with status {self.exit_code}"


class QuickJSHost:
    """Runs scripts in QuickJS-WASM under fuel and memory limits.

    Attributes:
        wasm_path: Path of the QuickJS WASI binary
        fuel_budget: Instruction budget per run
        memory_bytes: Linear memory cap per run
    """

    def __init__(self, wasm_path: str | Path, fuel_budget: int, memory_bytes: int) -> None:
        self.wasm_path = Path(wasm_path)
        self.fuel_budget = int(fuel_budget)
        self.memory_bytes = int(memory_bytes)

        cfg = Config()
        cfg.consume_fuel = True
        self.engine = Engine(cfg)
        self.linker = Linker(self.engine)
        self.linker.define_wasi()
        self.module = Module.from_file(self.engine, str(self.wasm_path))

    def run(
        self,
        script: str,
        readonly_mounts: Sequence[tuple[str, str]] = (),
    ) -> HostResult:
        """Execute a script with ``qjs --std``.

        Args:
            script: JavaScript source written to /app/user_code.js
            readonly_mounts: (host_dir, guest_path) pairs mounted read-only

        Returns:
            HostResult with captured output and trap classification

        Raises:
            wasmtime.WasmtimeError: If the module fails to instantiate
        """
        tmp = tempfile.mkdtemp(prefix="coderunner-js-")
        try:
            workspace = os.path.join(tmp, "app")
            os.mkdir(workspace)
            with open(os.path.join(workspace, SCRIPT_NAME), "w", encoding="utf-8") as f:
                f.write(script)
            out_log = os.path.join(tmp, "stdout.log")
            err_log = os.path.join(tmp, "stderr.log")

            wasi = WasiConfig()
            wasi.preopen_dir(workspace, GUEST_MOUNT_PATH)
            for host_dir, guest_path in readonly_mounts:
                wasi.preopen_dir(
                    os.path.abspath(host_dir),
                    guest_path,
                    DirPerms.READ_ONLY,
                    FilePerms.READ_ONLY,
                )
            # Global std/os objects; the WASI build's module loader does not
            # resolve the builtin "std" and "os" module names.
            wasi.argv = ("qjs", "--std", f"{GUEST_MOUNT_PATH}/{SCRIPT_NAME}")
            wasi.stdout_file = out_log
            wasi.stderr_file = err_log

            store = Store(self.engine)
            store.set_wasi(wasi)
            store.set_fuel(self.fuel_budget)
            store.set_limits(memory_size=self.memory_bytes)

            instance = self.linker.instantiate(store, self.module)
            start = instance.exports(store)["_start"]

            trap_reason: str | None = None
            trap_message: str | None = None
            try:
                start(store)  # type: ignore[operator]
                exit_code = 0
            except ExitTrap as trap:
                exit_code = trap.code
                if trap.code != 0:
                    trap_reason = "proc_exit"
            except Trap as trap:
                exit_code = 1
                trap_message = str(trap)
                trap_reason = _classify_trap(trap_message)

            try:
                fuel_consumed: int | None = self.fuel_budget - store.get_fuel()
            except Exception:
                fuel_consumed = None

            stdout, _ = _read_capped(out_log, OUTPUT_CAP_BYTES)
            stderr, _ = _read_capped(err_log, OUTPUT_CAP_BYTES)

            if trap_reason == "out_of_fuel":
                stderr = f"{stderr.rstrip()}\nExecution trapped: OutOfFuel".strip()
            elif trap_reason in ("memory_limit", "trap") and trap_message:
                stderr = f"{stderr.rstrip()}\nExecution trapped: {trap_message}".strip()
        finally:
            shutil.rmtree(tmp, ignore_errors=True)

        return HostResult(
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            trap_reason=None if trap_reason == "proc_exit" else trap_reason,
            fuel_consumed=fuel_consumed,
        )


def _classify_trap(message: str | None) -> str | None:
    """Classify trap reason based on message content for easier diagnostics."""
    if message is None:
        return None

    lowered = message.lower()
    if "fuel" in lowered:
        return "out_of_fuel"
    if "memory" in lowered:
        return "memory_limit"
    return "trap"


def _read_capped(path: str, cap: int) -> tuple[str, bool]:
    """Read file up to cap bytes to prevent unbounded output."""
    try:
        with open(path, "rb") as f:
            data = f.read(cap + 1)
    except FileNotFoundError:
        return "", False
    return data[:cap].decode("utf-8", errors="replace"), len(data) > cap
