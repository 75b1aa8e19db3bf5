"""JavaScript guest: runs code in QuickJS-WASM through QuickJSHost.

User code is wrapped in an async function so top-level ``await`` works and a
rejected promise is reported like an uncaught exception. Standard output lines
become LOG events; on failure the first standard error line is the message.
"""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence

from coderunner.core.models import OutputLevel
from coderunner.core.protocol import JAVASCRIPT_CHANNEL
from coderunner.host import QuickJSHost
from coderunner.runtime_paths import get_quickjs_wasm_path
from coderunner.sandbox.guest import Emit, GuestFailure, GuestRuntime, main

# Timers live on the global os object when qjs is started with --std.
PRELUDE = """\
if (typeof setTimeout === "undefined" && typeof os !== "undefined") {
    globalThis.setTimeout = os.setTimeout;
    globalThis.clearTimeout = os.clearTimeout;
}
const __report = (e) => {
    const text = e instanceof Error ? `${e.name}: ${e.message}` : `Uncaught ${String(e)}`;
    std.err.puts(text + "\\n");
    std.err.flush();
    std.exit(1);
};
"""


def wrap_async(source_expression: str) -> str:
    """Script that evaluates the JS source held in a string expression."""
    return (
        PRELUDE
        + "let __compiled;\n"
        + "try {\n"
        + f"    __compiled = (0, eval)('(async () => {{\\n' + {source_expression} + '\\n}})');\n"
        + "} catch (e) {\n"
        + "    __report(e);\n"
        + "}\n"
        + "__compiled().catch(__report);\n"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coderunner-js-guest")
    parser.add_argument("--wasm", default=None)
    parser.add_argument("--fuel", type=int, default=2_000_000_000)
    parser.add_argument("--memory", type=int, default=128_000_000)
    parser.add_argument("--typescript", default=None)
    return parser


class JavaScriptGuest(GuestRuntime):
    channel = JAVASCRIPT_CHANNEL
    engine_name = "QuickJS"

    def __init__(self, argv: Sequence[str] | None = None) -> None:
        super().__init__(argv)
        self.options = build_parser().parse_args(self.argv)
        self.host: QuickJSHost | None = None

    def load(self) -> None:
        wasm_path = self.options.wasm or get_quickjs_wasm_path()
        self.host = QuickJSHost(wasm_path, self.options.fuel, self.options.memory)
        self.loading(f"{self.engine_name} environment loaded")

    def build_script(self, code: str) -> str:
        return wrap_async(json.dumps(code))

    def readonly_mounts(self) -> list[tuple[str, str]]:
        return []

    def run(self, code: str, emit: Emit) -> None:
        assert self.host is not None
        result = self.host.run(self.build_script(code), self.readonly_mounts())

        for line in result.stdout.splitlines():
            emit(OutputLevel.LOG, line)

        if not result.ok:
            raise GuestFailure(result.error_message())

        for line in result.stderr.splitlines():
            if line.strip():
                emit(OutputLevel.ERROR, line)


if __name__ == "__main__":
    main(JavaScriptGuest)
