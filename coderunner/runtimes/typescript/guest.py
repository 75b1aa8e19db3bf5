"""TypeScript guest: transpiles with ``typescript.js`` inside QuickJS, then runs.

The compiler bundle is mounted read-only at /vendor and loaded into every
run; ``ts.transpile`` strips types without type checking.
"""

from __future__ import annotations

import json
from pathlib import Path

from coderunner.core.protocol import TYPESCRIPT_CHANNEL
from coderunner.runtime_paths import get_typescript_js_path
from coderunner.runtimes.javascript.guest import JavaScriptGuest, wrap_async
from coderunner.sandbox.guest import main

VENDOR_MOUNT_PATH = "/vendor"


class TypeScriptGuest(JavaScriptGuest):
    channel = TYPESCRIPT_CHANNEL
    engine_name = "TypeScript compiler"

    def load(self) -> None:
        bundle = Path(self.options.typescript) if self.options.typescript else get_typescript_js_path()
        if not bundle.is_file():
            raise FileNotFoundError(f"TypeScript compiler not found: {bundle}")
        self.bundle = bundle
        super().load()

    def readonly_mounts(self) -> list[tuple[str, str]]:
        return [(str(self.bundle.parent), VENDOR_MOUNT_PATH)]

    def build_script(self, code: str) -> str:
        loader = (
            f'std.loadScript("{VENDOR_MOUNT_PATH}/{self.bundle.name}");\n'
            "const __transpiled = ts.transpile("
            f"{json.dumps(code)}, {{ target: ts.ScriptTarget.ES2020 }});\n"
        )
        return loader + wrap_async("__transpiled")


if __name__ == "__main__":
    main(TypeScriptGuest)
