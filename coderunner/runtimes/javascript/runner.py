"""JavaScriptRunner: executes JavaScript in QuickJS-WASM inside a guest process."""

from __future__ import annotations

from coderunner.core.protocol import JAVASCRIPT_CHANNEL
from coderunner.runtimes.base import SandboxedRunner

EXAMPLE_CODE = """// JavaScript example
console.log('Hello, Runner!');

const numbers = [1, 2, 3, 4, 5];
const sum = numbers.reduce((a, b) => a + b, 0);
console.log('Sum of numbers:', sum);

// Top-level await is supported
async function fetchData() {
    return new Promise(resolve => {
        setTimeout(() => {
            resolve('Async data loaded!');
        }, 100);
    });
}

const data = await fetchData();
console.log(data);
"""


class JavaScriptRunner(SandboxedRunner):
    language = "javascript"
    channel = JAVASCRIPT_CHANNEL
    guest_module = "coderunner.runtimes.javascript.guest"

    def guest_args(self) -> list[str]:
        args = [
            "--fuel",
            str(self.settings.fuel_budget),
            "--memory",
            str(self.settings.memory_bytes),
        ]
        if self.settings.quickjs_wasm_path:
            args += ["--wasm", self.settings.quickjs_wasm_path]
        return args

    def get_placeholder(self) -> str:
        return '// Enter JavaScript code\nconsole.log("Hello, World!");'

    def get_example_code(self) -> str:
        return EXAMPLE_CODE
