"""TypeScriptRunner: transpiles and executes TypeScript in a guest process."""

from __future__ import annotations

from coderunner.core.protocol import TYPESCRIPT_CHANNEL
from coderunner.runtimes.javascript.runner import JavaScriptRunner

EXAMPLE_CODE = """// TypeScript example
interface User {
    name: string;
    age: number;
}

const user: User = {
    name: "Alice",
    age: 25
};

console.log(`User: ${user.name}, age: ${user.age}`);

// Generic functions
function identity<T>(arg: T): T {
    return arg;
}

console.log(identity<string>("Hello TypeScript!"));
console.log(identity<number>(42));
"""


class TypeScriptRunner(JavaScriptRunner):
    language = "typescript"
    channel = TYPESCRIPT_CHANNEL
    guest_module = "coderunner.runtimes.typescript.guest"

    def guest_args(self) -> list[str]:
        args = super().guest_args()
        if self.settings.typescript_js_path:
            args += ["--typescript", self.settings.typescript_js_path]
        return args

    def get_placeholder(self) -> str:
        return '// Enter TypeScript code\nconst msg: string = "Hello, World!";\nconsole.log(msg);'

    def get_example_code(self) -> str:
        return EXAMPLE_CODE
