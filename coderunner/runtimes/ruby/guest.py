"""Ruby guest: drives the system ``ruby`` interpreter, one child per request.

The code is sent on the child's stdin and evaluated at top level under the
file name ``main.rb``. Standard output lines become LOG events; a non-nil
final value is echoed as ``=> value``. The first line of standard error is
the error message, with Ruby's location prefix rewritten to ``line N:``.
"""

from __future__ import annotations

import re
import shutil
import subprocess
import tempfile

from coderunner.core.models import OutputLevel
from coderunner.core.protocol import RUBY_CHANNEL
from coderunner.sandbox.guest import Emit, GuestFailure, GuestRuntime, main

RESULT_MARKER = "\x00=> "

PRELUDE = r"""
$stdout.sync = true
__source = $stdin.read
__result = TOPLEVEL_BINDING.eval(__source, "main.rb", 1)
$stdout.puts("\0=> " + __result.inspect) unless __result.nil?
"""

_EVAL_FRAME = re.compile(r"^-e:\d+:in [`'][^']*':\s*")
_LOCATION = re.compile(r"^main\.rb:(\d+):(?:in [`'][^']*':)?\s*")


def normalize_ruby_error(stderr: str) -> str:
    """First non-blank stderr line with ``main.rb:N:in '...':`` turned into ``line N:``."""
    for line in stderr.splitlines():
        if line.strip():
            return _LOCATION.sub(r"line \1: ", _EVAL_FRAME.sub("", line.strip()))
    return ""


class RubyGuest(GuestRuntime):
    channel = RUBY_CHANNEL

    def __init__(self, argv: list[str] | None = None) -> None:
        super().__init__(argv)
        self.ruby = self.argv[0] if self.argv else "ruby"
        self.executable: str | None = None

    def load(self) -> None:
        self.executable = shutil.which(self.ruby)
        if self.executable is None:
            raise GuestFailure(f"Ruby interpreter not found: {self.ruby}")

        version = subprocess.run(
            [self.executable, "--version"],
            capture_output=True,
            text=True,
            timeout=30,
            check=False,
        )
        self.loading(version.stdout.strip() or "Ruby environment loaded")

    def run(self, code: str, emit: Emit) -> None:
        assert self.executable is not None
        with tempfile.TemporaryFile() as errors:
            process = subprocess.Popen(
                [self.executable, "-e", PRELUDE],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=errors,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
            assert process.stdin is not None and process.stdout is not None
            process.stdin.write(code)
            process.stdin.close()

            for line in process.stdout:
                line = line.rstrip("\n")
                if line.startswith(RESULT_MARKER):
                    emit(OutputLevel.RESULT, line[1:])
                else:
                    emit(OutputLevel.LOG, line)

            returncode = process.wait()
            if returncode != 0:
                errors.seek(0)
                stderr = errors.read().decode("utf-8", errors="replace")
                raise GuestFailure(normalize_ruby_error(stderr) or f"ruby exited with status {returncode}")


if __name__ == "__main__":
    main(RubyGuest)
