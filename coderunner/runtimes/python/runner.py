"""PythonRunner: executes Python in a dedicated interpreter process."""

from __future__ import annotations

import ast

from coderunner.core.models import SyntaxCheck
from coderunner.core.protocol import PYTHON_CHANNEL
from coderunner.runtimes.base import SandboxedRunner

EXAMPLE_CODE = """# Python example
print('Hello, Runner!')

numbers = [1, 2, 3, 4, 5]
total = sum(numbers)
print(f'Sum of numbers: {total}')

# Top-level await is supported
import asyncio

async def fetch_data():
    await asyncio.sleep(0.1)
    return 'Async data loaded!'

data = await fetch_data()
print(data)

# The value of a trailing expression is echoed
{'total': total, 'count': len(numbers)}
"""


class PythonRunner(SandboxedRunner):
    language = "python"
    channel = PYTHON_CHANNEL
    guest_module = "coderunner.runtimes.python.guest"

    def get_placeholder(self) -> str:
        return '# Enter Python code\nprint("Hello, World!")'

    def get_example_code(self) -> str:
        return EXAMPLE_CODE

    def validate_syntax(self, code: str) -> SyntaxCheck:
        try:
            compile(code, "<exec>", "exec", flags=ast.PyCF_ALLOW_TOP_LEVEL_AWAIT, dont_inherit=True)
        except SyntaxError as e:
            return SyntaxCheck(valid=False, error=f"line {e.lineno}: {e.msg}")
        except ValueError as e:
            return SyntaxCheck(valid=False, error=str(e))
        return SyntaxCheck(valid=True)
