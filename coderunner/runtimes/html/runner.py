"""HtmlRunner: hands markup to the preview renderer unchanged."""

from __future__ import annotations

from coderunner.core.models import OutputLevel
from coderunner.runtimes.base import DirectRunner
from coderunner.sandbox.guest import Emit

EXAMPLE_CODE = """<!DOCTYPE html>
<html>
<head>
    <style>
        body {
            font-family: -apple-system, sans-serif;
            padding: 20px;
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            min-height: 100vh;
            margin: 0;
        }
        .card {
            background: white;
            border-radius: 12px;
            padding: 24px;
            box-shadow: 0 10px 40px rgba(0,0,0,0.2);
            max-width: 300px;
        }
        h1 { color: #333; margin: 0 0 12px; }
        p { color: #666; margin: 0; }
    </style>
</head>
<body>
    <div class="card">
        <h1>Hello, HTML!</h1>
        <p>This card is rendered in the preview pane.</p>
    </div>
</body>
</html>
"""


class HtmlRunner(DirectRunner):
    language = "html"

    def render(self, code: str, emit: Emit) -> None:
        emit(OutputLevel.HTML_PREVIEW, {"html": code})

    def get_placeholder(self) -> str:
        return "<!-- Enter HTML code -->\n<h1>Hello World</h1>"

    def get_example_code(self) -> str:
        return EXAMPLE_CODE
