"""MarkdownRunner: renders Markdown to HTML for the preview pane."""

from __future__ import annotations

import markdown

from coderunner.core.models import OutputLevel
from coderunner.runtimes.base import DirectRunner
from coderunner.sandbox.guest import Emit

EXTENSIONS = ["fenced_code", "tables"]

EXAMPLE_CODE = """# Markdown example

## Text formatting

This is **bold** and *italic* text, with `inline code`.

## Lists

- Item 1
- Item 2
    - Sub-item A
    - Sub-item B

1. First
2. Second
3. Third

## Quotes

> A quoted paragraph
> spanning two lines

## Code

```python
print("Hello, Markdown!")
```

## Tables

| Language | Runner |
|----------|--------|
| Python   | guest  |
| JSON     | direct |
"""


class MarkdownRunner(DirectRunner):
    language = "markdown"

    def render(self, code: str, emit: Emit) -> None:
        html = markdown.markdown(code, extensions=EXTENSIONS)
        emit(OutputLevel.MARKDOWN_PREVIEW, {"html": html, "raw": code})

    def get_placeholder(self) -> str:
        return "# Title\n\nEnter Markdown content..."

    def get_example_code(self) -> str:
        return EXAMPLE_CODE
