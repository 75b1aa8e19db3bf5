"""Static table of supported languages."""

from __future__ import annotations

from coderunner.core.models import LanguageDescriptor, RunnerKind

LANGUAGES: tuple[LanguageDescriptor, ...] = (
    LanguageDescriptor(
        id="javascript",
        display_name="JavaScript",
        icon="🟨",
        file_extension=".js",
        runner_kind=RunnerKind.JAVASCRIPT,
        aliases=("js", "mjs"),
    ),
    LanguageDescriptor(
        id="typescript",
        display_name="TypeScript",
        icon="🔷",
        file_extension=".ts",
        runner_kind=RunnerKind.TYPESCRIPT,
        aliases=("ts",),
    ),
    LanguageDescriptor(
        id="python",
        display_name="Python",
        icon="🐍",
        file_extension=".py",
        runner_kind=RunnerKind.PYTHON,
        aliases=("py", "python3"),
    ),
    LanguageDescriptor(
        id="sql",
        display_name="SQL",
        icon="🗃️",
        file_extension=".sql",
        runner_kind=RunnerKind.SQL,
        aliases=("sqlite",),
    ),
    LanguageDescriptor(
        id="lua",
        display_name="Lua",
        icon="🌙",
        file_extension=".lua",
        runner_kind=RunnerKind.LUA,
    ),
    LanguageDescriptor(
        id="ruby",
        display_name="Ruby",
        icon="💎",
        file_extension=".rb",
        runner_kind=RunnerKind.RUBY,
        aliases=("rb",),
    ),
    LanguageDescriptor(
        id="html",
        display_name="HTML",
        icon="🌐",
        file_extension=".html",
        runner_kind=RunnerKind.HTML,
        aliases=("htm", "xml"),
    ),
    LanguageDescriptor(
        id="json",
        display_name="JSON",
        icon="📋",
        file_extension=".json",
        runner_kind=RunnerKind.JSON,
    ),
    LanguageDescriptor(
        id="markdown",
        display_name="Markdown",
        icon="📝",
        file_extension=".md",
        runner_kind=RunnerKind.MARKDOWN,
        aliases=("md",),
    ),
)

_BY_ID: dict[str, LanguageDescriptor] = {lang.id: lang for lang in LANGUAGES}


def get_descriptor(language: str) -> LanguageDescriptor | None:
    """Look up a descriptor by its exact id."""
    return _BY_ID.get(language)


def find_language(
    name: str, languages: tuple[LanguageDescriptor, ...] = LANGUAGES
) -> LanguageDescriptor | None:
    """Resolve an id, alias, or file extension to a descriptor.

    Matching is case-insensitive; "script.py", ".py", "py" and "Python" all
    resolve to the Python descriptor.
    """
    key = name.strip().lower()
    if not key:
        return None
    if "." in key:
        key = key.rsplit(".", 1)[-1]

    for lang in languages:
        candidates = {lang.id, lang.display_name.lower(), lang.file_extension.lstrip("."), *lang.aliases}
        if key in candidates:
            return lang
    return None
