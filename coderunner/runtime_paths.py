"""Location of engine assets that do not ship as Python packages.

The QuickJS WASI binary lives in a ``bin/`` directory and the TypeScript
compiler bundle in ``vendor_js/``, either next to the installed package or
in the current working directory during development.
"""

from __future__ import annotations

from pathlib import Path

QUICKJS_BINARY = "quickjs.wasm"
TYPESCRIPT_BUNDLE = "typescript.js"


def _search_roots() -> list[Path]:
    package_dir = Path(__file__).resolve().parent.parent  # coderunner/ -> project root
    return [package_dir, Path.cwd()]


def get_bundled_binary_path(binary_name: str) -> Path:
    """Get path to a WASM binary under a ``bin/`` directory.

    Searches the project root first, then the current working directory.

    Args:
        binary_name: Name of WASM binary file (e.g., "quickjs.wasm")

    Returns:
        Path to WASM binary file

    Raises:
        FileNotFoundError: If binary cannot be found in any search location
    """
    candidates = [root / "bin" / binary_name for root in _search_roots()]
    for candidate in candidates:
        if candidate.is_file():
            return candidate

    raise FileNotFoundError(
        f"WASM binary '{binary_name}' not found (searched: "
        + ", ".join(str(candidate) for candidate in candidates)
        + ")"
    )


def get_quickjs_wasm_path() -> Path:
    """Get path to the QuickJS WASM binary.

    Raises:
        FileNotFoundError: If quickjs.wasm cannot be found
    """
    return get_bundled_binary_path(QUICKJS_BINARY)


def get_vendor_js_path() -> Path | None:
    """Get path to the ``vendor_js`` directory, or None if not found."""
    for root in _search_roots():
        candidate = root / "vendor_js"
        if candidate.is_dir():
            return candidate
    return None


def get_typescript_js_path() -> Path:
    """Get path to the TypeScript compiler bundle.

    Raises:
        FileNotFoundError: If vendor_js/typescript.js cannot be found
    """
    vendor = get_vendor_js_path()
    if vendor is not None and (vendor / TYPESCRIPT_BUNDLE).is_file():
        return vendor / TYPESCRIPT_BUNDLE
    raise FileNotFoundError(f"TypeScript compiler '{TYPESCRIPT_BUNDLE}' not found in vendor_js/")
