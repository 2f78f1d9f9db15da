"""Regex-based import and export extraction.

This is an approximation, not a parser. Each extractor returns plain lists of
strings (raw import specifiers, exported names) so a real per-language parser
could replace it without touching the graph builder.
"""

from __future__ import annotations

import re

JS_EXTENSIONS = frozenset({".ts", ".tsx", ".js", ".jsx", ".mjs"})
PYTHON_EXTENSIONS = frozenset({".py"})

_JS_STATIC_IMPORT = re.compile(
    r"""import\s+(?:(?:\{[^}]*\}|\*\s+as\s+\w+|\w+)\s*,?\s*)*\s*from\s*['"]([^'"]+)['"]"""
)
_JS_DYNAMIC_IMPORT = re.compile(r"""import\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_JS_REQUIRE = re.compile(r"""require\s*\(\s*['"]([^'"]+)['"]\s*\)""")

_PY_IMPORT = re.compile(r"^(?:from\s+(\S+)\s+import|import\s+(\S+))", re.MULTILINE)

_JS_NAMED_EXPORT = re.compile(
    r"export\s+(?:const|let|var|function|class|interface|type|enum)\s+(\w+)"
)
_JS_DEFAULT_EXPORT = re.compile(r"export\s+default")
_JS_EXPORT_LIST = re.compile(r"export\s+\{([^}]+)\}")
_AS_SPLIT = re.compile(r"\s+as\s+")

_PY_TOP_LEVEL_DEF = re.compile(r"^(?:def|class|async\s+def)\s+(\w+)", re.MULTILINE)


def extract_imports(content: str, extension: str) -> list[str]:
    """Return import specifiers exactly as written in the source."""
    imports: list[str] = []

    if extension in JS_EXTENSIONS:
        imports.extend(m.group(1) for m in _JS_STATIC_IMPORT.finditer(content))
        imports.extend(m.group(1) for m in _JS_DYNAMIC_IMPORT.finditer(content))
        imports.extend(m.group(1) for m in _JS_REQUIRE.finditer(content))
    elif extension in PYTHON_EXTENSIONS:
        for m in _PY_IMPORT.finditer(content):
            imports.append(m.group(1) or m.group(2))

    return imports


def extract_exports(content: str, extension: str) -> list[str]:
    """Return exported names.

    JS/TS: named declarations, a literal ``default`` marker, and the public
    names of ``export { a, b as c }`` lists (``a`` and ``c``).
    Python: top-level ``def``/``class`` names without a leading underscore.
    """
    exports: list[str] = []

    if extension in JS_EXTENSIONS:
        exports.extend(m.group(1) for m in _JS_NAMED_EXPORT.finditer(content))

        if _JS_DEFAULT_EXPORT.search(content):
            exports.append("default")

        for m in _JS_EXPORT_LIST.finditer(content):
            for entry in m.group(1).split(","):
                name = _AS_SPLIT.split(entry.strip())[-1].strip()
                if name:
                    exports.append(name)
    elif extension in PYTHON_EXTENSIONS:
        for m in _PY_TOP_LEVEL_DEF.finditer(content):
            if not m.group(1).startswith("_"):
                exports.append(m.group(1))

    return exports
