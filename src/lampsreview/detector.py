"""Framework and language detection from manifests and file layout."""

from __future__ import annotations

import json
import logging

from lampsreview.files import ContentCache, FileRecord
from lampsreview.models import DetectionResult, FrameworkInfo

logger = logging.getLogger(__name__)

LANGUAGES = {
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".py": "Python",
    ".json": "JSON",
    ".md": "Markdown",
    ".css": "CSS",
    ".scss": "SCSS",
    ".html": "HTML",
    ".yaml": "YAML",
    ".yml": "YAML",
}

# (package name, framework, confidence)
NPM_FRAMEWORKS = [
    ("next", "nextjs", 0.95),
    ("react", "react", 0.9),
    ("express", "express", 0.9),
    ("typescript", "typescript", 0.95),
    ("vue", "vue", 0.9),
    ("svelte", "svelte", 0.9),
]

PYTHON_FRAMEWORKS = [
    ("fastapi", "fastapi", 0.9),
    ("django", "django", 0.9),
    ("flask", "flask", 0.9),
]

_NEXT_CONFIGS = {"next.config.js", "next.config.mjs", "next.config.ts"}


def detect_frameworks(records: list[FileRecord], cache: ContentCache | None = None) -> DetectionResult:
    """Detect frameworks and languages for prompt context."""
    if cache is None:
        cache = ContentCache()
    by_path = {r.relative_path: r for r in records}
    found: dict[str, float] = {}

    def add(name: str, confidence: float) -> None:
        if confidence > found.get(name, 0.0):
            found[name] = confidence

    languages: list[str] = []
    for record in records:
        language = LANGUAGES.get(record.extension)
        if language and language not in languages:
            languages.append(language)

    package_json = by_path.get("package.json")
    if package_json is not None:
        deps = _npm_dependencies(cache.load(package_json) or "")
        for package, name, confidence in NPM_FRAMEWORKS:
            if package in deps:
                # React inside Next.js is an implementation detail
                add(name, 0.7 if name == "react" and "next" in deps else confidence)

    for manifest in ("requirements.txt", "pyproject.toml"):
        record = by_path.get(manifest)
        if record is None:
            continue
        text = (cache.load(record) or "").lower()
        for package, name, confidence in PYTHON_FRAMEWORKS:
            if package in text:
                add(name, confidence)
        add("python", 0.95)

    paths = list(by_path)
    if any(p.startswith(("pages/", "app/")) for p in paths) and _NEXT_CONFIGS & set(paths):
        add("nextjs", 0.85)
    if "tsconfig.json" in by_path:
        add("typescript", 0.9)
    if any(r.extension in (".js", ".jsx", ".mjs", ".cjs") for r in records):
        add("javascript", 0.8)
    if any(r.extension == ".py" for r in records):
        add("python", 0.85)

    frameworks = sorted(
        (FrameworkInfo(name=n, confidence=c) for n, c in found.items()),
        key=lambda f: f.confidence,
        reverse=True,
    )
    return DetectionResult(
        frameworks=frameworks,
        primary=frameworks[0].name if frameworks else None,
        languages=languages,
    )


def _npm_dependencies(text: str) -> set[str]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("package.json is not valid JSON")
        return set()
    if not isinstance(data, dict):
        return set()
    deps: set[str] = set()
    for key in ("dependencies", "devDependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            deps.update(section)
    return deps
