"""Repository collection: walk the tree, apply ignore rules, build FileRecords."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

from lampsreview.config import ScanConfig
from lampsreview.exceptions import ScanError
from lampsreview.files import FileRecord

logger = logging.getLogger(__name__)


def collect_files(root: str | Path, config: ScanConfig | None = None) -> list[FileRecord]:
    """Collect reviewable files under ``root``, sorted by relative path.

    Args:
        root: Repository root.
        config: Exclusion patterns, size limit and extension allow-list.

    Raises:
        ScanError: If ``root`` is not a readable directory.
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise ScanError(f"Not a directory: {root}")
    if config is None:
        config = ScanConfig()

    max_size = config.max_file_size_kb * 1024
    extensions = {e.lower() for e in config.include_extensions}
    all_exclude = list(config.exclude_patterns)
    if config.use_gitignore:
        all_exclude += _read_gitignore(root)

    records: list[FileRecord] = []
    skipped = 0

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)

        # Prune excluded directories in place so os.walk skips them
        dirnames[:] = sorted(
            d
            for d in dirnames
            if not _should_exclude(os.path.join(rel_dir, d) if rel_dir != "." else d, all_exclude)
        )

        for filename in filenames:
            rel_path = os.path.join(rel_dir, filename) if rel_dir != "." else filename

            if _should_exclude(rel_path, all_exclude):
                continue

            full_path = Path(dirpath) / filename
            if extensions and full_path.suffix.lower() not in extensions:
                continue

            try:
                if full_path.stat().st_size > max_size:
                    skipped += 1
                    continue
            except OSError:
                skipped += 1
                continue

            records.append(FileRecord.from_path(root, full_path))

    records.sort(key=lambda r: r.relative_path)
    logger.info("Collected %d files from %s (%d skipped)", len(records), root, skipped)
    return records


def _should_exclude(path: str, patterns: list[str]) -> bool:
    """Check if a path matches any exclusion pattern."""
    posix = path.replace(os.sep, "/")
    path_parts = Path(path).parts
    for pattern in patterns:
        # Check against full path
        if fnmatch.fnmatch(posix, pattern):
            return True
        # Check against any path component
        for part in path_parts:
            if fnmatch.fnmatch(part, pattern):
                return True
    return False


def _read_gitignore(root: Path) -> list[str]:
    """Read .gitignore patterns from the project root."""
    gitignore = root / ".gitignore"
    if not gitignore.exists():
        return []

    patterns = []
    try:
        for line in gitignore.read_text(encoding="utf-8", errors="replace").splitlines():
            line = line.strip()
            # Negations are not supported
            if line and not line.startswith(("#", "!")):
                patterns.append(line.strip("/"))
    except OSError as e:
        logger.debug("Could not read %s: %s", gitignore, e)
    return [p for p in patterns if p]
