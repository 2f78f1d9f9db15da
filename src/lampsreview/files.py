"""File records and the shared content cache."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class FileRecord(BaseModel):
    """One scanned source file. Identity is the relative path."""

    path: str  # absolute
    relative_path: str  # posix, relative to the repository root
    extension: str = ""
    size: int = 0
    content: str | None = None

    @classmethod
    def from_path(cls, root: Path, file_path: Path, content: str | None = None) -> FileRecord:
        rel = file_path.relative_to(root).as_posix()
        try:
            size = file_path.stat().st_size
        except OSError:
            size = len(content.encode("utf-8")) if content is not None else 0
        return cls(
            path=str(file_path),
            relative_path=rel,
            extension=file_path.suffix.lower(),
            size=size,
            content=content,
        )


class ContentCache:
    """Loads file text on demand, once per relative path.

    Graph building and context building share one cache so every phase sees
    the same decoded text.
    """

    def __init__(self) -> None:
        self._texts: dict[str, str | None] = {}

    def load(self, record: FileRecord) -> str | None:
        """Return the record's text, or None when it cannot be read."""
        key = record.relative_path
        if key in self._texts:
            return self._texts[key]

        if record.content is not None:
            text: str | None = record.content
        else:
            try:
                text = Path(record.path).read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.debug("Could not read %s: %s", record.path, e)
                text = None

        self._texts[key] = text
        return text

    def __contains__(self, relative_path: str) -> bool:
        return relative_path in self._texts

    def __len__(self) -> int:
        return len(self._texts)
