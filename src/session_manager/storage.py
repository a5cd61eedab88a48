"""Durable storage used by the persistence layer.

Reads and writes whole files as UTF-8 text without newline translation, so
CRLF content survives a load/restore untouched. Undecodable bytes round-trip
as surrogate escapes. Writes are atomic: a temp file in the target directory
is fsynced and then replaced over the target.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


class FileStorage:
    """Whole-file text storage on the local filesystem.

    Methods raise OSError on failure; callers translate it.
    """

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def ensure_dir(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def list_names(self, directory: Path) -> list[str]:
        directory = Path(directory)
        if not directory.is_dir():
            return []
        return [p.name for p in directory.iterdir() if p.is_file()]

    def read_text(self, path: Path) -> str:
        with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
            return f.read()

    def write_text(self, path: Path, text: str) -> None:
        path = Path(path)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            Path(tmp).replace(path)
        except BaseException:
            try:
                Path(tmp).unlink()
            except OSError:
                pass
            raise
