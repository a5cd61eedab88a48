"""Shared data models — the contract between parser, session, persistence, and CLI.

Parser produces SessionLine objects. Session owns them and derives Statistics
and Diagnostics. Persistence produces Backup and SaveResult objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

MESSAGE_KINDS = frozenset({"user", "assistant", "message", "system"})


@dataclass
class SessionLine:
    """A single line of a session file, JSON or not."""

    index: int  # 0-based position in the file, never reassigned
    raw_text: str  # written back verbatim on save
    record_kind: str | None = None  # user, assistant, system, summary, unknown, ...
    preview_text: str | None = None
    is_message: bool = False
    selected: bool = True


@dataclass
class Statistics:
    """Aggregate counts over a session's lines. Always computed fresh."""

    total: int
    message_count: int
    selected_count: int
    counts_by_record_kind: dict[str, int] = field(default_factory=dict)

    @property
    def removed_count(self) -> int:
        return self.total - self.selected_count


@dataclass
class Diagnostics:
    """Line-level health of a session file."""

    total: int
    json_lines: int
    non_json_lines: int
    empty_lines: int
    counts_by_record_kind: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class SessionPaths:
    """Resolved on-disk locations for one session."""

    session_id: str
    session_file: Path
    backup_dir: Path


@dataclass(frozen=True)
class Backup:
    """An immutable snapshot of a session file taken before a save."""

    session_id: str
    timestamp: str  # ISO 8601 with colons replaced by hyphens
    path: Path

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class SaveResult:
    """Outcome of a successful save."""

    lines_written: int
    lines_removed: int
    backup: Backup
