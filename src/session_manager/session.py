"""In-memory session — owns the parsed lines and their selection state.

All selection changes go through Session methods. Statistics and diagnostics
are recomputed from the lines on every call.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from session_manager.models import Diagnostics, SessionLine, SessionPaths, Statistics
from session_manager.parser import parse_session_content


@dataclass
class Session:
    paths: SessionPaths
    lines: list[SessionLine] = field(default_factory=list)
    original_raw_content: str = ""  # last content known to be on disk

    @classmethod
    def from_content(cls, paths: SessionPaths, raw: str) -> Session:
        return cls(paths=paths, lines=parse_session_content(raw), original_raw_content=raw)

    @property
    def session_id(self) -> str:
        return self.paths.session_id

    # ── Selection ──

    def toggle_all(self, value: bool) -> None:
        """Set selection on every line, including blank and non-JSON lines."""
        for line in self.lines:
            line.selected = value

    def set_selection_for_type(self, record_kind: str, value: bool) -> int:
        """Set selection on lines whose record_kind matches exactly. Returns how many."""
        count = 0
        for line in self.lines:
            if line.record_kind is not None and line.record_kind == record_kind:
                line.selected = value
                count += 1
        return count

    def set_individual_selection(self, indices: Iterable[int]) -> None:
        """Select exactly the given message lines. Non-message lines are left alone."""
        keep = set(indices)
        for line in self.lines:
            if line.is_message:
                line.selected = line.index in keep

    # ── Queries ──

    def messages(self) -> list[SessionLine]:
        return [line for line in self.lines if line.is_message]

    def selected_lines(self) -> list[SessionLine]:
        return [line for line in self.lines if line.selected]

    def render_output(self) -> str:
        """The exact text a save would write right now."""
        return "\n".join(line.raw_text for line in self.selected_lines())

    def record_kinds(self) -> list[str]:
        """Distinct record kinds in first-seen order."""
        return list(self._kind_counts())

    def compute_statistics(self) -> Statistics:
        return Statistics(
            total=len(self.lines),
            message_count=sum(1 for line in self.lines if line.is_message),
            selected_count=sum(1 for line in self.lines if line.selected),
            counts_by_record_kind=self._kind_counts(),
        )

    def diagnostics(self) -> Diagnostics:
        """Count JSON, non-JSON, and empty lines.

        The parser sets record_kind on every line that decoded as JSON, so no
        second decode is needed here.
        """
        empty = sum(1 for line in self.lines if not line.raw_text.strip())
        json_lines = sum(1 for line in self.lines if line.record_kind is not None)
        return Diagnostics(
            total=len(self.lines),
            json_lines=json_lines,
            non_json_lines=len(self.lines) - empty - json_lines,
            empty_lines=empty,
            counts_by_record_kind=self._kind_counts(),
        )

    def _kind_counts(self) -> dict[str, int]:
        return dict(Counter(line.record_kind for line in self.lines if line.record_kind is not None))
