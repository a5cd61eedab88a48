"""Plain-text rendering for the interactive menu.

Every function returns a string; the CLI decides where it goes.
"""

from __future__ import annotations

import click

from session_manager.models import Backup, Diagnostics, SaveResult, SessionLine, Statistics

RULE = "=" * 60
NO_CONTENT = "[No content]"

KIND_COLORS = {
    "user": "green",
    "assistant": "blue",
    "message": "blue",
    "system": "yellow",
}


def truncate(text: str | None, max_length: int) -> str:
    """Flatten newlines and cut to max_length, ending in '...' when cut."""
    if not text:
        return NO_CONTENT
    clean = text.replace("\n", " ").strip()
    # surrogate-escaped bytes from undecodable input can't be echoed
    clean = clean.encode("utf-8", "replace").decode("utf-8")
    if len(clean) > max_length:
        return clean[: max_length - 3] + "..."
    return clean


def _styled_cell(text: str, width: int, **style) -> str:
    """Pad before styling so ANSI codes don't break alignment."""
    return click.style(text, **style) + " " * max(0, width - len(text))


def render_header(session_id: str, stats: Statistics) -> str:
    return "\n".join([
        click.style(RULE, fg="cyan", bold=True),
        f"Session: {click.style(session_id, fg='yellow')}",
        f"Total Lines: {stats.total} | Messages: {stats.message_count} | Selected: {stats.selected_count}",
        click.style(RULE, fg="cyan", bold=True),
    ])


def render_messages(messages: list[SessionLine], preview_width: int) -> str:
    """Table of message lines: index, kind, selected, preview."""
    if not messages:
        return click.style("No messages found in this session.", fg="red")

    out = [f"{'ID':<6} {'Type':<12} {'Selected':<9} Preview", "-" * (29 + preview_width)]
    for line in messages:
        kind = line.record_kind or "unknown"
        mark = "yes" if line.selected else "no"
        out.append(
            f"{line.index:<6} "
            f"{_styled_cell(kind, 12, fg=KIND_COLORS.get(kind, 'bright_black'))} "
            f"{_styled_cell(mark, 9, fg='green' if line.selected else 'red')} "
            f"{truncate(line.preview_text, preview_width)}"
        )
    out.append("")
    out.append(click.style(f"Showing {len(messages)} messages", dim=True))
    return "\n".join(out)


def render_choice_label(line: SessionLine, width: int = 60) -> str:
    return f"[{line.index}] {line.record_kind}: {truncate(line.preview_text, width)}"


def render_statistics(stats: Statistics) -> str:
    out = [
        f"{'Total Lines':<20} {stats.total}",
        f"{'Messages':<20} {stats.message_count}",
        f"{'Selected':<20} {stats.selected_count}",
        "",
        "Message Types",
    ]
    for kind, count in stats.counts_by_record_kind.items():
        out.append(f"  {kind:<18} {count}")
    return "\n".join(out)


def render_diagnostics(diag: Diagnostics) -> str:
    out = [
        click.style("=== Session Diagnostics ===", fg="cyan", bold=True),
        "",
        click.style("File Statistics:", bold=True),
        f"  Total lines: {diag.total}",
        f"  JSON lines: {click.style(str(diag.json_lines), fg='green')}",
        f"  Non-JSON lines: {click.style(str(diag.non_json_lines), fg='yellow')}",
        f"  Empty lines: {click.style(str(diag.empty_lines), dim=True)}",
        "",
        click.style("Message Types:", bold=True),
    ]
    for kind, count in diag.counts_by_record_kind.items():
        out.append(f"  {kind}: {count}")
    return "\n".join(out)


def render_save_result(result: SaveResult) -> str:
    return "\n".join([
        click.style("Changes saved successfully!", fg="green"),
        f"Wrote {result.lines_written} lines, removed {result.lines_removed}.",
        click.style(f"Backup created: {result.backup.path}", dim=True),
    ])


def render_backups(backups: list[Backup]) -> str:
    return "\n".join(f"  {i}) {b.name}" for i, b in enumerate(backups, start=1))
