"""CLI entrypoint — claude-session-manager SESSION_ID opens the interactive menu."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import click

from session_manager.config import ManagerConfig, load_config
from session_manager.errors import (
    AbortedError,
    NoBackupsError,
    PersistenceError,
    SessionManagerError,
)
from session_manager.log_config import configure_logging
from session_manager.paths import resolve_session_paths
from session_manager.persistence import list_backups, load_session, restore_backup, save_session
from session_manager.report import (
    render_backups,
    render_choice_label,
    render_diagnostics,
    render_header,
    render_messages,
    render_save_result,
    render_statistics,
)
from session_manager.session import Session
from session_manager.storage import FileStorage


class Action(Enum):
    VIEW = "View Messages"
    SELECT = "Select/Deselect Messages"
    SAVE = "Save Changes"
    RESTORE = "Restore Backup"
    STATS = "Statistics"
    DIAGNOSTICS = "Diagnostics"
    EXIT = "Exit"


MENU = list(Action)


class SelectMode(Enum):
    INDIVIDUAL = "Toggle Individual Messages"
    ALL = "Select All"
    NONE = "Deselect All"
    TYPE = "Select by Type"


@dataclass
class MenuState:
    session: Session
    config: ManagerConfig
    storage: FileStorage


# ── Index lists ──


def parse_index_selection(text: str) -> set[int]:
    """Parse '0, 3, 5-8' into {0, 3, 5, 6, 7, 8}. 'none' or '' means the empty set."""
    text = text.strip()
    if not text or text.lower() == "none":
        return set()

    indices: set[int] = set()
    for part in text.replace(" ", ",").split(","):
        if not part:
            continue
        try:
            if "-" in part:
                start_s, end_s = part.split("-", 1)
                start, end = int(start_s), int(end_s)
                if start > end:
                    raise click.BadParameter(f"Range '{part}' runs backwards")
                indices.update(range(start, end + 1))
            else:
                indices.add(int(part))
        except ValueError:
            raise click.BadParameter(f"'{part}' is not an index or range") from None
    return indices


def format_index_selection(indices: set[int]) -> str:
    """Inverse of parse_index_selection, collapsing runs: {0,1,2,5} -> '0-2,5'."""
    if not indices:
        return "none"
    ordered = sorted(indices)
    parts: list[str] = []
    start = prev = ordered[0]
    for i in ordered[1:]:
        if i == prev + 1:
            prev = i
            continue
        parts.append(f"{start}-{prev}" if prev > start else str(start))
        start = prev = i
    parts.append(f"{start}-{prev}" if prev > start else str(start))
    return ",".join(parts)


# ── Prompts ──


def _choose(title: str, options: list[str]) -> int:
    """Numbered menu. Returns the 0-based position of the chosen option."""
    click.echo(title)
    for i, option in enumerate(options, start=1):
        click.echo(f"  {i}) {option}")
    return click.prompt("Choice", type=click.IntRange(1, len(options))) - 1


# ── Actions ──


def _view_messages(state: MenuState) -> None:
    click.echo(render_messages(state.session.messages(), state.config.preview_width))


def _select_messages(state: MenuState) -> None:
    mode = list(SelectMode)[_choose("Selection mode:", [m.value for m in SelectMode])]
    session = state.session

    if mode is SelectMode.INDIVIDUAL:
        _select_individual(session)
    elif mode is SelectMode.ALL:
        session.toggle_all(True)
        click.secho("All lines selected", fg="green")
    elif mode is SelectMode.NONE:
        session.toggle_all(False)
        click.secho("All lines deselected", fg="red")
    elif mode is SelectMode.TYPE:
        _select_by_type(session)


def _select_individual(session: Session) -> None:
    messages = session.messages()
    if not messages:
        click.secho("No messages found in this session.", fg="red")
        return

    for line in messages:
        mark = "x" if line.selected else " "
        click.echo(f"  [{mark}] {render_choice_label(line)}")

    current = {line.index for line in messages if line.selected}
    keep = click.prompt(
        "Indices of messages to keep (e.g. 0,3,5-8 or none)",
        default=format_index_selection(current),
        value_proc=parse_index_selection,
    )
    session.set_individual_selection(keep)
    kept = sum(1 for line in messages if line.selected)
    click.echo(f"{kept} of {len(messages)} messages selected")


def _select_by_type(session: Session) -> None:
    kinds = session.record_kinds()
    if not kinds:
        click.secho("No typed lines found in this session.", fg="red")
        return

    kind = kinds[_choose("Select message type:", kinds)]
    should_select = _choose("Action:", ["Select", "Deselect"]) == 0
    count = session.set_selection_for_type(kind, should_select)
    verb = "Selected" if should_select else "Deselected"
    click.secho(f"{verb} {count} {kind} messages", fg="green" if should_select else "red")


def _save_changes(state: MenuState) -> None:
    stats = state.session.compute_statistics()
    click.secho(f"\nPreparing to save {stats.selected_count} lines...", fg="yellow")
    confirmed = click.confirm(
        f"Save {stats.selected_count} selected lines (removing {stats.removed_count} lines)?",
        default=False,
    )
    result = save_session(state.session, confirmed, state.storage)
    click.echo(render_save_result(result))


def _restore_backup(state: MenuState) -> None:
    backups = list_backups(state.session.paths, state.storage)
    if not backups:
        raise NoBackupsError(state.session.session_id)

    offered = backups[: state.config.restore_choices]
    click.echo("Select backup to restore:")
    click.echo(render_backups(offered))
    choice = click.prompt("Choice", type=click.IntRange(1, len(offered)))

    state.session = restore_backup(state.session, offered[choice - 1].name, state.storage)
    click.secho("Backup restored!", fg="green")
    click.secho("Reinitializing session...", fg="yellow")


def _show_statistics(state: MenuState) -> None:
    click.echo(render_statistics(state.session.compute_statistics()))


def _run_diagnostics(state: MenuState) -> None:
    click.echo(render_diagnostics(state.session.diagnostics()))


HANDLERS = {
    Action.VIEW: _view_messages,
    Action.SELECT: _select_messages,
    Action.SAVE: _save_changes,
    Action.RESTORE: _restore_backup,
    Action.STATS: _show_statistics,
    Action.DIAGNOSTICS: _run_diagnostics,
}


def run_menu(state: MenuState) -> None:
    """Loop over the action menu until the user picks Exit."""
    while True:
        click.clear()
        click.echo(render_header(state.session.session_id, state.session.compute_statistics()))
        click.echo()

        action = MENU[_choose("What would you like to do?", [a.value for a in MENU])]
        if action is Action.EXIT:
            return

        try:
            HANDLERS[action](state)
        except AbortedError:
            click.secho("Save cancelled", fg="yellow")
        except NoBackupsError:
            click.secho("No backups found", fg="yellow")
        except PersistenceError as e:
            click.secho(f"Operation failed: {e}", fg="red", err=True)

        click.pause()


@click.command()
@click.version_option(package_name="claude-session-manager", prog_name="claude-session-manager")
@click.argument("session_id")
def cli(session_id: str):
    """Manage Claude session context by selecting/deselecting messages."""
    config = load_config()
    configure_logging(config.log_level)

    paths = resolve_session_paths(
        session_id,
        config.projects_dir,
        backup_dir_name=config.backup_dir_name,
    )
    storage = FileStorage()

    try:
        session = load_session(paths, storage)
    except SessionManagerError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.secho("Session loaded", fg="green")
    run_menu(MenuState(session=session, config=config, storage=storage))
    click.secho("\nSession management complete!", fg="green", bold=True)
