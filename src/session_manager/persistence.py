"""Persistence — load, save (backup then overwrite), list backups, restore.

A save never touches the live session file until a backup of the content last
known to be on disk has been written. A restore writes the backup over the
live file and then reloads it into a fresh Session.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from session_manager.errors import (
    AbortedError,
    NoBackupsError,
    PersistenceError,
    SessionNotFoundError,
)
from session_manager.models import Backup, SaveResult, SessionPaths
from session_manager.session import Session
from session_manager.storage import FileStorage

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".jsonl"


def load_session(paths: SessionPaths, storage: FileStorage | None = None) -> Session:
    """Read and parse a session file. Creates the backup directory if needed."""
    storage = storage or FileStorage()

    if not storage.exists(paths.session_file):
        raise SessionNotFoundError(paths.session_file)

    try:
        storage.ensure_dir(paths.backup_dir)
        raw = storage.read_text(paths.session_file)
    except OSError as e:
        raise PersistenceError(f"Failed to load {paths.session_file}: {e}") from e

    session = Session.from_content(paths, raw)
    logger.info("Loaded session %s (%d lines)", paths.session_id, len(session.lines))
    return session


def save_session(
    session: Session,
    confirmed: bool,
    storage: FileStorage | None = None,
    now: datetime | None = None,
) -> SaveResult:
    """Write the selected lines back to the session file.

    Order: compute output, write backup of the previous on-disk content,
    overwrite the live file, then update session.original_raw_content.
    Any failure stops the sequence and leaves the session unchanged.
    """
    if not confirmed:
        raise AbortedError("Save cancelled")

    storage = storage or FileStorage()
    paths = session.paths

    selected = session.selected_lines()
    output = "\n".join(line.raw_text for line in selected)

    backup = write_backup(paths, session.original_raw_content, storage, now=now)

    try:
        storage.write_text(paths.session_file, output)
    except OSError as e:
        logger.warning("Save of %s failed after backup %s: %s", paths.session_id, backup.name, e)
        raise PersistenceError(
            f"Failed to write {paths.session_file}: {e}. Backup kept at {backup.path}",
            backup=backup,
        ) from e

    session.original_raw_content = output
    result = SaveResult(
        lines_written=len(selected),
        lines_removed=len(session.lines) - len(selected),
        backup=backup,
    )
    logger.info(
        "Saved session %s: %d lines written, %d removed",
        paths.session_id,
        result.lines_written,
        result.lines_removed,
    )
    return result


def write_backup(
    paths: SessionPaths,
    content: str,
    storage: FileStorage,
    now: datetime | None = None,
) -> Backup:
    """Write content to a new, uniquely named backup file."""
    moment = now or datetime.now(tz=timezone.utc)
    try:
        storage.ensure_dir(paths.backup_dir)
        existing = set(storage.list_names(paths.backup_dir))

        stamp = format_backup_timestamp(moment)
        while backup_filename(paths.session_id, stamp) in existing:
            moment += timedelta(milliseconds=1)
            stamp = format_backup_timestamp(moment)

        backup = Backup(
            session_id=paths.session_id,
            timestamp=stamp,
            path=paths.backup_dir / backup_filename(paths.session_id, stamp),
        )
        storage.write_text(backup.path, content)
    except OSError as e:
        logger.warning("Backup of %s failed: %s", paths.session_id, e)
        raise PersistenceError(f"Failed to write backup in {paths.backup_dir}: {e}") from e

    logger.info("Backup written: %s", backup.path)
    return backup


def list_backups(paths: SessionPaths, storage: FileStorage | None = None) -> list[Backup]:
    """Backups for this session, newest first."""
    storage = storage or FileStorage()
    prefix = f"{paths.session_id}."

    try:
        names = storage.list_names(paths.backup_dir)
    except OSError as e:
        raise PersistenceError(f"Failed to list backups in {paths.backup_dir}: {e}") from e

    backups = [
        Backup(
            session_id=paths.session_id,
            timestamp=_timestamp_from_name(name, prefix),
            path=paths.backup_dir / name,
        )
        for name in names
        if name.startswith(prefix)
    ]
    backups.sort(key=lambda b: b.name, reverse=True)
    return backups


def restore_backup(
    session: Session,
    backup_name: str,
    storage: FileStorage | None = None,
) -> Session:
    """Overwrite the live file with a backup and return a freshly loaded Session.

    The passed-in session is not modified.
    """
    storage = storage or FileStorage()
    paths = session.paths

    backups = list_backups(paths, storage)
    if not backups:
        raise NoBackupsError(paths.session_id)

    match = [b for b in backups if b.name == backup_name]
    if not match:
        raise PersistenceError(f"Backup '{backup_name}' not found for session '{paths.session_id}'")
    backup = match[0]

    try:
        content = storage.read_text(backup.path)
        storage.write_text(paths.session_file, content)
    except OSError as e:
        logger.warning("Restore of %s from %s failed: %s", paths.session_id, backup.name, e)
        raise PersistenceError(f"Failed to restore {backup.path}: {e}") from e

    logger.info("Restored session %s from %s", paths.session_id, backup.name)
    return load_session(paths, storage)


def format_backup_timestamp(moment: datetime) -> str:
    """ISO 8601 UTC with millisecond precision and colons replaced by hyphens.

    e.g. 2026-10-19T12:30:05.123Z -> 2026-10-19T12-30-05.123Z
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
    return iso.replace(":", "-")


def backup_filename(session_id: str, timestamp: str) -> str:
    return f"{session_id}.{timestamp}{BACKUP_SUFFIX}"


def _timestamp_from_name(name: str, prefix: str) -> str:
    stamp = name[len(prefix) :]
    if stamp.endswith(BACKUP_SUFFIX):
        stamp = stamp[: -len(BACKUP_SUFFIX)]
    return stamp
