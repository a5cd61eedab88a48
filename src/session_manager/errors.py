"""Typed failures raised by the session core and handled by the CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from session_manager.models import Backup


class SessionManagerError(Exception):
    """Base class for all session manager failures."""


class SessionNotFoundError(SessionManagerError):
    """The resolved session file does not exist."""

    def __init__(self, path) -> None:
        super().__init__(f"Session file not found: {path}")
        self.path = path


class ParseError(SessionManagerError):
    """A single line could not be decoded as JSON.

    Only raised inside the parser; callers never see it.
    """


class AbortedError(SessionManagerError):
    """A save was requested without confirmation."""


class NoBackupsError(SessionManagerError):
    """Restore was requested but the session has no backups."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"No backups found for session '{session_id}'")
        self.session_id = session_id


class PersistenceError(SessionManagerError):
    """Reading or writing a session or backup file failed.

    When the failure happened after a backup was written, ``backup`` points at
    it so the caller can report the recovery point.
    """

    def __init__(self, message: str, backup: Backup | None = None) -> None:
        super().__init__(message)
        self.backup = backup
