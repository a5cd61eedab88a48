"""Session path resolution — session id + working directory → file locations."""

from __future__ import annotations

import os
from pathlib import Path

from session_manager.models import SessionPaths

DEFAULT_BACKUP_DIR_NAME = "session-manager-backups"


def sanitize_project_dir(cwd: str | Path) -> str:
    """Turn an absolute directory into a Claude project directory name.

    e.g. '/Users/username/projects/myproject' -> '-Users-username-projects-myproject'
    """
    name = str(cwd).replace("/", "-")
    if os.sep != "/":
        name = name.replace(os.sep, "-")
    return name


def resolve_session_paths(
    session_id: str,
    projects_dir: Path,
    cwd: str | Path | None = None,
    backup_dir_name: str = DEFAULT_BACKUP_DIR_NAME,
) -> SessionPaths:
    """Locate a session file and its backup directory.

    Files live under <projects_dir>/<sanitized cwd>/. Uses the current working
    directory when cwd is not given.
    """
    if cwd is None:
        cwd = os.getcwd()
    project_dir = Path(projects_dir) / sanitize_project_dir(cwd)
    return SessionPaths(
        session_id=session_id,
        session_file=project_dir / f"{session_id}.jsonl",
        backup_dir=project_dir / backup_dir_name,
    )
