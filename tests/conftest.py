"""Shared test fixtures for session manager tests."""

import logging
from pathlib import Path

import pytest

from session_manager.paths import resolve_session_paths

SESSION_ID = "session-001"
WORK_DIR = "/Users/testuser/projects/my-project"

SAMPLE_LINES = [
    '{"type":"user","content":"hi"}',
    "",
    "not json",
    '{"message":{"role":"assistant","content":[{"type":"text","text":"hello"}]}}',
]


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers configure_logging() bound to a test's stderr."""
    yield
    pkg_logger = logging.getLogger("session_manager")
    pkg_logger.handlers.clear()
    pkg_logger.setLevel(logging.NOTSET)


@pytest.fixture
def sample_content():
    """Four lines: a user message, a blank line, garbage, an assistant message."""
    return "\n".join(SAMPLE_LINES)


@pytest.fixture
def projects_dir(tmp_path):
    """Stand-in for ~/.claude/projects."""
    path = tmp_path / "projects"
    path.mkdir()
    return path


@pytest.fixture
def session_paths(projects_dir):
    """Resolved paths for SESSION_ID under a fixed working directory."""
    return resolve_session_paths(SESSION_ID, projects_dir, cwd=WORK_DIR)


@pytest.fixture
def session_file(session_paths, sample_content) -> Path:
    """The sample content written to disk as a live session file."""
    session_paths.session_file.parent.mkdir(parents=True, exist_ok=True)
    session_paths.session_file.write_text(sample_content)
    return session_paths.session_file
