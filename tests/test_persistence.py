"""Tests for load, save, backup listing, and restore."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from session_manager.errors import (
    AbortedError,
    NoBackupsError,
    PersistenceError,
    SessionNotFoundError,
)
from session_manager.persistence import (
    backup_filename,
    format_backup_timestamp,
    list_backups,
    load_session,
    restore_backup,
    save_session,
)
from session_manager.storage import FileStorage

from conftest import SAMPLE_LINES, SESSION_ID

NOW = datetime(2026, 10, 19, 12, 30, 5, 123456, tzinfo=timezone.utc)


class FailingStorage(FileStorage):
    """FileStorage that raises on writes to given files or into given directories."""

    def __init__(self, fail_on=(), fail_in=()):
        self.fail_on = set(fail_on)
        self.fail_in = set(fail_in)
        self.writes = []

    def write_text(self, path, text):
        if path in self.fail_on or path.parent in self.fail_in:
            raise OSError("disk full")
        self.writes.append(path)
        super().write_text(path, text)


# ---------------------------------------------------------------------------
# Backup naming
# ---------------------------------------------------------------------------


class TestBackupNaming:
    def test_timestamp_has_no_colons(self):
        assert format_backup_timestamp(NOW) == "2026-10-19T12-30-05.123Z"

    def test_naive_datetime_treated_as_utc(self):
        assert format_backup_timestamp(datetime(2026, 1, 2, 3, 4, 5)) == "2026-01-02T03-04-05.000Z"

    def test_converted_to_utc(self):
        local = datetime(2026, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert format_backup_timestamp(local) == "2026-01-02T03-04-05.000Z"

    def test_filename(self):
        assert backup_filename("abc", "2026-10-19T12-30-05.123Z") == "abc.2026-10-19T12-30-05.123Z.jsonl"


# ---------------------------------------------------------------------------
# load_session
# ---------------------------------------------------------------------------


class TestLoad:
    def test_missing_file(self, session_paths):
        with pytest.raises(SessionNotFoundError) as exc:
            load_session(session_paths)
        assert str(session_paths.session_file) in str(exc.value)

    def test_loads_lines(self, session_paths, session_file, sample_content):
        session = load_session(session_paths)
        assert len(session.lines) == 4
        assert session.original_raw_content == sample_content
        assert session.session_id == SESSION_ID

    def test_all_selected_after_load(self, session_paths, session_file):
        session = load_session(session_paths)
        assert all(line.selected for line in session.lines)

    def test_creates_backup_dir(self, session_paths, session_file):
        assert not session_paths.backup_dir.exists()
        load_session(session_paths)
        assert session_paths.backup_dir.is_dir()

    def test_crlf_preserved_in_original_content(self, session_paths):
        session_paths.session_file.parent.mkdir(parents=True)
        session_paths.session_file.write_bytes(b'{"type":"user"}\r\n{"type":"system"}')
        session = load_session(session_paths)
        assert session.original_raw_content == '{"type":"user"}\r\n{"type":"system"}'
        assert [line.raw_text for line in session.lines] == ['{"type":"user"}', '{"type":"system"}']

    def test_undecodable_bytes_become_garbage_line(self, session_paths):
        session_paths.session_file.parent.mkdir(parents=True)
        session_paths.session_file.write_bytes(b'{"type":"user","content":"hi"}\n\xff\xfe garbage')

        session = load_session(session_paths)

        assert len(session.lines) == 2
        assert session.lines[0].record_kind == "user"
        assert session.lines[1].record_kind is None
        assert session.lines[1].is_message is False

    def test_undecodable_bytes_saved_unchanged(self, session_paths):
        raw = b'{"type":"user","content":"hi"}\n\xff\xfe garbage\n{"type":"system"}'
        session_paths.session_file.parent.mkdir(parents=True)
        session_paths.session_file.write_bytes(raw)

        session = load_session(session_paths)
        session.lines[2].selected = False
        result = save_session(session, confirmed=True, now=NOW)

        assert result.backup.path.read_bytes() == raw
        assert session_paths.session_file.read_bytes() == b'{"type":"user","content":"hi"}\n\xff\xfe garbage'


# ---------------------------------------------------------------------------
# save_session
# ---------------------------------------------------------------------------


class TestSave:
    def test_requires_confirmation(self, session_paths, session_file, sample_content):
        session = load_session(session_paths)
        session.lines[0].selected = False
        with pytest.raises(AbortedError):
            save_session(session, confirmed=False)
        assert session_file.read_text() == sample_content
        assert list_backups(session_paths) == []
        assert session.original_raw_content == sample_content

    def test_deselected_line_removed(self, session_paths, session_file):
        session = load_session(session_paths)
        session.lines[0].selected = False
        result = save_session(session, confirmed=True, now=NOW)

        assert session_file.read_text() == "\n".join(SAMPLE_LINES[1:])
        assert result.lines_written == 3
        assert result.lines_removed == 1

    def test_backup_holds_original(self, session_paths, session_file, sample_content):
        session = load_session(session_paths)
        session.lines[0].selected = False
        result = save_session(session, confirmed=True, now=NOW)

        assert result.backup.path.read_text() == sample_content
        assert result.backup.name == f"{SESSION_ID}.2026-10-19T12-30-05.123Z.jsonl"
        assert result.backup.path.parent == session_paths.backup_dir

    def test_round_trip_identity(self, session_paths, session_file, sample_content):
        session = load_session(session_paths)
        save_session(session, confirmed=True, now=NOW)
        assert session_file.read_text() == sample_content

    def test_round_trip_trailing_newline(self, session_paths):
        content = json.dumps({"type": "user", "content": "a"}) + "\n"
        session_paths.session_file.parent.mkdir(parents=True)
        session_paths.session_file.write_text(content)
        session = load_session(session_paths)
        save_session(session, confirmed=True, now=NOW)
        assert session_paths.session_file.read_text() == content

    def test_original_content_updated(self, session_paths, session_file):
        session = load_session(session_paths)
        session.lines[0].selected = False
        save_session(session, confirmed=True, now=NOW)
        assert session.original_raw_content == "\n".join(SAMPLE_LINES[1:])

    def test_second_backup_reflects_first_save(self, session_paths, session_file):
        session = load_session(session_paths)
        session.lines[0].selected = False
        save_session(session, confirmed=True, now=NOW)
        session.lines[2].selected = False
        second = save_session(session, confirmed=True, now=NOW.replace(second=6))

        assert second.backup.path.read_text() == "\n".join(SAMPLE_LINES[1:])
        assert session_file.read_text() == "\n".join([SAMPLE_LINES[1], SAMPLE_LINES[3]])

    def test_same_millisecond_backups_do_not_collide(self, session_paths, session_file):
        session = load_session(session_paths)
        first = save_session(session, confirmed=True, now=NOW)
        second = save_session(session, confirmed=True, now=NOW)
        assert first.backup.path != second.backup.path
        assert second.backup.timestamp == "2026-10-19T12-30-05.124Z"
        assert len(list_backups(session_paths)) == 2

    def test_save_with_nothing_selected(self, session_paths, session_file):
        session = load_session(session_paths)
        session.toggle_all(False)
        result = save_session(session, confirmed=True, now=NOW)
        assert session_file.read_text() == ""
        assert result.lines_written == 0
        assert result.lines_removed == 4


class TestSaveFailures:
    def test_live_write_failure_keeps_backup(self, session_paths, session_file, sample_content):
        session = load_session(session_paths)
        session.lines[0].selected = False
        storage = FailingStorage(fail_on={session_paths.session_file})

        with pytest.raises(PersistenceError) as exc:
            save_session(session, confirmed=True, storage=storage, now=NOW)

        assert exc.value.backup is not None
        assert exc.value.backup.path.read_text() == sample_content
        assert isinstance(exc.value.__cause__, OSError)
        assert session_file.read_text() == sample_content
        assert session.original_raw_content == sample_content

    def test_backup_failure_skips_live_write(self, session_paths, session_file, sample_content):
        session = load_session(session_paths)
        session.lines[0].selected = False
        storage = FailingStorage(fail_in={session_paths.backup_dir})

        with pytest.raises(PersistenceError) as exc:
            save_session(session, confirmed=True, storage=storage, now=NOW)

        assert exc.value.backup is None
        assert storage.writes == []
        assert session_file.read_text() == sample_content
        assert session.original_raw_content == sample_content
        assert list_backups(session_paths) == []

    def test_selection_survives_failed_save(self, session_paths, session_file):
        session = load_session(session_paths)
        session.lines[0].selected = False
        storage = FailingStorage(fail_on={session_paths.session_file})
        with pytest.raises(PersistenceError):
            save_session(session, confirmed=True, storage=storage, now=NOW)
        assert session.lines[0].selected is False


# ---------------------------------------------------------------------------
# list_backups
# ---------------------------------------------------------------------------


class TestListBackups:
    def test_empty_when_no_dir(self, session_paths):
        assert list_backups(session_paths) == []

    def test_newest_first_and_prefix_filtered(self, session_paths):
        backup_dir = session_paths.backup_dir
        backup_dir.mkdir(parents=True)
        names = [
            f"{SESSION_ID}.2026-10-01T09-00-00.000Z.jsonl",
            f"{SESSION_ID}.2026-10-19T12-30-05.123Z.jsonl",
            f"{SESSION_ID}.2026-10-05T23-59-59.999Z.jsonl",
            "other-session.2026-12-01T00-00-00.000Z.jsonl",
            f"{SESSION_ID}-extra.2026-12-01T00-00-00.000Z.jsonl",
        ]
        for name in names:
            (backup_dir / name).write_text("x")

        backups = list_backups(session_paths)
        assert [b.timestamp for b in backups] == [
            "2026-10-19T12-30-05.123Z",
            "2026-10-05T23-59-59.999Z",
            "2026-10-01T09-00-00.000Z",
        ]
        assert all(b.session_id == SESSION_ID for b in backups)


# ---------------------------------------------------------------------------
# restore_backup
# ---------------------------------------------------------------------------


class TestRestore:
    def test_no_backups(self, session_paths, session_file, sample_content):
        session = load_session(session_paths)
        with pytest.raises(NoBackupsError):
            restore_backup(session, "anything.jsonl")
        assert session_file.read_text() == sample_content

    def test_unknown_backup_name(self, session_paths, session_file):
        session = load_session(session_paths)
        save_session(session, confirmed=True, now=NOW)
        with pytest.raises(PersistenceError):
            restore_backup(session, "missing.jsonl")

    def test_restore_single_line_backup(self, session_paths, session_file):
        session = load_session(session_paths)
        name = backup_filename(SESSION_ID, "2026-10-18T08-00-00.000Z")
        (session_paths.backup_dir / name).write_text(SAMPLE_LINES[0])

        restored = restore_backup(session, name)

        assert session_file.read_text() == SAMPLE_LINES[0]
        stats = restored.compute_statistics()
        assert (stats.total, stats.message_count, stats.selected_count) == (1, 1, 1)

    def test_restore_backup_with_undecodable_bytes(self, session_paths, session_file):
        session = load_session(session_paths)
        name = backup_filename(SESSION_ID, "2026-10-18T08-00-00.000Z")
        raw = b'{"type":"user","content":"hi"}\n\x80 broken'
        (session_paths.backup_dir / name).write_bytes(raw)

        restored = restore_backup(session, name)

        assert session_file.read_bytes() == raw
        assert [line.is_message for line in restored.lines] == [True, False]

    def test_restore_returns_fresh_session(self, session_paths, session_file, sample_content):
        session = load_session(session_paths)
        session.lines[0].selected = False
        save_session(session, confirmed=True, now=NOW)
        session.toggle_all(False)
        backup = list_backups(session_paths)[0]

        restored = restore_backup(session, backup.name)

        assert restored is not session
        assert restored.original_raw_content == sample_content
        assert len(restored.lines) == 4
        assert all(line.selected for line in restored.lines)
        # the old session is left as it was
        assert len(session.lines) == 4
        assert not any(line.selected for line in session.lines)

    def test_restore_write_failure(self, session_paths, session_file):
        session = load_session(session_paths)
        session.lines[0].selected = False
        save_session(session, confirmed=True, now=NOW)
        saved = session_file.read_text()
        backup = list_backups(session_paths)[0]

        storage = FailingStorage(fail_on={session_paths.session_file})
        with pytest.raises(PersistenceError):
            restore_backup(session, backup.name, storage=storage)
        assert session_file.read_text() == saved
