"""Tests for session log location and continuation chains."""

import pytest

from conftest import PROJECT_PATH, SESSION_ID

from ccreplay.config import Config
from ccreplay.extractor import MessageExtractor
from ccreplay.locator import SessionLocator, encode_project_path
from ccreplay.parser import SessionParser


def _first(session_id):
    return {"type": "user", "sessionId": session_id, "message": {"role": "user", "content": "hi"}}


class TestEncodeProjectPath:
    def test_replaces_unsafe_characters(self):
        assert encode_project_path("/tmp/test-project") == "-tmp-test-project"

    def test_dots_and_underscores(self):
        assert encode_project_path("/home/user/my.project_x") == "-home-user-my-project-x"

    def test_non_ascii(self):
        assert encode_project_path("/home/ユーザー") == "-home-----"


class TestSessionLocator:
    def test_missing_session_returns_empty(self, projects_dir, project_dir):
        locator = SessionLocator(str(projects_dir))
        assert locator.locate("nonexistent-session", PROJECT_PATH) == []

    def test_missing_project_dir_returns_empty(self, projects_dir):
        locator = SessionLocator(str(projects_dir))
        assert locator.locate(SESSION_ID, "/no/such/project") == []

    def test_primary_only(self, projects_dir, write_session):
        primary = write_session(SESSION_ID, [_first(SESSION_ID)])
        write_session("unrelated", [_first("someone-else")])
        locator = SessionLocator(str(projects_dir))
        assert locator.locate(SESSION_ID, PROJECT_PATH) == [primary]

    def test_follows_continuation(self, projects_dir, write_session):
        primary = write_session(SESSION_ID, [_first(SESSION_ID)])
        continuation = write_session("cont-1", [_first(SESSION_ID), _first("cont-1")])
        locator = SessionLocator(str(projects_dir))
        assert locator.locate(SESSION_ID, PROJECT_PATH) == [primary, continuation]

    def test_follows_chain_of_continuations(self, projects_dir, write_session):
        primary = write_session(SESSION_ID, [_first(SESSION_ID)])
        second = write_session("zz-second", [_first(SESSION_ID)])
        third = write_session("aa-third", [_first("zz-second")])
        locator = SessionLocator(str(projects_dir))
        assert locator.locate(SESSION_ID, PROJECT_PATH) == [primary, second, third]

    def test_only_first_entry_links_files(self, projects_dir, write_session):
        primary = write_session(SESSION_ID, [_first(SESSION_ID)])
        write_session("other", [_first("other"), _first(SESSION_ID)])
        locator = SessionLocator(str(projects_dir))
        assert locator.locate(SESSION_ID, PROJECT_PATH) == [primary]

    def test_cycle_does_not_revisit(self, projects_dir, write_session):
        primary = write_session(SESSION_ID, [_first("cont-1")])
        continuation = write_session("cont-1", [_first(SESSION_ID)])
        locator = SessionLocator(str(projects_dir))
        assert locator.locate(SESSION_ID, PROJECT_PATH) == [primary, continuation]

    def test_chain_is_bounded(self, projects_dir, write_session):
        write_session(SESSION_ID, [_first(SESSION_ID)])
        previous = SESSION_ID
        for i in range(5):
            session_id = f"cont-{i}"
            write_session(session_id, [_first(previous)])
            previous = session_id
        locator = SessionLocator(str(projects_dir), max_continuation_files=3)
        chain = locator.locate(SESSION_ID, PROJECT_PATH)
        assert [p.stem for p in chain] == [SESSION_ID, "cont-0", "cont-1"]

    def test_skips_empty_candidate(self, projects_dir, write_session, project_dir):
        primary = write_session(SESSION_ID, [_first(SESSION_ID)])
        (project_dir / "empty.jsonl").write_text("", encoding="utf-8")
        locator = SessionLocator(str(projects_dir))
        assert locator.locate(SESSION_ID, PROJECT_PATH) == [primary]

    def test_skips_unreadable_candidate(self, projects_dir, write_session, monkeypatch):
        primary = write_session(SESSION_ID, [_first(SESSION_ID)])
        write_session("aa-locked", [_first("someone-else")])
        continuation = write_session("zz-cont", [_first(SESSION_ID)])
        locator = SessionLocator(str(projects_dir), verbose=True)
        read_first_entry = locator._parser.read_first_entry

        def fake_read_first_entry(path):
            if path.name == "aa-locked.jsonl":
                raise PermissionError(13, "Permission denied", str(path))
            return read_first_entry(path)

        monkeypatch.setattr(locator._parser, "read_first_entry", fake_read_first_entry)

        assert locator.locate(SESSION_ID, PROJECT_PATH) == [primary, continuation]

    def test_unreadable_chain_file_still_fails(self, projects_dir, write_session, monkeypatch):
        write_session(SESSION_ID, [_first(SESSION_ID)])
        write_session("zz-cont", [_first(SESSION_ID)])
        extractor = MessageExtractor(str(projects_dir), Config(projects_dir=str(projects_dir)))
        parse_file = SessionParser.parse_file

        def fake_parse_file(self, path):
            if path.name == "zz-cont.jsonl":
                raise PermissionError(13, "Permission denied", str(path))
            return parse_file(self, path)

        monkeypatch.setattr(SessionParser, "parse_file", fake_parse_file)

        with pytest.raises(PermissionError):
            extractor.load_history(SESSION_ID, PROJECT_PATH)
