"""Shared fixtures for ccreplay tests."""

import json
from pathlib import Path

import pytest

from ccreplay.locator import encode_project_path

PROJECT_PATH = "/tmp/test-project"
SESSION_ID = "test-session-abc"


@pytest.fixture
def projects_dir(tmp_path):
    path = tmp_path / "projects"
    path.mkdir()
    return path


@pytest.fixture
def project_dir(projects_dir):
    path = projects_dir / encode_project_path(PROJECT_PATH)
    path.mkdir()
    return path


@pytest.fixture
def write_session(project_dir):
    """Write JSONL lines (dicts or raw strings) as <session_id>.jsonl."""

    def _write(session_id, lines):
        file_path = project_dir / f"{session_id}.jsonl"
        rendered = [line if isinstance(line, str) else json.dumps(line) for line in lines]
        file_path.write_text("\n".join(rendered) + "\n", encoding="utf-8")
        return file_path

    return _write


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep user config and environment out of tests."""
    for name in ("CLAUDE_PROJECTS_DIR", "CCREPLAY_MAX_CONTINUATION_FILES", "CCREPLAY_ADAPTER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    return Path(tmp_path)
