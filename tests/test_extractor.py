"""Tests for session history loading."""

import uuid

import pytest

from conftest import PROJECT_PATH, SESSION_ID

from ccreplay.config import Config
from ccreplay.extractor import MessageExtractor, load_history


def jsonl_entry(**override):
    entry = {
        "sessionId": SESSION_ID,
        "version": "2.1.37",
        "timestamp": "2026-01-02T03:04:05.000Z",
        "uuid": str(uuid.uuid4()),
    }
    entry.update(override)
    return entry


def user_text(text, **extra):
    return jsonl_entry(type="user", message={"role": "user", "content": [{"type": "text", "text": text}]}, **extra)


def assistant_text(text, **extra):
    return jsonl_entry(type="assistant", message={"role": "assistant", "content": [{"type": "text", "text": text}]},
                       **extra)


def assistant_tool_use(tool_name, tool_input, tool_use_id):
    return jsonl_entry(type="assistant", message={
        "role": "assistant",
        "content": [
            {"type": "text", "text": f"Using {tool_name}..."},
            {"type": "tool_use", "id": tool_use_id, "name": tool_name, "input": tool_input},
        ],
    })


def tool_result(tool_use_id, content, is_error=False):
    return jsonl_entry(type="user", message={
        "role": "user",
        "content": [{"type": "tool_result", "tool_use_id": tool_use_id, "content": content, "is_error": is_error}],
    })


def meta_skill(skill_path):
    return jsonl_entry(type="user", isMeta=True, message={
        "role": "user",
        "content": [{
            "type": "text",
            "text": f"Base directory for this skill: {skill_path}\n\n# Skill Content\nThis is the skill content.",
        }],
    })


def progress():
    return jsonl_entry(type="progress", data={"type": "hook_progress", "hookEvent": "SessionStart"})


def queue_operation():
    return jsonl_entry(type="queue-operation", operation="dequeue")


def result(subtype=None, is_error=None):
    entry = jsonl_entry(type="result", cost_usd=0.05, duration_ms=12345)
    if subtype:
        entry["subtype"] = subtype
    if is_error is not None:
        entry["is_error"] = is_error
    return entry


@pytest.fixture
def extractor(projects_dir):
    return MessageExtractor(str(projects_dir), Config(projects_dir=str(projects_dir)))


class TestLoadHistory:
    def test_simple_conversation(self, extractor, write_session):
        write_session(SESSION_ID, [user_text("Hello, world!"), assistant_text("Hi there! How can I help?")])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert len(messages) == 2
        assert messages[0].type == "user"
        assert messages[0].to_dict()["content"] == [{"type": "text", "text": "Hello, world!"}]
        assert messages[1].type == "assistant"
        assert messages[1].to_dict()["content"] == [{"type": "text", "text": "Hi there! How can I help?"}]

    def test_skips_non_message_entries(self, extractor, write_session):
        write_session(SESSION_ID, [
            queue_operation(),
            progress(),
            progress(),
            user_text("Actual message"),
            assistant_text("Response"),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == ["user", "assistant"]

    def test_tool_use_and_result(self, extractor, write_session):
        write_session(SESSION_ID, [
            user_text("Write a file to /tmp/test.txt"),
            assistant_tool_use("Write", {"file_path": "/tmp/test.txt", "content": "hello"}, "toolu_abc123"),
            tool_result("toolu_abc123", "File written successfully"),
            assistant_text("Done! I wrote the file."),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == ["user", "assistant", "tool_result", "assistant"]
        assistant = messages[1].to_dict()
        assert assistant["content"][0] == {"type": "text", "text": "Using Write..."}
        assert assistant["content"][1]["id"] == "toolu_abc123"
        assert assistant["content"][1]["name"] == "Write"
        result_block = messages[2].to_dict()["content"][0]
        assert result_block["type"] == "tool_result"
        assert result_block["toolUseId"] == "toolu_abc123"
        assert result_block["content"] == "File written successfully"
        assert result_block["isError"] is False

    def test_error_result(self, extractor, write_session):
        write_session(SESSION_ID, [
            user_text("Do something"),
            assistant_text("Working on it..."),
            result("error_during_execution", True),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert len(messages) == 3
        assert messages[2].type == "error"
        assert messages[2].to_dict()["content"] == [{"type": "error", "message": "Session ended unexpectedly"}]

    @pytest.mark.parametrize("entry", [
        result("error_during_execution", False),
        result("error_during_execution"),
        result(),
    ])
    def test_other_results_skipped(self, extractor, write_session, entry):
        write_session(SESSION_ID, [user_text("Do something"), assistant_text("Working on it..."), entry])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == ["user", "assistant"]

    def test_realistic_multi_turn_session(self, extractor, write_session):
        write_session(SESSION_ID, [
            queue_operation(),
            progress(),
            progress(),
            user_text("generate a random plan to modify some file in /tmp"),
            assistant_text("I understand. Let me create a plan to modify a temp file."),
            assistant_tool_use("Write", {"file_path": "/tmp/plan.md", "content": "# Plan"}, "toolu_write_1"),
            tool_result("toolu_write_1", "File written successfully"),
            assistant_tool_use("Read", {"file_path": "/tmp/plan.md"}, "toolu_read_1"),
            tool_result("toolu_read_1", "# Plan\n1. Create file\n2. Modify file"),
            assistant_tool_use("ExitPlanMode", {}, "toolu_exit_plan"),
            tool_result("toolu_exit_plan", "Plan mode exited"),
            assistant_text("The plan has been created and saved."),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == [
            "user",
            "assistant",
            "assistant",
            "tool_result",
            "assistant",
            "tool_result",
            "assistant",
            "tool_result",
            "assistant",
        ]
        assert all(m.chat_id == SESSION_ID for m in messages)
        assert all(m.metadata["source"] == "history" for m in messages)

    def test_filters_command_markers(self, extractor, write_session):
        write_session(SESSION_ID, [
            user_text("<command-name>commit</command-name>\n/commit"),
            user_text("You are a commit message generator. Analyze the staged changes..."),
            assistant_text("Here is your commit message..."),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == ["user", "assistant"]

    def test_skips_meta_entries(self, extractor, write_session):
        write_session(SESSION_ID, [
            user_text("Use the brainstorming skill"),
            assistant_tool_use("Skill", {"skill": "brainstorming"}, "toolu_skill_1"),
            tool_result("toolu_skill_1", "Launching skill: brainstorming"),
            meta_skill("/home/user/.claude/skills/brainstorming"),
            assistant_text("I am using the brainstorming skill to help you."),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == ["user", "assistant", "tool_result", "assistant"]

    def test_meta_entry_between_assistants_keeps_continuity(self, extractor, write_session):
        write_session(SESSION_ID, [
            user_text("Let me start working on this"),
            assistant_text("Let me start planning the restructure properly."),
            assistant_tool_use("Skill", {"skill": "superpowers:brainstorming"}, "toolu_skill_2"),
            tool_result("toolu_skill_2", "Launching skill: superpowers:brainstorming"),
            meta_skill("/home/user/.claude/skills/brainstorming"),
            assistant_text("Using the brainstorming skill to design the website restructure properly."),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == ["user", "assistant", "assistant", "tool_result", "assistant"]

    def test_loads_continuation_files(self, extractor, write_session):
        write_session(SESSION_ID, [user_text("First message"), assistant_text("First response")])
        write_session("continuation-session-xyz", [
            user_text("Continued message"),
            assistant_text("Continued response", sessionId="continuation-session-xyz"),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        texts = [m.content[0].text for m in messages]
        assert texts == ["First message", "First response", "Continued message", "Continued response"]

    def test_nonexistent_session(self, extractor, project_dir):
        assert extractor.load_history("nonexistent-session", PROJECT_PATH) == []

    def test_skips_malformed_lines(self, extractor, write_session):
        write_session(SESSION_ID, [
            user_text("Before bad line"),
            "this is not valid json {{{",
            "",
            assistant_text("After bad line"),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == ["user", "assistant"]

    def test_interrupted_tool_result(self, extractor, write_session):
        entry = jsonl_entry(type="user", message={"role": "user", "content": [
            {"type": "text", "text": "[Request interrupted by user for tool use]"},
            {"type": "tool_result", "tool_use_id": "toolu_x", "content": "rejected", "is_error": True},
        ]})
        write_session(SESSION_ID, [entry, assistant_text("OK, stopping.")])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert len(messages) == 2
        assert messages[0].type == "tool_result"
        assert len(messages[0].content) == 1

    def test_compact_boundary_notice(self, extractor, write_session):
        write_session(SESSION_ID, [
            user_text("Hello"),
            jsonl_entry(type="system", subtype="compact_boundary"),
            jsonl_entry(type="user", isCompactSummary=True, message={"role": "user", "content": "summary"}),
            assistant_text("Hi"),
        ])

        messages = extractor.load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == ["user", "system", "assistant"]
        assert messages[1].content[0].text == "Context compacted"

    def test_unreadable_file_raises(self, extractor, write_session, monkeypatch):
        write_session(SESSION_ID, [user_text("Hello")])

        def _fail(self, path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr("ccreplay.parser.SessionParser.parse_file", _fail)

        with pytest.raises(OSError):
            extractor.load_history(SESSION_ID, PROJECT_PATH)


class TestModuleLoadHistory:
    def test_uses_configured_projects_dir(self, projects_dir, write_session, monkeypatch):
        write_session(SESSION_ID, [user_text("Hello"), assistant_text("Hi")])
        monkeypatch.setenv("CLAUDE_PROJECTS_DIR", str(projects_dir))

        messages = load_history(SESSION_ID, PROJECT_PATH)

        assert [m.type for m in messages] == ["user", "assistant"]


class TestSupplementaryExtractors:
    def test_plan_file_paths(self, extractor, write_session):
        write_session(SESSION_ID, [
            user_text("plan it"),
            jsonl_entry(type="user", toolUseResult={"plan": "# Plan", "filePath": "/home/u/.claude/plans/a.md"},
                        message={"role": "user", "content": [
                            {"type": "tool_result", "tool_use_id": "t", "content": "approved"},
                        ]}),
            jsonl_entry(type="user", toolUseResult={"stdout": "x"},
                        message={"role": "user", "content": [
                            {"type": "tool_result", "tool_use_id": "u", "content": "x"},
                        ]}),
        ])

        assert extractor.extract_plan_file_paths(SESSION_ID, PROJECT_PATH) == ["/home/u/.claude/plans/a.md"]

    def test_skill_file_paths(self, extractor, write_session):
        write_session(SESSION_ID, [
            user_text("Use the brainstorming skill"),
            meta_skill("/home/user/.claude/skills/brainstorming"),
        ])

        skills = extractor.extract_skill_file_paths(SESSION_ID, PROJECT_PATH)

        assert len(skills) == 1
        assert skills[0].path == "/home/user/.claude/skills/brainstorming/SKILL.md"
        assert skills[0].display_name == "brainstorming"
        assert skills[0].to_dict() == {
            "path": "/home/user/.claude/skills/brainstorming/SKILL.md",
            "displayName": "brainstorming",
        }

    def test_missing_session(self, extractor, project_dir):
        assert extractor.extract_plan_file_paths("missing", PROJECT_PATH) == []
        assert extractor.extract_skill_file_paths("missing", PROJECT_PATH) == []

    def test_session_files_lists_chain(self, extractor, write_session):
        primary = write_session(SESSION_ID, [user_text("a")])
        continuation = write_session("cont", [user_text("b")])
        assert extractor.session_files(SESSION_ID, PROJECT_PATH) == [primary, continuation]
