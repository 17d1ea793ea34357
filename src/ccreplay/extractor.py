# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Session history extraction module

Replays a persisted Claude Code session log into chat messages:
locate the log and its continuation files, parse every line, classify
and transform each entry, and drop slash-command echoes.
"""

import posixpath
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

from .classifier import filter_command_markers
from .config import Config
from .locator import DEFAULT_MAX_CONTINUATION_FILES, SessionLocator
from .models import ChatMessage
from .parser import SessionParser
from .transformer import convert_history_entry

console = Console(stderr=True)

SKILL_BASE_DIR_RE = re.compile(r'^Base directory for this skill: (.+)')


@dataclass(frozen=True)
class SkillFileEntry:
    """Skill file injected into a session"""
    path: str
    display_name: str

    def to_dict(self) -> Dict[str, str]:
        return {'path': self.path, 'displayName': self.display_name}


class MessageExtractor:
    """Class for extracting chat messages from session JSONL files"""

    def __init__(self, projects_dir: str, config: Optional[Config] = None):
        """
        Args:
            projects_dir: Path to Claude projects directory
            config: Configuration object
        """
        self.projects_dir = Path(projects_dir)
        self.config = config
        self.verbose = config.verbose if config else False
        self._parser = SessionParser(verbose=self.verbose)
        self._locator = SessionLocator(
            str(self.projects_dir),
            max_continuation_files=config.max_continuation_files if config else DEFAULT_MAX_CONTINUATION_FILES,
            parser=self._parser,
            verbose=self.verbose,
        )

    def session_files(self, session_id: str, project_path: str) -> List[Path]:
        """Get the session's log files (primary first, then continuations)"""
        return self._locator.locate(session_id, project_path)

    def load_history(self, session_id: str, project_path: str) -> List[ChatMessage]:
        """
        Load a session's history as chat messages

        Args:
            session_id: Session ID (also used as chat ID)
            project_path: Project filesystem path

        Returns:
            Messages in log order, continuation files appended after the
            primary file; empty if the session log does not exist

        Raises:
            OSError: If a located log file cannot be read
        """
        jsonl_files = self.session_files(session_id, project_path)
        if not jsonl_files:
            if self.verbose:
                console.print(f"[dim]No history for session {session_id[:8]}...[/dim]")
            return []

        messages: List[ChatMessage] = []
        for entry in self._parser.parse_files(jsonl_files):
            msg = convert_history_entry(entry, session_id)
            if msg:
                messages.append(msg)

        messages = filter_command_markers(messages)

        if self.verbose:
            console.print(
                f"[cyan]History loaded: {len(messages)} messages from {len(jsonl_files)} file(s)[/cyan]"
            )
        return messages

    def _read_primary(self, session_id: str, project_path: str) -> List[Dict[str, Any]]:
        """Read the primary log only (empty if missing)"""
        jsonl_path = self._locator.session_path(session_id, project_path)
        if not jsonl_path.is_file():
            return []
        return self._parser.parse_file(jsonl_path)

    def extract_plan_file_paths(self, session_id: str, project_path: str) -> List[str]:
        """
        Get file paths of plans approved during a session

        Returns:
            Plan file paths in log order
        """
        plan_files = []
        for entry in self._read_primary(session_id, project_path):
            if entry.get('type') != 'user':
                continue
            tool_use_result = entry.get('toolUseResult')
            if not isinstance(tool_use_result, dict):
                continue
            if isinstance(tool_use_result.get('plan'), str) and isinstance(tool_use_result.get('filePath'), str):
                plan_files.append(tool_use_result['filePath'])
        return plan_files

    def extract_skill_file_paths(self, session_id: str, project_path: str) -> List[SkillFileEntry]:
        """
        Get skill files injected into a session

        Skill injections are isMeta user entries whose text starts with
        "Base directory for this skill: <dir>".

        Returns:
            SkillFileEntry list in log order
        """
        skill_files = []
        for entry in self._read_primary(session_id, project_path):
            if entry.get('type') != 'user' or entry.get('isMeta') is not True:
                continue
            message = entry.get('message')
            content = message.get('content') if isinstance(message, dict) else None
            if not isinstance(content, list):
                continue
            skill_path = _extract_skill_path(content)
            if skill_path:
                skill_files.append(SkillFileEntry(path=skill_path, display_name=_skill_display_name(skill_path)))
        return skill_files


def _extract_skill_path(content: List[Any]) -> Optional[str]:
    for item in content:
        if not isinstance(item, dict) or item.get('type') != 'text' or not isinstance(item.get('text'), str):
            continue
        match = SKILL_BASE_DIR_RE.match(item['text'])
        if match:
            return posixpath.join(match.group(1).strip(), 'SKILL.md')
    return None


def _skill_display_name(skill_path: str) -> str:
    """SKILL.md files are named after their directory"""
    segments = skill_path.split('/')
    file_name = segments.pop() or skill_path
    if file_name == 'SKILL.md' and segments and segments[-1]:
        return segments[-1]
    return file_name


def load_history(session_id: str, project_path: str, config: Optional[Config] = None) -> List[ChatMessage]:
    """
    Load a session's history using the default (or given) configuration

    Args:
        session_id: Session ID
        project_path: Project filesystem path
        config: Configuration object (loaded from defaults if omitted)

    Returns:
        List of ChatMessage
    """
    config = config or Config()
    return MessageExtractor(config.projects_dir, config).load_history(session_id, project_path)
