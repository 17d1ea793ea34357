# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""Parsing of CLI markup embedded in user message text"""

import math
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

COMMAND_NAME_RE = re.compile(r'<command-name>/?([^<]*)</command-name>')
COMMAND_ARGS_RE = re.compile(r'<command-args>([^<]*)</command-args>')
ATTACHED_FILE_PATH_RE = re.compile(r'<attached_file_path\s+([^>]+?)/?>')
ATTACHED_FILE_NAME_RE = re.compile(r'name="([^"]+)"')

# Tags the CLI wraps around a slash-command echo
_COMMAND_TAG_RES = [
    re.compile(r'<command-message>[^<]*</command-message>'),
    re.compile(r'<command-name>[^<]*</command-name>'),
    re.compile(r'<command-args>[^<]*</command-args>'),
    re.compile(r'<local-command-caveat>[^<]*</local-command-caveat>'),
    re.compile(r'<local-command-stdout>[^<]*</local-command-stdout>'),
]


class CommandInfo(NamedTuple):
    command_name: str
    user_text: str


def parse_command_message(text: str) -> Optional[CommandInfo]:
    """
    Parse a slash-command echo

    Returns:
        CommandInfo with the command name and the text the user typed
        after it (command args win over leftover text), or None
    """
    match = COMMAND_NAME_RE.search(text)
    if not match:
        return None

    args_match = COMMAND_ARGS_RE.search(text)
    command_args = args_match.group(1).strip() if args_match else ''

    user_text = text
    for tag_re in _COMMAND_TAG_RES:
        user_text = tag_re.sub('', user_text)

    return CommandInfo(command_name=match.group(1), user_text=command_args or user_text.strip())


def decode_xml_attr(value: str) -> str:
    return (value
            .replace('&quot;', '"')
            .replace('&lt;', '<')
            .replace('&gt;', '>')
            .replace('&amp;', '&'))


def parse_attached_file_path_tags(text: str) -> Tuple[List[Dict[str, str]], str]:
    """
    Extract <attached_file_path name="..."/> tags from text

    Returns:
        (attached files as {'name': ...} dicts, text with the tags removed)
    """
    files: List[Dict[str, str]] = []

    def _collect(match: 're.Match[str]') -> str:
        name_match = ATTACHED_FILE_NAME_RE.search(match.group(1))
        if name_match:
            files.append({'name': decode_xml_attr(name_match.group(1))})
        return ''

    clean_text = ATTACHED_FILE_PATH_RE.sub(_collect, text).strip()
    return files, clean_text


def format_turn_duration(duration_ms: float) -> str:
    """Format a turn duration for display (e.g. 850ms, 2.5s, 42s)"""
    if not math.isfinite(duration_ms) or duration_ms < 0:
        return ''
    if duration_ms < 1000:
        return f"{round(duration_ms)}ms"
    seconds = duration_ms / 1000
    if seconds < 10:
        return f"{seconds:.1f}s"
    return f"{round(seconds)}s"
