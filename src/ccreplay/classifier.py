# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Entry classification module

Decides, for each raw log entry, whether it becomes a chat message, is
dropped as noise, or is turned into a fixed notice.

The marker patterns below follow the Claude CLI log format. They are not
a stable wire protocol and may change between CLI versions.
"""

import re
from enum import Enum
from typing import Any, Dict, Iterable, List

from .models import ChatMessage, TextBlock

# Entry types that never carry conversation content
NOISE_ENTRY_TYPES = frozenset({'progress', 'queue-operation'})

# Flags marking entries the CLI writes for its own bookkeeping
HIDDEN_ENTRY_FLAGS = ('isMeta', 'isVisibleInTranscriptOnly', 'isCompactSummary')

MESSAGE_ENTRY_TYPES = frozenset({'user', 'assistant'})

TASK_NOTIFICATION_PREFIX = '<task-notification>'
INTERRUPTION_PREFIX = '[Request interrupted'
COMMAND_NAME_TAG_RE = re.compile(r'<command-name>')

COMPACT_NOTICE_TEXT = 'Context compacted'
SESSION_ERROR_TEXT = 'Session ended unexpectedly'


class EntryAction(Enum):
    """What to do with a raw log entry"""
    DROP = 'drop'
    COMPACT_NOTICE = 'compact_notice'
    SESSION_ERROR = 'session_error'
    MESSAGE = 'message'


def classify_entry(entry: Dict[str, Any]) -> EntryAction:
    """
    Classify a raw log entry (first matching rule wins)

    Args:
        entry: Parsed JSONL entry

    Returns:
        EntryAction for the entry
    """
    entry_type = entry.get('type')

    if entry_type in NOISE_ENTRY_TYPES:
        return EntryAction.DROP

    # Skill injections, transcript-only notices, compaction summaries
    for flag in HIDDEN_ENTRY_FLAGS:
        if entry.get(flag) is True:
            return EntryAction.DROP

    if entry_type == 'system':
        if entry.get('subtype') == 'compact_boundary':
            return EntryAction.COMPACT_NOTICE
        return EntryAction.DROP

    if entry_type == 'result':
        if entry.get('subtype') == 'error_during_execution' and entry.get('is_error') is True:
            return EntryAction.SESSION_ERROR
        return EntryAction.DROP

    if entry_type not in MESSAGE_ENTRY_TYPES:
        return EntryAction.DROP

    message = entry.get('message')
    if not isinstance(message, dict):
        return EntryAction.DROP

    content = message.get('content')
    if isinstance(content, list) and not content:
        return EntryAction.DROP

    if entry_type == 'user' and is_task_notification(content):
        return EntryAction.DROP

    return EntryAction.MESSAGE


def is_task_notification(content: Any) -> bool:
    """Queue-delivery echo of a background task result"""
    return isinstance(content, str) and content.startswith(TASK_NOTIFICATION_PREFIX)


def is_interruption_text(text: str) -> bool:
    """Interruption marker the CLI appends when the user stops a turn"""
    return text.startswith(INTERRUPTION_PREFIX)


def is_command_marker(message: ChatMessage) -> bool:
    """User message that only echoes a slash-command invocation"""
    if message.type != 'user':
        return False
    return any(
        isinstance(block, TextBlock) and COMMAND_NAME_TAG_RE.search(block.text)
        for block in message.content
    )


def filter_command_markers(messages: Iterable[ChatMessage]) -> List[ChatMessage]:
    """Drop slash-command echoes, keeping every other message"""
    return [msg for msg in messages if not is_command_marker(msg)]
