# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Markdown formatter

Format render messages as a Markdown transcript
"""

import json
from datetime import datetime
from typing import Any, List, Optional

from .message_parsing import format_turn_duration
from .models import (
    ErrorMarker,
    ImagePart,
    PermissionMarker,
    ReasoningPart,
    RenderMessage,
    TaskGroupPart,
    TaskProgressPart,
    TextPart,
    ToolCallPart,
    ToolGroupPart,
)

ROLE_ICONS = {
    'user': '👤',
    'assistant': '🤖',
    'system': '📄',
}

# Longest tool result shown inline
RESULT_PREVIEW_CHARS = 200


def to_local_time(ts: datetime) -> datetime:
    """Convert UTC timestamp to local time"""
    local_tz = datetime.now().astimezone().tzinfo
    return ts.astimezone(local_tz)


def format_local_timestamp(ts: Optional[datetime], include_seconds: bool = False) -> str:
    """Convert timestamp to local time and format as display string"""
    if ts is None:
        return ''
    local_ts = to_local_time(ts)
    if include_seconds:
        return local_ts.strftime('%Y-%m-%dT%H:%M:%S')
    return local_ts.strftime('%Y-%m-%dT%H:%M')


def _offset_markdown_header(line: str) -> str:
    """
    Offset Markdown header level

    Adjust so headers in Assistant responses are level 4 or lower:
    - # → #### (+3)
    - ## → #### (+2)
    - ### → ##### (+2)
    - #### → ###### (+2)
    - ##### or higher → ###### (capped at 6)
    """
    if not line.startswith('#'):
        return line

    level = len(line) - len(line.lstrip('#'))

    # Not a header if no space after '#'
    if len(line) <= level or line[level] != ' ':
        return line

    if level == 1:
        new_level = 4
    else:
        new_level = min(level + 2, 6)

    return '#' * new_level + line[level:]


def _preview(value: Any) -> str:
    """Single-line preview of a tool argument or result"""
    if value is None:
        return ''
    if not isinstance(value, str):
        value = json.dumps(value, ensure_ascii=False)
    value = ' '.join(value.split())
    if len(value) > RESULT_PREVIEW_CHARS:
        value = value[:RESULT_PREVIEW_CHARS] + '…'
    return value


def _tool_call_line(part: ToolCallPart, indent: str = '') -> str:
    args = _preview(part.args) if part.args else ''
    line = f"{indent}- `{part.tool_name}` {args}".rstrip()
    if part.is_error:
        line += ' **(error)**'
    return line


def _format_part(part, lines: List[str], shift_headers: bool, indent: str = ''):
    if isinstance(part, TextPart):
        if not part.text:
            return
        for text_line in part.text.split('\n'):
            lines.append(_offset_markdown_header(text_line) if shift_headers else text_line)
        lines.append('')
    elif isinstance(part, ReasoningPart):
        for text_line in part.text.split('\n'):
            lines.append(f"> {text_line}")
        lines.append('')
    elif isinstance(part, ImagePart):
        lines.append(f"{indent}[Image: {part.media_type}]")
        lines.append('')
    elif isinstance(part, ToolCallPart):
        lines.append(_tool_call_line(part, indent))
        result = part.result
        if isinstance(result, dict):
            # Patch results carry the tool output under 'content'
            result = result.get('content')
        result = _preview(result)
        if result:
            lines.append(f"{indent}  - → {result}")
    elif isinstance(part, ToolGroupPart):
        lines.append(f"{indent}- Explored ({len(part.items)} calls)")
        for item in part.items:
            lines.append(_tool_call_line(item, indent + '  '))
    elif isinstance(part, TaskProgressPart):
        lines.append(f"{indent}- Task progress ({len(part.items)} updates)")
        for item in part.items:
            lines.append(_tool_call_line(item, indent + '  '))
    elif isinstance(part, TaskGroupPart):
        description = part.task_args.get('description') or part.tool_call_id
        lines.append(f"{indent}- Task: {description}" + (' **(error)**' if part.is_error else ''))
        for child in part.children:
            _format_part(child, lines, shift_headers, indent + '  ')
    elif isinstance(part, ErrorMarker):
        lines.append(f"**Error**: {part.message}")
        lines.append('')
    elif isinstance(part, PermissionMarker):
        lines.append('**Permission requested**')
        lines.append('')


def format_as_markdown(messages: List[RenderMessage], title: str) -> str:
    """
    Format render messages in Markdown format

    Args:
        messages: List of render messages
        title: Transcript title (usually the project name)

    Returns:
        Markdown format string
    """
    lines = []

    lines.append(f"# {title} - Export")
    lines.append("")
    lines.append(f"**Generated**: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("")
    lines.append(f"- **Messages**: {len(messages)}")
    if messages:
        start_time = format_local_timestamp(messages[0].created_at)
        end_time = format_local_timestamp(messages[-1].created_at)
        lines.append(f"- **Period**: {start_time} - {end_time}")
    lines.append("")
    lines.append("---")
    lines.append("")

    for i, msg in enumerate(messages, 1):
        icon = ROLE_ICONS.get(msg.role, '📄')
        header = f"## {i}. {icon} {format_local_timestamp(msg.created_at)} ({msg.role})"
        duration = msg.metadata.get('turnDurationMs')
        if isinstance(duration, (int, float)) and not isinstance(duration, bool):
            formatted = format_turn_duration(duration)
            if formatted:
                header += f" - {formatted}"
        lines.append(header)
        lines.append("")

        # Tool-call lines form a list; close it before other blocks
        in_list = False
        for part in msg.content:
            is_list_item = part.type == 'tool-call'
            if in_list and not is_list_item:
                lines.append("")
            _format_part(part, lines, shift_headers=msg.role == 'assistant')
            in_list = is_list_item
        if in_list:
            lines.append("")

        lines.append("---")
        lines.append("")

    return '\n'.join(lines)
