# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Display mapping module

Converts grouped messages into render messages for a chat UI.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .classifier import is_interruption_text
from .correlator import orphan_result_text
from .message_grouping import TURN_TYPES
from .message_parsing import parse_attached_file_path_tags, parse_command_message
from .models import (
    ErrorBlock,
    ErrorMarker,
    GroupedMessage,
    ImageBlock,
    ImagePart,
    PermissionMarker,
    PermissionRequestBlock,
    ReasoningPart,
    RenderMessage,
    RenderPart,
    TextBlock,
    TextPart,
    ThinkingBlock,
    ToolCallPart,
    ToolResultBlock,
    ToolUseBlock,
)
from .tool_grouping import group_parts
from .tools import EMPTY_CATEGORIES, ToolCategories


def parse_iso_timestamp(ts_str: str) -> Optional[datetime]:
    """Parse ISO 8601 format timestamp (None if missing or invalid)"""
    if not ts_str:
        return None
    # fromisoformat before 3.11 does not accept 'Z'
    if ts_str.endswith('Z'):
        ts_str = ts_str[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(ts_str)
    except ValueError:
        return None


def tool_call_result(result: ToolResultBlock) -> Any:
    """
    Result value of a tool-call part

    Returns:
        A dict with the patch fields when a structured patch is present,
        otherwise the result content string
    """
    if not result.structured_patch:
        return result.content
    return {
        'content': result.content,
        'structuredPatch': [hunk.to_dict() for hunk in result.structured_patch],
        'originalFile': result.original_file,
        'modifiedFile': result.modified_file,
    }


def _empty_text() -> List[RenderPart]:
    return [TextPart(text='')]


def _convert_user(message: GroupedMessage) -> Tuple[List[RenderPart], Dict[str, Any]]:
    parts: List[RenderPart] = []
    metadata: Dict[str, Any] = {}

    for block in message.content:
        if isinstance(block, ImageBlock):
            parts.append(ImagePart(media_type=block.media_type, data=block.data))
            continue
        if not isinstance(block, TextBlock) or is_interruption_text(block.text):
            continue

        command = parse_command_message(block.text)
        if command:
            metadata['command'] = {'name': command.command_name, 'userText': command.user_text}
            metadata['cleanText'] = command.user_text

        files, clean_text = parse_attached_file_path_tags(block.text)
        text = block.text
        if files:
            metadata['attachedFiles'] = files
            text = clean_text

        if text.strip():
            parts.append(TextPart(text=text))

    return parts or _empty_text(), metadata


def _convert_turn(message: GroupedMessage, categories: ToolCategories) -> List[RenderPart]:
    parts: List[RenderPart] = []

    for block in message.content:
        if isinstance(block, TextBlock):
            parts.append(TextPart(text=block.text))
        elif isinstance(block, ThinkingBlock):
            parts.append(ReasoningPart(text=block.thinking))
        elif isinstance(block, ToolUseBlock):
            if categories.is_hidden(block.name):
                continue
            result = message.tool_results.get(block.id)
            parts.append(ToolCallPart(
                tool_call_id=block.id,
                tool_name=block.name,
                args=block.input,
                result=tool_call_result(result) if result else None,
                is_error=result.is_error if result else None,
            ))
        elif isinstance(block, ToolResultBlock):
            parts.append(TextPart(text=orphan_result_text(block)))
        elif isinstance(block, ErrorBlock):
            parts.append(ErrorMarker(message=block.message))
        elif isinstance(block, PermissionRequestBlock):
            parts.append(PermissionMarker(request=block.request))

    return group_parts(parts, categories) or _empty_text()


def _first_block(message: GroupedMessage, block_type):
    for block in message.content:
        if isinstance(block, block_type):
            return block
    return None


def convert_message(message: GroupedMessage,
                    categories: ToolCategories = EMPTY_CATEGORIES) -> RenderMessage:
    """
    Convert a grouped message into a render message

    Args:
        message: Grouped message
        categories: Tool categories of the adapter that produced the log

    Returns:
        RenderMessage (never empty; unknown shapes yield one empty text part)
    """
    metadata = dict(message.metadata)
    role = 'assistant'

    if message.type == 'user':
        role = 'user'
        parts, user_metadata = _convert_user(message)
        metadata.update(user_metadata)
    elif message.type == 'system':
        role = 'system'
        parts = [TextPart(text=b.text) for b in message.content if isinstance(b, TextBlock)]
        parts = parts or _empty_text()
    elif message.type in TURN_TYPES or message.type == 'tool_result':
        parts = _convert_turn(message, categories)
    elif message.type == 'error':
        error = _first_block(message, ErrorBlock)
        parts = [ErrorMarker(message=error.message if error else '')]
    elif message.type == 'permission':
        request = _first_block(message, PermissionRequestBlock)
        parts = [PermissionMarker(request=request.request if request else None)]
    else:
        parts = _empty_text()

    return RenderMessage(
        id=message.id,
        role=role,
        content=parts,
        created_at=parse_iso_timestamp(message.timestamp),
        metadata=metadata,
    )
