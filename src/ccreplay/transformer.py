# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Entry transformation module

Maps an accepted log entry onto a ChatMessage whose content is a list of
typed content blocks.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .classifier import (
    COMPACT_NOTICE_TEXT,
    SESSION_ERROR_TEXT,
    EntryAction,
    classify_entry,
    is_interruption_text,
)
from .models import (
    ChatMessage,
    ContentBlock,
    DiffHunk,
    ErrorBlock,
    ImageBlock,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
)

HISTORY_SOURCE = 'history'


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def as_text(value: Any) -> str:
    """
    Read a log field that should hold a string

    None becomes an empty string; any other non-string value is serialized
    as JSON, so a malformed field still yields a usable, hashable string.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return ''
    return json.dumps(value, ensure_ascii=False, default=str)


def _base_fields(entry: Dict[str, Any], chat_id: str) -> Dict[str, Any]:
    return {
        'id': as_text(entry.get('uuid')) or str(uuid.uuid4()),
        'chat_id': chat_id,
        'timestamp': as_text(entry.get('timestamp')) or _now_iso(),
    }


def derive_modified_file(tool_use_result: Optional[Dict[str, Any]],
                         original_file: Optional[str]) -> Optional[str]:
    """
    Derive the file content after an edit/write tool ran

    Args:
        tool_use_result: The entry's toolUseResult payload
        original_file: File content before the tool ran

    Returns:
        The modified file content, or None if it cannot be derived
    """
    if not tool_use_result:
        return None

    content = tool_use_result.get('content')
    if isinstance(content, str) and tool_use_result.get('type') in ('create', 'update'):
        return content

    old_string = tool_use_result.get('oldString')
    new_string = tool_use_result.get('newString')
    if new_string is None:
        new_string = ''
    if original_file and isinstance(old_string, str) and isinstance(new_string, str):
        if tool_use_result.get('replaceAll'):
            return original_file.replace(old_string, new_string)
        return original_file.replace(old_string, new_string, 1)

    return None


def _stringify_result_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    return json.dumps(content if content is not None else '', ensure_ascii=False)


def _parse_hunks(hunks: Any) -> Optional[List[DiffHunk]]:
    """Structured patch hunks; hunks with non-numeric positions are skipped"""
    if not isinstance(hunks, list):
        return None
    parsed = []
    for hunk in hunks:
        if not isinstance(hunk, dict):
            continue
        try:
            parsed.append(DiffHunk.from_dict(hunk))
        except (TypeError, ValueError):
            continue
    return parsed or None


def build_tool_result_blocks(raw_content: Any,
                             tool_use_result: Any = None) -> List[ToolResultBlock]:
    """
    Build tool_result blocks from a user entry's content items

    File edit details (structured patch, original and modified file) come
    from the entry-level toolUseResult and are attached to every result.
    """
    if not isinstance(raw_content, list):
        return []

    tur = tool_use_result if isinstance(tool_use_result, dict) else None
    structured_patch = None
    original_file = None
    if tur:
        structured_patch = _parse_hunks(tur.get('structuredPatch'))
        if isinstance(tur.get('originalFile'), str):
            original_file = tur['originalFile']
    modified_file = derive_modified_file(tur, original_file)

    blocks = []
    for item in raw_content:
        if not isinstance(item, dict) or item.get('type') != 'tool_result':
            continue
        blocks.append(ToolResultBlock(
            tool_use_id=as_text(item.get('tool_use_id')),
            content=_stringify_result_content(item.get('content')),
            is_error=bool(item.get('is_error', False)),
            structured_patch=structured_patch,
            original_file=original_file,
            modified_file=modified_file,
        ))
    return blocks


def _image_block(item: Dict[str, Any]) -> Optional[ImageBlock]:
    source = item.get('source')
    if not isinstance(source, dict) or source.get('type') != 'base64':
        return None
    return ImageBlock(media_type=as_text(source.get('media_type')), data=as_text(source.get('data')))


def _convert_user_entry(entry: Dict[str, Any], message: Dict[str, Any],
                        chat_id: str) -> Optional[ChatMessage]:
    raw_content = message.get('content')
    blocks: List[ContentBlock] = []

    if isinstance(raw_content, str):
        blocks.append(TextBlock(text=raw_content))
    else:
        # Tool results first, then the user's own text and images
        blocks.extend(build_tool_result_blocks(raw_content, entry.get('toolUseResult')))
        for item in raw_content:
            if not isinstance(item, dict):
                continue
            item_type = item.get('type')
            if item_type == 'text':
                text = as_text(item.get('text'))
                if not is_interruption_text(text):
                    blocks.append(TextBlock(text=text))
            elif item_type == 'image':
                image = _image_block(item)
                if image:
                    blocks.append(image)

    if not blocks:
        return None

    has_tool_result = any(isinstance(b, ToolResultBlock) for b in blocks)
    return ChatMessage(
        type='tool_result' if has_tool_result else 'user',
        content=blocks,
        metadata={'source': HISTORY_SOURCE},
        **_base_fields(entry, chat_id),
    )


def _convert_assistant_entry(entry: Dict[str, Any], message: Dict[str, Any],
                             chat_id: str) -> Optional[ChatMessage]:
    raw_content = message.get('content')
    blocks: List[ContentBlock] = []

    if isinstance(raw_content, str):
        blocks.append(TextBlock(text=raw_content))
    else:
        for item in raw_content:
            if not isinstance(item, dict):
                continue
            item_type = item.get('type')
            if item_type == 'text':
                blocks.append(TextBlock(text=as_text(item.get('text'))))
            elif item_type == 'thinking':
                blocks.append(ThinkingBlock(thinking=as_text(item.get('thinking'))))
            elif item_type == 'tool_use':
                tool_input = item.get('input')
                blocks.append(ToolUseBlock(
                    id=as_text(item.get('id')),
                    name=as_text(item.get('name')),
                    input=tool_input if isinstance(tool_input, dict) else {},
                ))
            elif item_type == 'image':
                image = _image_block(item)
                if image:
                    blocks.append(image)

    if not blocks:
        return None

    metadata: Dict[str, Any] = {'source': HISTORY_SOURCE}
    if message.get('model'):
        metadata['model'] = message['model']
    if isinstance(message.get('usage'), dict):
        metadata['usage'] = message['usage']

    return ChatMessage(
        type='assistant',
        content=blocks,
        metadata=metadata,
        **_base_fields(entry, chat_id),
    )


def _fallback_message(entry: Dict[str, Any], chat_id: str) -> ChatMessage:
    return ChatMessage(
        type='assistant',
        content=[TextBlock(text='')],
        metadata={'source': HISTORY_SOURCE},
        **_base_fields(entry, chat_id),
    )


def convert_history_entry(entry: Dict[str, Any], chat_id: str) -> Optional[ChatMessage]:
    """
    Convert one raw log entry into a ChatMessage

    Args:
        entry: Parsed JSONL entry
        chat_id: Chat ID stamped on the message (the session ID)

    Returns:
        ChatMessage, or None if the entry is dropped
    """
    action = classify_entry(entry)

    if action is EntryAction.DROP:
        return None

    if action is EntryAction.COMPACT_NOTICE:
        return ChatMessage(
            type='system',
            content=[TextBlock(text=COMPACT_NOTICE_TEXT)],
            metadata={'source': HISTORY_SOURCE, 'internal': True},
            **_base_fields(entry, chat_id),
        )

    if action is EntryAction.SESSION_ERROR:
        return ChatMessage(
            type='error',
            content=[ErrorBlock(message=SESSION_ERROR_TEXT)],
            metadata={'source': HISTORY_SOURCE},
            **_base_fields(entry, chat_id),
        )

    message = entry['message']
    raw_content = message.get('content')
    if not isinstance(raw_content, (str, list)):
        return _fallback_message(entry, chat_id)

    if entry.get('type') == 'user':
        return _convert_user_entry(entry, message, chat_id)
    return _convert_assistant_entry(entry, message, chat_id)
