# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Data model module

Content blocks produced from session log entries, the chat messages that
carry them, and the render parts handed to the chat UI.

Both block and part sets are closed: every variant is a frozen dataclass
with a literal ``type`` tag so consumers can match exhaustively.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union


# ---------------------------------------------------------------------------
# Content blocks (one per item of a log entry's message content)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiffHunk:
    """One hunk of a structured patch"""
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiffHunk':
        """
        Raises:
            ValueError, TypeError: If a position field is not numeric
        """
        lines = data.get('lines')
        return cls(
            old_start=int(data.get('oldStart', 0) or 0),
            old_lines=int(data.get('oldLines', 0) or 0),
            new_start=int(data.get('newStart', 0) or 0),
            new_lines=int(data.get('newLines', 0) or 0),
            lines=[str(line) for line in lines] if isinstance(lines, list) else [],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'oldStart': self.old_start,
            'oldLines': self.old_lines,
            'newStart': self.new_start,
            'newLines': self.new_lines,
            'lines': list(self.lines),
        }


@dataclass(frozen=True)
class TextBlock:
    text: str
    type: str = field(default='text', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'text': self.text}


@dataclass(frozen=True)
class ThinkingBlock:
    thinking: str
    type: str = field(default='thinking', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'thinking': self.thinking}


@dataclass(frozen=True)
class ImageBlock:
    media_type: str
    data: str
    type: str = field(default='image', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'mediaType': self.media_type, 'data': self.data}


@dataclass(frozen=True)
class ToolUseBlock:
    id: str
    name: str
    input: Dict[str, Any] = field(default_factory=dict)
    type: str = field(default='tool_use', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'id': self.id, 'name': self.name, 'input': self.input}


@dataclass(frozen=True)
class ToolResultBlock:
    tool_use_id: str
    content: str
    is_error: bool = False
    structured_patch: Optional[List[DiffHunk]] = None
    original_file: Optional[str] = None
    modified_file: Optional[str] = None
    type: str = field(default='tool_result', init=False)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'type': self.type,
            'toolUseId': self.tool_use_id,
            'content': self.content,
            'isError': self.is_error,
        }
        if self.structured_patch:
            data['structuredPatch'] = [h.to_dict() for h in self.structured_patch]
        if self.original_file is not None:
            data['originalFile'] = self.original_file
        if self.modified_file is not None:
            data['modifiedFile'] = self.modified_file
        return data


@dataclass(frozen=True)
class ErrorBlock:
    message: str
    type: str = field(default='error', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'message': self.message}


@dataclass(frozen=True)
class PermissionRequestBlock:
    request: Any
    type: str = field(default='permission_request', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'request': self.request}


ContentBlock = Union[
    TextBlock,
    ThinkingBlock,
    ImageBlock,
    ToolUseBlock,
    ToolResultBlock,
    ErrorBlock,
    PermissionRequestBlock,
]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

@dataclass
class ChatMessage:
    """Message reconstructed from one session log entry"""
    id: str
    chat_id: str
    type: str  # user, assistant, system, tool_use, tool_result, error, permission
    content: List[ContentBlock]
    timestamp: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'chatId': self.chat_id,
            'type': self.type,
            'content': [block.to_dict() for block in self.content],
            'timestamp': self.timestamp,
            'metadata': dict(self.metadata),
        }


@dataclass
class GroupedMessage(ChatMessage):
    """ChatMessage after turn merging, with correlated tool results"""
    tool_results: Dict[str, ToolResultBlock] = field(default_factory=dict)

    @classmethod
    def from_message(cls, message: ChatMessage) -> 'GroupedMessage':
        return cls(
            id=message.id,
            chat_id=message.chat_id,
            type=message.type,
            content=list(message.content),
            timestamp=message.timestamp,
            metadata=dict(message.metadata),
        )


# ---------------------------------------------------------------------------
# Render parts (Display Mapper output)
# ---------------------------------------------------------------------------

TOOL_GROUP_NAME = '_ToolGroup'
TASK_GROUP_NAME = '_TaskGroup'
TASK_PROGRESS_NAME = '_TaskProgress'


@dataclass(frozen=True)
class TextPart:
    text: str
    type: str = field(default='text', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'text': self.text}


@dataclass(frozen=True)
class ReasoningPart:
    text: str
    type: str = field(default='reasoning', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'text': self.text}


@dataclass(frozen=True)
class ImagePart:
    media_type: str
    data: str
    type: str = field(default='image', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'mediaType': self.media_type, 'data': self.data}


@dataclass(frozen=True)
class ToolCallPart:
    """A single tool invocation; ``result`` is a string or a patch dict"""
    tool_call_id: str
    tool_name: str
    args: Dict[str, Any] = field(default_factory=dict)
    result: Any = None
    is_error: Optional[bool] = None
    type: str = field(default='tool-call', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'toolCallId': self.tool_call_id,
            'toolName': self.tool_name,
            'args': self.args,
            'result': self.result,
            'isError': self.is_error,
        }


@dataclass(frozen=True)
class ToolGroupPart:
    """Consecutive explore-category calls folded into one unit"""
    tool_call_id: str
    items: List[ToolCallPart]
    type: str = field(default='tool-call', init=False)
    tool_name: str = field(default=TOOL_GROUP_NAME, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'toolCallId': self.tool_call_id,
            'toolName': self.tool_name,
            'args': {'items': [_group_item(i) for i in self.items]},
            'result': 'grouped',
        }


@dataclass(frozen=True)
class TaskProgressPart:
    """Progress-category calls accumulated into one entry"""
    tool_call_id: str
    items: List[ToolCallPart]
    type: str = field(default='tool-call', init=False)
    tool_name: str = field(default=TASK_PROGRESS_NAME, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'toolCallId': self.tool_call_id,
            'toolName': self.tool_name,
            'args': {'items': [_group_item(i) for i in self.items]},
            'result': 'accumulated',
        }


@dataclass(frozen=True)
class TaskGroupPart:
    """A sub-agent call with the tool calls it made nested under it"""
    tool_call_id: str
    task_args: Dict[str, Any]
    children: List['RenderPart']
    result: Any = None
    is_error: Optional[bool] = None
    type: str = field(default='tool-call', init=False)
    tool_name: str = field(default=TASK_GROUP_NAME, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'toolCallId': self.tool_call_id,
            'toolName': self.tool_name,
            'args': {
                'taskArgs': self.task_args,
                'children': [child.to_dict() for child in self.children],
            },
            'result': self.result,
            'isError': self.is_error,
        }


@dataclass(frozen=True)
class ErrorMarker:
    """Marks an error event inside a render part list"""
    message: str = ''
    type: str = field(default='error', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'message': self.message}


@dataclass(frozen=True)
class PermissionMarker:
    """Marks a pending permission request inside a render part list"""
    request: Any = None
    type: str = field(default='permission', init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'request': self.request}


RenderPart = Union[
    TextPart,
    ReasoningPart,
    ImagePart,
    ToolCallPart,
    ToolGroupPart,
    TaskProgressPart,
    TaskGroupPart,
    ErrorMarker,
    PermissionMarker,
]


def _group_item(part: ToolCallPart) -> Dict[str, Any]:
    return {
        'toolCallId': part.tool_call_id,
        'toolName': part.tool_name,
        'args': part.args,
        'result': part.result,
        'isError': part.is_error,
    }


@dataclass
class RenderMessage:
    """Render-ready message for the chat UI"""
    id: str
    role: str  # user, assistant, system
    content: List[RenderPart]
    created_at: Optional[datetime]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'role': self.role,
            'content': [part.to_dict() for part in self.content],
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'metadata': dict(self.metadata),
        }
