# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""Chat message to render message pipeline"""

from typing import List, Optional

from .classifier import filter_command_markers
from .display import convert_message
from .message_grouping import group_messages
from .models import ChatMessage, RenderMessage
from .tools import ToolCategories, get_tool_categories


def prepare_messages_for_client(messages: List[ChatMessage],
                                adapter_id: Optional[str] = 'claude',
                                categories: Optional[ToolCategories] = None) -> List[RenderMessage]:
    """
    Turn chat messages into render messages

    Slash-command echoes are dropped, messages grouped into turns with
    their tool results, and each turn mapped to render parts.

    Args:
        messages: Chat messages in log order
        adapter_id: Adapter whose tool categories apply
        categories: Explicit tool categories (overrides adapter_id)

    Returns:
        List of RenderMessage
    """
    if categories is None:
        categories = get_tool_categories(adapter_id)
    grouped = group_messages(filter_command_markers(messages))
    return [convert_message(message, categories) for message in grouped]
