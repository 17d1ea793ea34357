# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Turn grouping module

Merges consecutive assistant/tool_use messages into a single turn and
attaches tool results to the turn that issued the tool calls, so a UI
can show each invocation together with its result.
"""

from typing import List, Set

from .correlator import ToolCorrelator
from .models import ChatMessage, GroupedMessage, ToolResultBlock, ToolUseBlock

TURN_TYPES = frozenset({'assistant', 'tool_use'})

# Id suffix of the user message split off a tool_result message with orphans
USER_SPLIT_ID_SUFFIX = ':user'


def _turn_duration(msg: ChatMessage):
    """turnDurationMs of an internal system marker, or None"""
    if msg.type != 'system':
        return None
    value = msg.metadata.get('turnDurationMs')
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def group_messages(messages: List[ChatMessage]) -> List[GroupedMessage]:
    """
    Group messages into turns

    - consecutive assistant/tool_use messages are merged (first id kept)
    - tool results are attached to the turn owning their tool_use, which
      may be any earlier turn; results without one stay in place (orphans)
    - user text left beside orphan results is split into a following
      user message
    - system markers carrying turnDurationMs annotate the latest turn
    - duplicate tool_use blocks are dropped, first occurrence kept

    Messages are never reordered, and nothing merges across a user message.

    Args:
        messages: Chat messages in log order

    Returns:
        List of GroupedMessage
    """
    result: List[GroupedMessage] = []
    correlator = ToolCorrelator()

    for msg in messages:
        duration = _turn_duration(msg)
        if duration is not None:
            for prev in reversed(result):
                if prev.type in TURN_TYPES:
                    prev.metadata = {**prev.metadata, 'turnDurationMs': duration}
                    break
            continue

        if msg.type == 'tool_result':
            leftovers = [
                block for block in msg.content
                if not (isinstance(block, ToolResultBlock) and correlator.attach(block))
            ]
            orphans = [block for block in leftovers if isinstance(block, ToolResultBlock)]
            user_blocks = [block for block in leftovers if not isinstance(block, ToolResultBlock)]
            if orphans:
                grouped = GroupedMessage.from_message(msg)
                grouped.content = orphans
                result.append(grouped)
            if user_blocks:
                # The user's own text and images keep the user role
                grouped = GroupedMessage.from_message(msg)
                grouped.type = 'user'
                grouped.content = user_blocks
                if orphans:
                    grouped.id = f"{msg.id}{USER_SPLIT_ID_SUFFIX}"
                result.append(grouped)
            continue

        if msg.type in TURN_TYPES and result and result[-1].type in TURN_TYPES:
            prev = result[-1]
            prev.content = prev.content + list(msg.content)
            correlator.register(prev, msg.content)
            continue

        grouped = GroupedMessage.from_message(msg)
        correlator.register(grouped, grouped.content)
        result.append(grouped)

    _dedupe_tool_uses(result)
    return result


def _dedupe_tool_uses(messages: List[GroupedMessage]):
    """Drop repeated tool_use blocks across the whole stream"""
    seen: Set[str] = set()
    for msg in messages:
        if msg.type not in TURN_TYPES:
            continue
        kept = []
        for block in msg.content:
            if isinstance(block, ToolUseBlock):
                if block.id in seen:
                    continue
                seen.add(block.id)
            kept.append(block)
        msg.content = kept
