# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Tool result correlation module

Tool results arrive in later log entries than the tool_use blocks that
requested them. The correlator remembers which grouped message owns each
tool_use id and attaches results to that message.
"""

from typing import Dict, Iterable

from .models import ContentBlock, GroupedMessage, ToolResultBlock, ToolUseBlock

ORPHAN_RESULT_PREFIX = '[Tool Result] '


class ToolCorrelator:
    """Map from tool_use id to the grouped message that contains it"""

    def __init__(self):
        self._owners: Dict[str, GroupedMessage] = {}

    def register(self, owner: GroupedMessage, blocks: Iterable[ContentBlock]):
        """
        Record tool_use blocks as owned by a grouped message

        The first owner of an id wins; repeated ids are duplicates that
        grouping removes later.
        """
        for block in blocks:
            if isinstance(block, ToolUseBlock):
                self._owners.setdefault(block.id, owner)

    def attach(self, result: ToolResultBlock) -> bool:
        """
        Attach a tool result to the owner of its tool_use

        Returns:
            True if correlated, False if the result is an orphan
        """
        owner = self._owners.get(result.tool_use_id)
        if owner is None:
            return False
        owner.tool_results[result.tool_use_id] = result
        return True


def orphan_result_text(result: ToolResultBlock) -> str:
    """Text shown in place of a tool result with no matching tool_use"""
    return ORPHAN_RESULT_PREFIX + result.content
