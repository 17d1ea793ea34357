# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Tool categorization module

Each AI CLI provider has its own tool vocabulary. The categories decide
how tool calls are displayed:

- explore: read/search tools folded together when consecutive
- hidden: bookkeeping tools never shown
- progress: task progress tools accumulated into one entry
- subagent: tools launching a nested task, whose calls nest under it
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional


@dataclass(frozen=True)
class ToolCategories:
    """Tool names per display category"""
    explore: FrozenSet[str] = field(default_factory=frozenset)
    hidden: FrozenSet[str] = field(default_factory=frozenset)
    progress: FrozenSet[str] = field(default_factory=frozenset)
    subagent: FrozenSet[str] = field(default_factory=frozenset)

    def is_explore(self, name: str) -> bool:
        return name in self.explore

    def is_hidden(self, name: str) -> bool:
        return name in self.hidden

    def is_progress(self, name: str) -> bool:
        return name in self.progress

    def is_subagent(self, name: str) -> bool:
        return name in self.subagent


EMPTY_CATEGORIES = ToolCategories()

CLAUDE_CATEGORIES = ToolCategories(
    explore=frozenset({'Read', 'Glob', 'Grep'}),
    hidden=frozenset({
        'TaskList',
        'TaskGet',
        'TaskOutput',
        'TaskStop',
        'TodoWrite',
        'Skill',
        'EnterPlanMode',
        'AskUserQuestion',
    }),
    progress=frozenset({'TaskCreate', 'TaskUpdate'}),
    subagent=frozenset({'Task'}),
)

ADAPTER_CATEGORIES: Dict[str, ToolCategories] = {
    'claude': CLAUDE_CATEGORIES,
}


def get_tool_categories(adapter_id: Optional[str]) -> ToolCategories:
    """Get the tool categories of an adapter (empty sets if unknown)"""
    if not adapter_id:
        return EMPTY_CATEGORIES
    return ADAPTER_CATEGORIES.get(adapter_id, EMPTY_CATEGORIES)
