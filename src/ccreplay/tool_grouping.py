# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Render part grouping module

Folds the render parts of one assistant turn into display units:
consecutive explore calls become a tool group, task progress calls are
accumulated into one entry, and tool calls following a sub-agent call
nest under it. Each function is a single left-to-right pass that builds
a new list; input parts are never modified.
"""

from typing import List, Optional

from .models import RenderPart, TaskGroupPart, TaskProgressPart, ToolCallPart, ToolGroupPart
from .tools import EMPTY_CATEGORIES, ToolCategories

# Placeholder for the accumulated progress entry until all items are known
_PROGRESS_SLOT = object()


def _is_tool_call(part) -> bool:
    return getattr(part, 'type', None) == 'tool-call'


def group_tool_call_parts(parts: List[RenderPart],
                          categories: ToolCategories = EMPTY_CATEGORIES) -> List[RenderPart]:
    """
    Fold explore runs and progress calls

    Args:
        parts: Render parts of one turn, hidden calls already removed
        categories: Tool categories of the adapter

    Returns:
        New list of parts; explore runs of two or more calls become a
        ToolGroupPart, progress calls one TaskProgressPart placed where the
        first of them was
    """
    result: list = []
    run: List[ToolCallPart] = []
    progress: List[ToolCallPart] = []
    slot_after_run = False

    def close_run():
        nonlocal slot_after_run
        if len(run) >= 2:
            result.append(ToolGroupPart(tool_call_id=run[0].tool_call_id, items=list(run)))
        elif run:
            result.append(run[0])
        run.clear()
        if slot_after_run:
            result.append(_PROGRESS_SLOT)
            slot_after_run = False

    for part in parts:
        if isinstance(part, ToolCallPart) and categories.is_progress(part.tool_name):
            if not progress:
                if run:
                    slot_after_run = True
                else:
                    result.append(_PROGRESS_SLOT)
            progress.append(part)
            continue

        if isinstance(part, ToolCallPart) and categories.is_explore(part.tool_name):
            run.append(part)
            continue

        close_run()
        result.append(part)

    close_run()

    if not progress:
        return result
    accumulated = TaskProgressPart(tool_call_id=progress[0].tool_call_id, items=progress)
    return [accumulated if part is _PROGRESS_SLOT else part for part in result]


def group_task_children(parts: List[RenderPart],
                        categories: ToolCategories = EMPTY_CATEGORIES) -> List[RenderPart]:
    """
    Nest tool calls under the sub-agent call that precedes them

    A sub-agent call collects every following tool-call part up to the next
    sub-agent call or the first part that is not a tool call. A sub-agent
    call with nothing to collect is kept as is.
    """
    result: List[RenderPart] = []
    task: Optional[ToolCallPart] = None
    children: List[RenderPart] = []

    def close_task():
        nonlocal task
        if task is None:
            return
        if children:
            result.append(TaskGroupPart(
                tool_call_id=task.tool_call_id,
                task_args=task.args,
                children=list(children),
                result=task.result,
                is_error=task.is_error,
            ))
        else:
            result.append(task)
        task = None
        children.clear()

    for part in parts:
        if isinstance(part, ToolCallPart) and categories.is_subagent(part.tool_name):
            close_task()
            task = part
        elif task is not None and _is_tool_call(part):
            children.append(part)
        else:
            close_task()
            result.append(part)

    close_task()
    return result


def group_parts(parts: List[RenderPart],
                categories: ToolCategories = EMPTY_CATEGORIES) -> List[RenderPart]:
    """Apply tool-call grouping, then task-children grouping"""
    return group_task_children(group_tool_call_parts(parts, categories), categories)
