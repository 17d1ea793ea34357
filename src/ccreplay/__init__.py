# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
ccreplay - Claude Code session history replay

Rebuild the chat history of a Claude Code session from its JSONL logs
and prepare it for display in a chat UI.
"""

__version__ = "0.1.0"
