# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Session log locator module

Resolves a session id and a project path to the session's JSONL file and
follows continuation files.

Claude Code stores each project's logs in a directory named after the
project path with every character outside [A-Za-z0-9-] replaced by '-'.
When a session is resumed the CLI may start a new file: its first entry
still carries the resumed session's id, later entries carry the new id.
"""

import re
from pathlib import Path
from typing import List, Optional, Set

from rich.console import Console

from .parser import SessionParser

console = Console(stderr=True)

_UNSAFE_PATH_CHARS = re.compile(r'[^a-zA-Z0-9-]')

DEFAULT_MAX_CONTINUATION_FILES = 32


def encode_project_path(project_path: str) -> str:
    """
    Encode a project path into its log directory name

    Example:
        /home/user/my.project -> -home-user-my-project
    """
    return _UNSAFE_PATH_CHARS.sub('-', str(project_path))


class SessionLocator:
    """Class for locating session log files under the projects directory"""

    def __init__(self, projects_dir: str,
                 max_continuation_files: int = DEFAULT_MAX_CONTINUATION_FILES,
                 parser: Optional[SessionParser] = None,
                 verbose: bool = False):
        """
        Args:
            projects_dir: Path to Claude projects directory
            max_continuation_files: Upper bound on chain length (primary included)
            parser: Parser used to peek at first entries
            verbose: Report discovered continuation files on stderr
        """
        self.projects_dir = Path(projects_dir)
        self.max_continuation_files = max_continuation_files
        self._parser = parser or SessionParser(verbose=verbose)
        self.verbose = verbose

    def project_dir(self, project_path: str) -> Path:
        """Get the log directory of a project"""
        return self.projects_dir / encode_project_path(project_path)

    def session_path(self, session_id: str, project_path: str) -> Path:
        """Get the primary JSONL path of a session (may not exist)"""
        return self.project_dir(project_path) / f"{session_id}.jsonl"

    def locate(self, session_id: str, project_path: str) -> List[Path]:
        """
        Locate a session's primary log and its continuation files

        The chain is resolved one step at a time: once a file is known, the
        project directory is scanned for files whose first entry names that
        file's session id. Each file is visited at most once and the chain
        stops at max_continuation_files.

        Args:
            session_id: Session ID
            project_path: Project filesystem path

        Returns:
            Ordered list of files (primary first); empty if the primary
            log does not exist

        Raises:
            OSError: If the project directory cannot be listed (unreadable
                candidate files are skipped)
        """
        primary = self.session_path(session_id, project_path)
        if not primary.is_file():
            return []

        chain: List[Path] = [primary]
        visited: Set[str] = {primary.name}
        pending: List[str] = [session_id]

        candidates = sorted(
            p for p in primary.parent.glob('*.jsonl')
            if p.is_file() and p.name != primary.name
        )

        while pending and len(chain) < self.max_continuation_files:
            current_id = pending.pop(0)
            for candidate in candidates:
                if candidate.name in visited:
                    continue
                try:
                    first = self._parser.read_first_entry(candidate)
                except OSError as e:
                    # Not part of the chain yet, so an unreadable sibling is skipped
                    if self.verbose:
                        console.print(f"[yellow]Warning: Skipping unreadable file {candidate.name}: {e}[/yellow]")
                    visited.add(candidate.name)
                    continue
                if not first or first.get('sessionId') != current_id:
                    continue

                visited.add(candidate.name)
                chain.append(candidate)
                pending.append(candidate.stem)
                if self.verbose:
                    console.print(f"[cyan]Continuation file: {candidate.name} (continues {current_id[:8]}...)[/cyan]")
                if len(chain) >= self.max_continuation_files:
                    if self.verbose:
                        console.print(f"[yellow]Continuation chain truncated at {len(chain)} files[/yellow]")
                    break

        return chain
