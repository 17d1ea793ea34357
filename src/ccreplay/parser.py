# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
JSONL line parser module

Reads session log files line by line. Every non-empty line is parsed as
an independent JSON object; lines that fail to parse are skipped so one
corrupt write never hides the rest of a session.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from rich.console import Console

console = Console(stderr=True)

RawLogEntry = Dict[str, Any]


def parse_jsonl_lines(lines: Iterable[str], source: str = '<memory>',
                      verbose: bool = False) -> Iterator[RawLogEntry]:
    """
    Yield each JSON object from an iterable of lines

    Args:
        lines: Lines of a JSONL document
        source: Name used in diagnostics
        verbose: Report skipped lines on stderr

    Yields:
        Parsed entries in line order
    """
    for line_num, line in enumerate(lines, 1):
        line = line.strip()
        if not line:
            continue

        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            if verbose:
                console.print(f"[yellow]Skipped malformed line {source}:{line_num}: {e}[/yellow]")
            continue

        # Only objects are log entries
        if not isinstance(data, dict):
            if verbose:
                console.print(f"[dim]Skipped non-object line {source}:{line_num}[/dim]")
            continue

        yield data


class SessionParser:
    """Class for reading session JSONL files into raw entries"""

    def __init__(self, verbose: bool = False):
        """
        Args:
            verbose: Report skipped lines on stderr
        """
        self.verbose = verbose

    def parse_files(self, jsonl_files: List[Path]) -> List[RawLogEntry]:
        """
        Parse multiple JSONL files in order and concatenate their entries

        Files are read strictly one after another. I/O errors propagate.

        Args:
            jsonl_files: Ordered list of JSONL files

        Returns:
            Entries of the first file, followed by those of the next, and so on
        """
        entries: List[RawLogEntry] = []
        for jsonl_file in jsonl_files:
            entries.extend(self.parse_file(jsonl_file))
        return entries

    def parse_file(self, file_path: Path) -> List[RawLogEntry]:
        """
        Parse single JSONL file

        Args:
            file_path: Path to JSONL file

        Returns:
            List of entries in file order
        """
        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            entries = list(parse_jsonl_lines(f, source=str(file_path), verbose=self.verbose))

        if self.verbose:
            console.print(f"[dim]Read {len(entries)} entries from {file_path.name}[/dim]")
        return entries

    def read_first_entry(self, file_path: Path) -> Optional[RawLogEntry]:
        """
        Read only the first non-empty line of a JSONL file

        Returns:
            The parsed first entry, or None if the file is empty or the
            first line is not a JSON object
        """
        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError:
                    return None
                return data if isinstance(data, dict) else None
        return None
