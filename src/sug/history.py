#!/usr/bin/env python

import os
import re
from datetime import datetime
from pathlib import Path
from typing import List, Mapping, Optional

from .constants import HISTORY_FILES, FALLBACK_HISTORY_FILE
from .exceptions import PartialDataWarning
from .models import HistoryEntry

# zsh EXTENDED_HISTORY: ": <start>:<elapsed>;<command>"
ZSH_EXTENDED_LINE = re.compile(r"^: (\d+):(\d+);(.*)$")
# bash with HISTTIMEFORMAT writes "#<epoch>" before each command
BASH_TIMESTAMP_LINE = re.compile(r"^#(\d{9,})$")


class HistoryParser:
    """Reads recent commands from the user's shell history file.

    Command output, error output and exit codes are not recorded by
    the shell history formats, so those fields stay empty.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None,
                 history_file: Optional[Path] = None):
        self.environ = os.environ if environ is None else environ
        self.history_file = history_file

    def get_history_file(self) -> Path:
        """Pick the history file for the user's shell"""
        if self.history_file:
            return Path(self.history_file)

        if self.environ.get("HISTFILE"):
            return Path(self.environ["HISTFILE"]).expanduser()

        home = Path(self.environ.get("HOME") or Path.home())
        shell = self.environ.get("SHELL", "")
        for family, filename in HISTORY_FILES.items():
            if family in shell:
                return home / filename
        return home / FALLBACK_HISTORY_FILE

    def get_recent_history(self, limit: int) -> List[HistoryEntry]:
        """Return up to `limit` entries, oldest first, excluding the current command.

        Raises PartialDataWarning when the history file cannot be read.
        """
        path = self.get_history_file()
        try:
            with open(path, 'r', encoding='utf-8', errors='replace') as f:
                entries = self.parse_lines(f)
        except OSError as e:
            raise PartialDataWarning(f"failed to read history file {path}: {e}")

        # The newest entry is the command currently being typed or run
        entries = entries[:-1]
        if limit <= 0:
            return []
        return entries[-limit:]

    def parse_lines(self, lines) -> List[HistoryEntry]:
        entries = []
        pending_timestamp: Optional[datetime] = None

        for raw_line in lines:
            line = raw_line.strip()
            if not line:
                continue

            match = BASH_TIMESTAMP_LINE.match(line)
            if match:
                pending_timestamp = _from_epoch(match.group(1))
                continue

            entry = self.parse_history_line(line, pending_timestamp)
            pending_timestamp = None
            if entry is not None:
                entries.append(entry)

        return entries

    def parse_history_line(self, line: str, timestamp: Optional[datetime] = None) -> Optional[HistoryEntry]:
        """Parse a single history line into a HistoryEntry (None when empty)"""
        duration = ""
        command = line

        match = ZSH_EXTENDED_LINE.match(line)
        if match:
            timestamp = _from_epoch(match.group(1)) or timestamp
            elapsed = int(match.group(2))
            if elapsed > 0:
                duration = f"{elapsed}s"
            command = match.group(3)

        command = command.strip()
        if not command:
            return None

        return HistoryEntry(
            command=command,
            timestamp=timestamp or datetime.now(),
            duration=duration,
        )


def _from_epoch(value: str) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(int(value))
    except (ValueError, OverflowError, OSError):
        return None
