"""A single entry of a command history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional


@dataclass
class HistoryItem:
    """One run command with optional extra context.

    ``id`` is the primary key within one history; more recent items have
    higher ids. ``session_id`` identifies the shell session that ran it.
    """

    command_line: str
    id: Optional[int] = None
    start_timestamp: Optional[datetime] = None
    session_id: Optional[int] = None
    hostname: Optional[str] = None
    cwd: Optional[str] = None
    duration: Optional[timedelta] = None
    exit_status: Optional[int] = None
    more_info: Optional[Any] = None

    @classmethod
    def from_command_line(cls, cmd: str) -> "HistoryItem":
        """Create an item from a command line with every other field unset."""
        return cls(command_line=str(cmd))