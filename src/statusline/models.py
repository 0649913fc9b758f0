"""Data models for statusline capture.

This module defines the value emitted for every parsed status line and the
per-agent registry entry the watcher keeps while an agent is being tailed.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class StatusLineEvent:
    """One parsed status update from an agent's log.

    Events are immutable so subscribers on different threads can share them.

    Attributes:
        agent_name: Agent whose log produced the line.
        data: Decoded JSON payload of the line.
        timestamp: ISO 8601 capture time (when the line was read, not any
            time carried inside the payload).
    """

    agent_name: str
    data: Any
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_name": self.agent_name,
            "data": self.data,
            "timestamp": self.timestamp,
        }


@dataclass
class WatchedAgent:
    """Registry entry for an agent whose log is being tailed.

    Attributes:
        agent_name: Agent identifier, unique within a watcher.
        file_path: Path to the agent's JSONL log.
        observer: Watch handle delivering change notifications for the file.
        offset: Bytes of the file already consumed.
    """

    agent_name: str
    file_path: Path
    observer: Any
    offset: int = 0
