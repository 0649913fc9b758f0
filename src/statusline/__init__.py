"""Statusline capture for agent teams.

Tails each agent's append-only ``<agent>.jsonl`` statusline log and publishes
every newly appended JSON line as a StatusLineEvent.

Key Components:
    - paths: Directory layout for team statusline logs
    - config: Configuration dataclass and YAML/environment loading
    - models: Emitted event and per-agent registry entry
    - event_bus: Thread-safe "update"/"error" pub/sub
    - watcher: StatusLineWatcher, the tail/parse/emit loop
    - logging_setup: Console and JSON-lines file logging

Example:
    >>> from statusline import StatusLineWatcher, load_config
    >>> watcher = StatusLineWatcher("teamA", load_config())
    >>> watcher.ensure_dir()
    >>> watcher.on("update", lambda event: print(event.to_dict()))
    >>> watcher.watch_agent("agent1")
"""

from __future__ import annotations

from .config import StatusLineConfig, load_config
from .event_bus import ERROR, UPDATE, EventBus
from .logging_setup import setup_logging
from .models import StatusLineEvent, WatchedAgent
from .paths import status_line_dir, status_line_log_path, team_dir
from .watcher import StatusLineWatcher

__all__ = [
    "ERROR",
    "UPDATE",
    "EventBus",
    "StatusLineConfig",
    "StatusLineEvent",
    "StatusLineWatcher",
    "WatchedAgent",
    "load_config",
    "setup_logging",
    "status_line_dir",
    "status_line_log_path",
    "team_dir",
]

__version__ = "0.1.0"
