"""Tail per-agent statusline logs and publish parsed updates.

Each watched agent gets its own watchdog observer on the team's statusline
directory. A change notification for the agent's file only means "re-check
from the stored offset": the offset diff decides what is new, so coalesced or
duplicated notifications are harmless.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from .config import StatusLineConfig
from .event_bus import ERROR, UPDATE, EventBus, EventHandler
from .models import StatusLineEvent, WatchedAgent
from .paths import status_line_dir, status_line_log_path

logger = logging.getLogger(__name__)


def _file_size(file_path: Path) -> int:
    return file_path.stat().st_size


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


class _AgentLogHandler(FileSystemEventHandler):
    """Forwards change notifications for a single file to a callback."""

    def __init__(self, file_path: Path, on_change: Callable[[], None]):
        super().__init__()
        # Some platforms report real paths (e.g. /private/var on macOS)
        self.file_path = Path(os.path.realpath(file_path))
        self._on_change = on_change

    def on_modified(self, event: FileSystemEvent) -> None:
        self._dispatch_if_ours(event)

    def on_created(self, event: FileSystemEvent) -> None:
        # File re-created after deletion
        self._dispatch_if_ours(event)

    def _dispatch_if_ours(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if Path(os.path.realpath(os.fsdecode(event.src_path))) != self.file_path:
            return
        # An exception here would end the observer thread and the watch with it
        try:
            self._on_change()
        except Exception as e:
            logger.debug(f"Error handling change to {self.file_path}: {e}")


class StatusLineWatcher:
    """Watches statusline log files for a team and publishes parsed events.

    Every agent registered with watch_agent() is tailed independently: the
    watcher remembers how many bytes of the agent's log it has consumed and,
    on each change notification, parses the bytes appended since then as
    newline-delimited JSON. Parsed lines are published on the "update"
    channel of the event bus; registration failures on the "error" channel.

    Once stop() is called the watcher is finished; create a new instance to
    watch again.

    Attributes:
        team_name: Team whose statusline directory is watched.
        config: Watcher configuration.
        events: Bus carrying "update" and "error" notifications.

    Example:
        >>> watcher = StatusLineWatcher("teamA")
        >>> watcher.ensure_dir()
        >>> watcher.on("update", lambda event: print(event.data))
        >>> watcher.watch_agent("agent1")
        >>> ...
        >>> watcher.stop()
    """

    def __init__(
        self,
        team_name: str,
        config: StatusLineConfig | None = None,
        event_bus: EventBus | None = None,
        observer_factory: Callable[[], BaseObserver] | None = None,
    ):
        """Initialize the watcher.

        Args:
            team_name: Team whose agents will be watched.
            config: Watcher configuration (defaults to StatusLineConfig()).
            event_bus: Bus to publish on; a private one is created if omitted.
            observer_factory: Builds one watch handle per agent. Defaults to
                the native watchdog Observer, or PollingObserver when
                config.use_polling is set.
        """
        self.team_name = team_name
        self.config = config or StatusLineConfig()
        self.events = event_bus or EventBus()
        self._observer_factory = observer_factory or self._default_observer_factory
        self._agents: dict[str, WatchedAgent] = {}
        self._lock = threading.Lock()
        self._stopped = False

    def __enter__(self) -> StatusLineWatcher:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    @property
    def directory(self) -> Path:
        """Directory holding this team's statusline logs."""
        return status_line_dir(self.team_name, self.config.teams_dir)

    @property
    def stopped(self) -> bool:
        return self._stopped

    def log_path(self, agent_name: str) -> Path:
        """Return the JSONL log path for an agent of this team."""
        return status_line_log_path(self.team_name, agent_name, self.config.teams_dir)

    def on(self, channel: str, handler: EventHandler) -> str:
        """Subscribe to "update" or "error"; returns a subscription ID."""
        return self.events.subscribe(channel, handler)

    def off(self, subscription_id: str) -> bool:
        return self.events.unsubscribe(subscription_id)

    def ensure_dir(self) -> None:
        """Create the statusline directory (and parents) if it doesn't exist."""
        self.directory.mkdir(parents=True, exist_ok=True)

    def watch_agent(self, agent_name: str) -> None:
        """Start tailing an agent's statusline log.

        Content already in the file is skipped; only lines appended after
        this call are published. Re-registering an agent closes its previous
        watch first. Does nothing once the watcher has been stopped.

        Args:
            agent_name: Agent to watch.
        """
        if self._stopped:
            return

        file_path = self.log_path(agent_name)

        with self._lock:
            previous = self._agents.pop(agent_name, None)
        if previous is not None:
            logger.debug(f'Replacing existing statusLine watch for agent "{agent_name}"')
            self._close_observer(previous.observer)

        # The watch needs the file to exist; appending creates it without truncating
        try:
            with file_path.open("ab"):
                pass
        except OSError as e:
            self._report_registration_error(
                f'Failed to create statusLine log for "{agent_name}" at {file_path}', e
            )
            return

        # Only content appended from now on is new
        try:
            offset = _file_size(file_path)
        except OSError as e:
            logger.debug(f"Could not read size of {file_path}, tailing from start: {e}")
            offset = 0

        handler = _AgentLogHandler(
            file_path, lambda: self._read_new_lines(agent_name, file_path)
        )
        try:
            observer = self._observer_factory()
            observer.schedule(handler, str(file_path.parent), recursive=False)
        except OSError as e:
            self._report_registration_error(
                f'Failed to watch statusLine for "{agent_name}"', e
            )
            return

        entry = WatchedAgent(
            agent_name=agent_name,
            file_path=file_path,
            observer=observer,
            offset=offset,
        )
        with self._lock:
            if self._stopped:
                return
            self._agents[agent_name] = entry

        try:
            observer.start()
        except (OSError, RuntimeError) as e:
            with self._lock:
                if self._agents.get(agent_name) is entry:
                    del self._agents[agent_name]
            self._close_observer(observer)
            self._report_registration_error(
                f'Failed to watch statusLine for "{agent_name}"', e
            )
            return

        # stop() or a re-registration may have raced with start()
        with self._lock:
            still_current = not self._stopped and self._agents.get(agent_name) is entry
        if not still_current:
            self._close_observer(observer)
            return

        logger.debug(
            f'Watching statusLine for agent "{agent_name}" at {file_path}',
            extra={"agent_name": agent_name, "offset": offset},
        )

    def unwatch_agent(self, agent_name: str) -> None:
        """Stop tailing an agent and forget its offset. Unknown agents are ignored."""
        with self._lock:
            entry = self._agents.pop(agent_name, None)
        if entry is None:
            return
        self._close_observer(entry.observer)
        logger.debug(f'Stopped watching statusLine for agent "{agent_name}"')

    def stop(self) -> None:
        """Close every watch and refuse further registrations."""
        with self._lock:
            self._stopped = True
            entries = list(self._agents.values())
            self._agents.clear()

        for entry in entries:
            self._close_observer(entry.observer)

        if entries:
            logger.debug(f"Stopped statusLine watcher for team {self.team_name}")

    def is_watching(self, agent_name: str) -> bool:
        with self._lock:
            return agent_name in self._agents

    def watched_agents(self) -> list[str]:
        with self._lock:
            return sorted(self._agents)

    def get_offset(self, agent_name: str) -> int | None:
        """Return the consumed byte offset for an agent, or None if not watched."""
        with self._lock:
            entry = self._agents.get(agent_name)
            return entry.offset if entry is not None else None

    def _read_new_lines(self, agent_name: str, file_path: Path) -> None:
        """Publish every JSON line appended to an agent's log since the last read.

        Runs on the agent's observer thread. Never raises: read failures and
        malformed lines are logged at debug level and skipped.
        """
        with self._lock:
            entry = self._agents.get(agent_name)
        if entry is None or entry.file_path != file_path or self._stopped:
            return

        try:
            content = file_path.read_bytes()
        except OSError as e:
            # File may have been deleted; keep watching in case it comes back
            logger.debug(f"Error reading statusLine file {file_path}: {e}")
            return

        with self._lock:
            if self._agents.get(agent_name) is not entry:
                return
            offset = entry.offset
            entry.offset = len(content)

        new_content = content[offset:].decode("utf-8", errors="replace")
        if not new_content.strip():
            return

        for line in new_content.strip().split("\n"):
            if not line.strip():
                continue
            try:
                data = json.loads(line, parse_constant=_reject_constant)
            except (ValueError, RecursionError):
                logger.debug(f"Failed to parse statusLine JSON: {line}")
                continue

            # A handler may have unwatched this agent or stopped the watcher mid-batch
            with self._lock:
                current = not self._stopped and self._agents.get(agent_name) is entry
            if not current:
                return

            event = StatusLineEvent(
                agent_name=agent_name,
                data=data,
                timestamp=datetime.now(UTC).isoformat(),
            )
            self.events.publish(UPDATE, event)

    def _default_observer_factory(self) -> BaseObserver:
        if self.config.use_polling:
            return PollingObserver(timeout=self.config.polling_interval_seconds)
        return Observer()

    def _close_observer(self, observer: BaseObserver) -> None:
        try:
            observer.stop()
            # Can't join ourselves when unwatching from inside an update handler
            if observer.is_alive() and observer is not threading.current_thread():
                observer.join(timeout=self.config.observer_join_timeout_seconds)
        except Exception as e:
            logger.debug(f"Error closing statusLine watch: {e}")

    def _report_registration_error(self, message: str, error: Exception) -> None:
        logger.error(f"{message}: {error}")
        self.events.publish(ERROR, error)
